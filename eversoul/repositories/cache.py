from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, text
from sqlalchemy.dialects.postgresql import insert

from eversoul.models.cache import GameDataCache, CacheUpdateTask
from eversoul.repositories.base import BaseRepository

class GameDataCacheRepository(BaseRepository[GameDataCache]):
    def __init__(self, db: AsyncSession):
        super().__init__(GameDataCache, db)

    async def get_entry(self, data_source: str, file_name: str) -> Optional[GameDataCache]:
        query = select(GameDataCache).where(
            GameDataCache.data_source == data_source,
            GameDataCache.file_name == file_name,
        )
        result = await self.db.execute(query)
        return result.scalars().first()

    async def upsert_entry(
        self,
        data_source: str,
        file_name: str,
        data: str,
        fetched_at: datetime,
        is_valid: bool = True
    ) -> None:
        """
        (data_source, file_name) 기준 단일 문장 UPSERT
        - 동시에 여러 인스턴스가 써도 키 단위로 원자적 (마지막 쓰기 우선)
        """
        stmt = insert(GameDataCache).values(
            data_source=data_source,
            file_name=file_name,
            data=data,
            fetched_at=fetched_at,
            is_valid=is_valid,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[GameDataCache.data_source, GameDataCache.file_name],
            set_={
                "data": stmt.excluded.data,
                "fetched_at": stmt.excluded.fetched_at,
                "is_valid": stmt.excluded.is_valid,
                "updated_at": func.now(),
            },
        )
        await self.db.execute(stmt)
        await self.db.commit()

    async def count_by_source(self) -> List[dict]:
        """데이터 소스별 엔트리 수와 마지막 갱신 시각"""
        query = (
            select(
                GameDataCache.data_source,
                func.count(GameDataCache.id),
                func.max(GameDataCache.updated_at),
            )
            .group_by(GameDataCache.data_source)
            .order_by(GameDataCache.data_source)
        )
        result = await self.db.execute(query)
        return [
            {"data_source": source, "count": count, "last_updated": last_updated}
            for source, count, last_updated in result.all()
        ]

    async def compact(self) -> None:
        # VACUUM은 트랜잭션 안에서 실행할 수 없으므로 AUTOCOMMIT 연결을 따로 연다
        async with self.db.bind.connect() as conn:
            conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
            await conn.execute(text(f"VACUUM {GameDataCache.__tablename__}"))

class CacheUpdateTaskRepository(BaseRepository[CacheUpdateTask]):
    def __init__(self, db: AsyncSession):
        super().__init__(CacheUpdateTask, db)

    async def create(self, task_type: str, data_source: str) -> CacheUpdateTask:
        task = CacheUpdateTask(task_type=task_type, data_source=data_source, status="running")
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)
        return task

    async def set_progress(self, task_id: int, updated_files: int) -> None:
        await self.db.execute(
            update(CacheUpdateTask)
            .where(CacheUpdateTask.id == task_id)
            .values(updated_files=updated_files)
        )
        await self.db.commit()

    async def finish(
        self,
        task_id: int,
        status: str,
        updated_files: Optional[int] = None,
        error_message: Optional[str] = None
    ) -> None:
        values = {"status": status, "completed_at": func.now()}
        if updated_files is not None:
            values["updated_files"] = updated_files
        if error_message is not None:
            values["error_message"] = error_message
        await self.db.execute(
            update(CacheUpdateTask).where(CacheUpdateTask.id == task_id).values(**values)
        )
        await self.db.commit()

    async def find_running(self, task_type: str) -> Optional[CacheUpdateTask]:
        query = select(CacheUpdateTask).where(
            CacheUpdateTask.task_type == task_type,
            CacheUpdateTask.status == "running",
        )
        result = await self.db.execute(query)
        return result.scalars().first()

    async def latest(self, limit: int = 10) -> List[CacheUpdateTask]:
        query = select(CacheUpdateTask).order_by(CacheUpdateTask.started_at.desc()).limit(limit)
        result = await self.db.execute(query)
        return result.scalars().all()
