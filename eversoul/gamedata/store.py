from datetime import datetime
from typing import Any, List, NamedTuple, Optional
import orjson
from sqlalchemy.ext.asyncio import async_sessionmaker

from eversoul.core.database import SessionLocal
from eversoul.repositories.cache import GameDataCacheRepository, CacheUpdateTaskRepository


class CacheEntry(NamedTuple):
    data: Any
    fetched_at: datetime
    is_valid: bool


class PersistedTableStore:
    """
    테이블 캐시의 영속 계층 (game_data_cache)
    캐시 객체는 프로세스 전역이고 세션은 아니므로, 연산마다 세션을 새로 연다.
    """

    def __init__(self, session_factory: async_sessionmaker = SessionLocal):
        self.session_factory = session_factory

    async def get_entry(self, data_source: str, file_name: str) -> Optional[CacheEntry]:
        async with self.session_factory() as session:
            row = await GameDataCacheRepository(session).get_entry(data_source, file_name)
        if row is None:
            return None
        return CacheEntry(orjson.loads(row.data), row.fetched_at, row.is_valid)

    async def upsert_entry(
        self,
        data_source: str,
        file_name: str,
        data: Any,
        fetched_at: datetime,
        is_valid: bool = True
    ) -> None:
        payload = orjson.dumps(data).decode()
        async with self.session_factory() as session:
            await GameDataCacheRepository(session).upsert_entry(
                data_source, file_name, payload, fetched_at, is_valid
            )

    async def delete_all(self) -> int:
        async with self.session_factory() as session:
            return await GameDataCacheRepository(session).delete_all()

    async def compact(self) -> None:
        async with self.session_factory() as session:
            await GameDataCacheRepository(session).compact()

    async def count_by_source(self) -> List[dict]:
        async with self.session_factory() as session:
            return await GameDataCacheRepository(session).count_by_source()


class UpdateTaskLog:
    """갱신 작업(cache_update_task) 기록용 어댑터"""

    def __init__(self, session_factory: async_sessionmaker = SessionLocal):
        self.session_factory = session_factory

    async def create(self, task_type: str, data_source: str) -> int:
        async with self.session_factory() as session:
            task = await CacheUpdateTaskRepository(session).create(task_type, data_source)
            return task.id

    async def set_progress(self, task_id: int, updated_files: int) -> None:
        async with self.session_factory() as session:
            await CacheUpdateTaskRepository(session).set_progress(task_id, updated_files)

    async def finish(
        self,
        task_id: int,
        status: str,
        updated_files: Optional[int] = None,
        error_message: Optional[str] = None
    ) -> None:
        async with self.session_factory() as session:
            await CacheUpdateTaskRepository(session).finish(
                task_id, status, updated_files, error_message
            )

    async def find_running(self, task_type: str):
        async with self.session_factory() as session:
            return await CacheUpdateTaskRepository(session).find_running(task_type)

    async def latest(self, limit: int = 10):
        async with self.session_factory() as session:
            return await CacheUpdateTaskRepository(session).latest(limit)
