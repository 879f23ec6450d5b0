import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from eversoul.core.config import RefreshTarget
from eversoul.gamedata.cache import TableCache, utcnow
from eversoul.gamedata.fetcher import GameDataError, TableFetcher
from eversoul.gamedata.store import PersistedTableStore, UpdateTaskLog
from eversoul.schemas.cache import CacheUpdateResult
from eversoul.schemas.gamedata import TABLE_FILES

logger = logging.getLogger(__name__)


class CacheRefresher:
    """
    수동/정기 전체 갱신 작업
    - 테이블을 하나씩 순서대로 처리 (한 테이블 실패가 이미 반영된 갱신을 되돌리지 않도록)
    - 실패한 테이블은 로그만 남기고 다음 테이블로 진행
    - 성공할 때마다 진행 카운터를 기록해 상태 조회에서 볼 수 있게 함
    """

    def __init__(
        self,
        fetcher: TableFetcher,
        store: PersistedTableStore,
        tasks: UpdateTaskLog,
        cache: Optional[TableCache] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.fetcher = fetcher
        self.store = store
        self.tasks = tasks
        self.cache = cache
        self.clock = clock

    async def refresh(self, target: RefreshTarget, task_type: str = "manual") -> CacheUpdateResult:
        task_id = await self.tasks.create(task_type, target.value)
        logger.info(f"🚀 cache update task started: {task_id} ({target.value}, {task_type})")

        updated_files = 0
        failed_files = []
        try:
            for source in target.sources():
                for file_name in TABLE_FILES.values():
                    try:
                        rows = await self.fetcher.fetch(source.value, file_name)
                        await self.store.upsert_entry(source.value, file_name, rows, self.clock(), True)
                    except (GameDataError, SQLAlchemyError, OSError) as e:
                        logger.error(f"❌ {source.value}/{file_name} update failed: {e}")
                        failed_files.append(f"{source.value}/{file_name}")
                        continue

                    if self.cache is not None:
                        self.cache.discard(source.value, file_name)
                    updated_files += 1
                    await self.tasks.set_progress(task_id, updated_files)
        except Exception as e:
            await self.tasks.finish(task_id, "failed", error_message=str(e))
            raise

        await self.tasks.finish(task_id, "completed", updated_files=updated_files)
        logger.info(f"✅ cache update task completed: {task_id}, {updated_files} files updated")
        return CacheUpdateResult(task_id=task_id, updated_files=updated_files, failed_files=failed_files)

    async def is_running(self, task_type: str) -> bool:
        return await self.tasks.find_running(task_type) is not None

    async def latest_tasks(self, limit: int = 10):
        return await self.tasks.latest(limit)
