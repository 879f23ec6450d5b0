import logging
from fastapi import HTTPException
from redis.asyncio import Redis

from eversoul.core.config import RefreshTarget
from eversoul.gamedata.cache import TableCache
from eversoul.gamedata.refresh import CacheRefresher
from eversoul.service.base import BaseService
from eversoul.service.stage import STAGE_CACHE_PREFIX
from eversoul.schemas.cache import (
    CacheClearResult,
    CacheStats,
    CacheUpdateResult,
    CacheUpdateTaskResponse,
)

logger = logging.getLogger(__name__)

class CacheService(BaseService):
    def __init__(self, cache: TableCache, refresher: CacheRefresher, redis: Redis):
        super().__init__(redis)
        self.cache = cache
        self.refresher = refresher

    async def get_stats(self) -> CacheStats:
        return await self.cache.stats()

    async def clear(self) -> CacheClearResult:
        deleted = await self.cache.clear()
        await self.invalidate_prefix(STAGE_CACHE_PREFIX)
        return CacheClearResult(deleted_count=deleted)

    async def update(self, target: RefreshTarget, is_manual: bool = True) -> CacheUpdateResult:
        task_type = "manual" if is_manual else "auto"
        result = await self.refresher.refresh(target, task_type)
        # 새 테이블로 다시 조립되도록 응답 캐시도 비움
        await self.invalidate_prefix(STAGE_CACHE_PREFIX)
        return result

    async def scheduled_update(self) -> CacheUpdateResult:
        if await self.refresher.is_running("auto"):
            raise HTTPException(status_code=409, detail="이미 자동 갱신 작업이 실행 중입니다")
        return await self.update(RefreshTarget.ALL, is_manual=False)

    async def recent_tasks(self, limit: int = 10) -> list[CacheUpdateTaskResponse]:
        tasks = await self.refresher.latest_tasks(limit)
        return [CacheUpdateTaskResponse.model_validate(task) for task in tasks]
