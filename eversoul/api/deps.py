from fastapi import Depends, Request
from redis.asyncio import Redis

from eversoul.core.database import get_redis
from eversoul.gamedata.cache import TableCache
from eversoul.gamedata.refresh import CacheRefresher

# Services
from eversoul.service.stage import StageService
from eversoul.service.cache import CacheService

# --- Engine DI (lifespan 에서 1회 생성된 프로세스 전역 객체) ---
def get_table_cache(request: Request) -> TableCache:
    return request.app.state.table_cache

def get_refresher(request: Request) -> CacheRefresher:
    return request.app.state.refresher

# --- Stage DI ---
async def get_stage_service(
    cache: TableCache = Depends(get_table_cache),
    redis: Redis = Depends(get_redis)
) -> StageService:
    return StageService(cache, redis)

# --- Cache DI ---
async def get_cache_service(
    cache: TableCache = Depends(get_table_cache),
    refresher: CacheRefresher = Depends(get_refresher),
    redis: Redis = Depends(get_redis)
) -> CacheService:
    return CacheService(cache, refresher, redis)
