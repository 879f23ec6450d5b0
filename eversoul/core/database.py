import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from redis import asyncio as aioredis

from eversoul.core.config import DATABASE_URL, REDIS_HOST, REDIS_PORT, REDIS_PASSWORD

logger = logging.getLogger(__name__)

# 1. PostgreSQL Async Engine (영속 테이블 캐시 / 갱신 작업 기록)
# pgbouncer 등 트랜잭션 풀러 뒤에서도 동작하도록 풀링/프리페어드 캐시를 끈다
engine = create_async_engine(
    DATABASE_URL,
    poolclass=NullPool,
    pool_pre_ping=True,
    connect_args={"prepared_statement_cache_size": 0, "statement_cache_size": 0},
)
SessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
Base = declarative_base()


async def init_models():
    """테이블이 없으면 생성 (game_data_cache, cache_update_task)"""
    import eversoul.models.cache  # noqa: F401 - 메타데이터 등록용
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# 2. Redis (조립된 응답 캐시)
def redis_url() -> str:
    auth = f":{REDIS_PASSWORD}@" if REDIS_PASSWORD else ""
    return f"redis://{auth}{REDIS_HOST}:{REDIS_PORT}/0"

redis_pool: Optional[aioredis.ConnectionPool] = None

def init_redis_pool():
    global redis_pool
    logger.info(f"🚀 Connecting to Redis at {REDIS_HOST}:{REDIS_PORT}...")
    redis_pool = aioredis.ConnectionPool.from_url(redis_url(), decode_responses=True, max_connections=100)

async def close_redis_pool():
    global redis_pool
    if redis_pool is None:
        return
    await redis_pool.disconnect()
    redis_pool = None
    logger.info("🛑 Redis connection closed.")

# Dependency Injection for Redis Client
async def get_redis():
    client = aioredis.Redis(connection_pool=redis_pool)
    try:
        yield client
    finally:
        await client.aclose()
