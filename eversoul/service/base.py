import logging
import orjson
from typing import Any, Awaitable, Callable, List, Optional, Type, TypeVar
from redis.asyncio import Redis
from pydantic import BaseModel
from fastapi.encoders import jsonable_encoder

from eversoul.core.config import RESPONSE_CACHE_TTL

logger = logging.getLogger(__name__)

SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseService:
    """
    조립된 응답을 Redis에 캐싱하는 서비스 공통 부모 (Cache-Aside)
    1. Redis 조회 -> Hit 이면 스키마로 복원
    2. Miss -> 조립 함수 호출 (내부적으로 2단 테이블 캐시 사용)
    3. 결과를 JSON 으로 Redis에 저장
    빈 결과(None, 찾지 못한 스테이지)는 저장하지 않는다.
    """

    def __init__(self, redis: Redis):
        self.redis = redis

    async def _load(self, key: str) -> Optional[Any]:
        cached = await self.redis.get(key)
        if not cached:
            return None
        logger.debug(f"⚡ response cache hit: {key}")
        return orjson.loads(cached)

    async def _store(self, key: str, value: Any, ttl: int) -> None:
        await self.redis.set(key, orjson.dumps(jsonable_encoder(value)).decode(), ex=ttl)

    async def get_with_cache(
        self,
        key: str,
        fetch_func: Callable[[], Awaitable[Any]],
        schema_model: Type[SchemaType],
        ttl: int = RESPONSE_CACHE_TTL
    ) -> Optional[SchemaType]:
        cached = await self._load(key)
        if cached is not None:
            return schema_model.model_validate(cached)

        obj = await fetch_func()
        if not obj:
            return None

        response_obj = schema_model.model_validate(obj)
        await self._store(key, response_obj, ttl)
        return response_obj

    async def get_list_with_cache(
        self,
        key: str,
        fetch_func: Callable[[], Awaitable[List[Any]]],
        schema_model: Type[SchemaType],
        ttl: int = RESPONSE_CACHE_TTL
    ) -> List[SchemaType]:
        cached = await self._load(key)
        if cached is not None:
            return [schema_model.model_validate(item) for item in cached]

        response_list = [schema_model.model_validate(obj, from_attributes=True) for obj in await fetch_func()]
        await self._store(key, response_list, ttl)
        return response_list

    async def invalidate_prefix(self, prefix: str) -> int:
        """prefix 로 시작하는 응답 캐시 키를 모두 삭제"""
        keys = [key async for key in self.redis.scan_iter(match=f"{prefix}*")]
        if not keys:
            return 0
        # UNLINK: 메모리 해제는 Redis 백그라운드에서
        removed = await self.redis.unlink(*keys)
        logger.info(f"🧹 response cache invalidated: {prefix}* ({removed} keys)")
        return removed
