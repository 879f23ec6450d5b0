import asyncio
import logging
from fastapi import HTTPException
from redis.asyncio import Redis

from eversoul.core.config import DataSource
from eversoul.gamedata.assembler import get_stage_details
from eversoul.gamedata.cache import TableCache
from eversoul.gamedata.fetcher import GameDataError
from eversoul.gamedata.stage_list import get_stage_list
from eversoul.service.base import BaseService
from eversoul.schemas.stage import StageDetails, StageOverviewResponse, StageSummary

logger = logging.getLogger(__name__)

STAGE_CACHE_PREFIX = "stage:"

class StageService(BaseService):
    def __init__(self, cache: TableCache, redis: Redis):
        super().__init__(redis)
        self.cache = cache

    async def get_stage_list(self, source: DataSource) -> list[StageSummary]:
        cache_key = f"{STAGE_CACHE_PREFIX}list:{source.value}"

        try:
            return await self.get_list_with_cache(
                key=cache_key,
                fetch_func=lambda: get_stage_list(self.cache, source),
                schema_model=StageSummary,
            )
        except GameDataError as e:
            logger.error(f"stage list load failed ({source.value}): {e}")
            raise HTTPException(status_code=502, detail=f"게임 데이터를 불러오지 못했습니다: {e}")

    async def get_stage_overview(self) -> StageOverviewResponse:
        """
        live/review 를 동시에 불러옴
        한쪽만 실패하면 남은 쪽으로 응답, 둘 다 실패할 때만 오류
        """
        sources = list(DataSource)
        results = await asyncio.gather(
            *(self.get_stage_list(source) for source in sources),
            return_exceptions=True
        )

        overview = StageOverviewResponse()
        for source, result in zip(sources, results):
            if isinstance(result, HTTPException):
                overview.errors[source.value] = str(result.detail)
            elif isinstance(result, Exception):
                overview.errors[source.value] = str(result)
            else:
                setattr(overview, source.value, result)

        if len(overview.errors) == len(sources):
            raise HTTPException(status_code=502, detail="모든 데이터 소스를 불러오지 못했습니다")
        return overview

    async def get_stage_detail(self, source: DataSource, area_no: int, stage_no: int) -> StageDetails:
        cache_key = f"{STAGE_CACHE_PREFIX}detail:{source.value}:{area_no}-{stage_no}"

        try:
            details = await self.get_with_cache(
                key=cache_key,
                fetch_func=lambda: get_stage_details(self.cache, source, area_no, stage_no),
                schema_model=StageDetails,
            )
        except GameDataError as e:
            logger.error(f"stage detail load failed ({source.value} {area_no}-{stage_no}): {e}")
            raise HTTPException(status_code=502, detail=f"게임 데이터를 불러오지 못했습니다: {e}")

        if not details:
            raise HTTPException(status_code=404, detail=f"Stage {area_no}-{stage_no} not found")
        return details
