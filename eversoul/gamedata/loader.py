import asyncio
import logging

from pydantic import ValidationError

from eversoul.gamedata.cache import TableCache
from eversoul.gamedata.fetcher import GameDataParseError, source_value
from eversoul.schemas.gamedata import GameDataBundle, TABLE_FILES

logger = logging.getLogger(__name__)


async def load_bundle(cache: TableCache, source) -> GameDataBundle:
    """
    데이터 소스 하나의 테이블 15개를 동시에 불러와 번들로 조립
    - 한 테이블이라도 실패하면 번들 전체 실패 (읽기 경로는 일관성 우선)
    - 행 검증 실패도 파싱 오류(GameDataParseError)로 올린다
    """
    source = source_value(source)
    attrs = list(TABLE_FILES)

    results = await asyncio.gather(*(cache.get(source, TABLE_FILES[attr]) for attr in attrs))

    payload = {"source": source}
    for attr, rows in zip(attrs, results):
        if not isinstance(rows, list):
            logger.warning(f"{source}/{TABLE_FILES[attr]}: expected a list, got {type(rows).__name__}")
            rows = []
        payload[attr] = rows

    try:
        bundle = GameDataBundle.model_validate(payload)
    except ValidationError as e:
        logger.error(f"bundle validation failed: {source} ({e.error_count()} errors)")
        raise GameDataParseError(f"{source}/bundle", str(e)) from e

    logger.debug(f"bundle loaded: {source} (stages={len(bundle.stage)})")
    return bundle
