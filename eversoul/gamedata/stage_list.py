from typing import Iterable, List

from eversoul.gamedata.cache import TableCache
from eversoul.gamedata.loader import load_bundle
from eversoul.schemas.gamedata import Stage

MAIN_STORY_STAGE_TYPE = 1


def filter_main_stages(stages: Iterable[Stage]) -> List[Stage]:
    """메인 스토리 스테이지만 (area_no, stage_no) 오름차순으로"""
    main_stages = [
        s for s in stages
        if s.area_no > 0 and s.stage_no > 0 and s.stage_type == MAIN_STORY_STAGE_TYPE
    ]
    return sorted(main_stages, key=lambda s: (s.area_no, s.stage_no))


async def get_stage_list(cache: TableCache, source) -> List[Stage]:
    bundle = await load_bundle(cache, source)
    return filter_main_stages(bundle.stage)
