import pytest

from eversoul.gamedata.stage_list import filter_main_stages, get_stage_list
from eversoul.gamedata.cache import TableCache
from fakes import MockOrigin, full_tables, make_bundle


@pytest.mark.unit
def test_filter_main_stages_sorts_and_filters():
    bundle = make_bundle(stage=[
        {"no": 5, "area_no": 2, "stage_no": 1, "stage_type": 1},
        {"no": 4, "area_no": 1, "stage_no": 10, "stage_type": 1},
        {"no": 3, "area_no": 1, "stage_no": 2, "stage_type": 1},
        {"no": 2, "area_no": 1, "stage_no": 3, "stage_type": 2},
        {"no": 1, "area_no": 0, "stage_no": 1, "stage_type": 1},
        {"no": 6, "area_no": 3, "stage_no": 0, "stage_type": 1},
    ])

    stages = filter_main_stages(bundle.stage)

    assert [(s.area_no, s.stage_no) for s in stages] == [(1, 2), (1, 10), (2, 1)]


@pytest.mark.unit
def test_filter_main_stages_empty():
    assert filter_main_stages([]) == []


@pytest.mark.integration
@pytest.mark.asyncio
async def test_get_stage_list_loads_through_cache(clock):
    origin = MockOrigin({"review": full_tables(Stage=[
        {"no": 2, "area_no": 1, "stage_no": 2, "stage_type": 1},
        {"no": 1, "area_no": 1, "stage_no": 1, "stage_type": 1},
    ])})
    cache = TableCache(origin.fetcher(), clock=clock)

    stages = await get_stage_list(cache, "review")
    again = await get_stage_list(cache, "review")

    assert [s.no for s in stages] == [1, 2]
    assert [s.no for s in again] == [1, 2]
    assert len(origin.calls) == 15
