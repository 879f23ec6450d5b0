import pytest

from eversoul.core.config import DataSource
from eversoul.gamedata.assembler import get_stage_details
from eversoul.gamedata.cache import TableCache
from eversoul.gamedata.fetcher import GameDataFetchError, GameDataParseError
from eversoul.gamedata.loader import load_bundle
from eversoul.schemas.gamedata import TABLE_FILES
from fakes import MockOrigin, full_tables, sample_files

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def test_loads_every_table_once(clock):
    origin = MockOrigin({"live": sample_files()})
    cache = TableCache(origin.fetcher(), clock=clock)

    bundle = await load_bundle(cache, DataSource.LIVE)

    assert bundle.source == "live"
    assert len(bundle.stage) == 1
    assert len(bundle.stage_battle) == 3
    assert bundle.hero_grade[0].hero_grade_value == 1.5
    assert sorted(origin.calls) == sorted(f"/MasterData/live/{f}.json" for f in TABLE_FILES.values())


async def test_enveloped_and_malformed_tables(clock):
    origin = MockOrigin({"live": full_tables(
        Stage={"json": [{"no": 1, "area_no": 1, "stage_no": 1}]},
        Formation={"unexpected": "object"},
    )})
    cache = TableCache(origin.fetcher(), clock=clock)

    bundle = await load_bundle(cache, "live")

    assert [s.no for s in bundle.stage] == [1]
    assert bundle.formation == []


async def test_any_table_failure_fails_the_bundle(clock):
    origin = MockOrigin({"live": sample_files()})
    origin.broken.add(("live", "HeroGrade"))
    cache = TableCache(origin.fetcher(), clock=clock)

    with pytest.raises(GameDataFetchError) as excinfo:
        await load_bundle(cache, "live")
    assert excinfo.value.status_code == 500


async def test_stage_details_end_to_end(clock):
    origin = MockOrigin({"live": sample_files(CashShopItem=[
        {"type": "stage", "type_value": "101", "limit_buy": 3, "limit_hour": 24, "price_krw": 100},
    ])})
    cache = TableCache(origin.fetcher(), clock=clock)

    details = await get_stage_details(cache, DataSource.LIVE, 1, 1)

    assert details.level_type == "普通"
    assert [(d.item_name.zh_tw, d.amount, d.rate) for d in details.drop_items] == [("金币", 2, pytest.approx(1.5))]
    assert "剩余时间：24小时" in details.cash_packs[0]
    assert "・ 100韩元" in details.cash_packs[0]

    assert await get_stage_details(cache, DataSource.LIVE, 9, 9) is None
    # 두 번째 조립은 전부 메모리 캐시에서
    assert len(origin.calls) == 15


async def test_unread_columns_do_not_break_the_bundle(clock):
    origin = MockOrigin({"live": sample_files(
        Item=[{"no": 7, "name_sno": 900, "category": "consumable", "grade": "SSR"}],
        Hero=[{"no": 2001, "name_sno": 3001, "grade": "legend"}],
        CashShopItem=[{"type": "stage", "type_value": "101", "category": "pack", "related_stage_no": "1-1"}],
    )})
    cache = TableCache(origin.fetcher(), clock=clock)

    bundle = await load_bundle(cache, "live")

    assert bundle.item[0].name_sno == 900
    assert bundle.hero[0].name_sno == 3001
    assert bundle.cash_shop_item[0].type_value == "101"


async def test_invalid_row_is_reported_as_parse_error(clock):
    origin = MockOrigin({"live": sample_files(Stage=[{"no": 1, "area_no": "first", "stage_no": 1}])})
    cache = TableCache(origin.fetcher(), clock=clock)

    with pytest.raises(GameDataParseError) as excinfo:
        await load_bundle(cache, "live")
    assert excinfo.value.url == "live/bundle"
