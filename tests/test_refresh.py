import pytest

from eversoul.core.config import RefreshTarget
from eversoul.gamedata.cache import TableCache
from eversoul.gamedata.refresh import CacheRefresher
from fakes import MockOrigin, full_tables

pytestmark = pytest.mark.asyncio

NEW_STAGE = [{"no": 2, "area_no": 1, "stage_no": 2, "stage_type": 1}]


@pytest.fixture
def origin() -> MockOrigin:
    return MockOrigin({
        "live": full_tables(Stage=NEW_STAGE),
        "review": full_tables(),
    })


@pytest.fixture
def refresher(origin, store, task_log, clock) -> CacheRefresher:
    fetcher = origin.fetcher()
    cache = TableCache(fetcher, store, clock=clock)
    return CacheRefresher(fetcher, store, task_log, cache=cache, clock=clock)


async def test_refresh_all_updates_both_sources(refresher, store, task_log):
    result = await refresher.refresh(RefreshTarget.ALL)

    assert result.updated_files == 30
    assert result.failed_files == []
    assert len(store.entries) == 30
    assert task_log.progress == list(range(1, 31))

    task = task_log.tasks[result.task_id]
    assert task["status"] == "completed"
    assert task["task_type"] == "manual"
    assert task["data_source"] == "all"
    assert task["updated_files"] == 30


async def test_refresh_single_source(refresher, store, origin):
    result = await refresher.refresh(RefreshTarget.REVIEW, task_type="auto")

    assert result.updated_files == 15
    assert {source for source, _ in store.entries} == {"review"}
    assert all("/review/" in path for path in origin.calls)


async def test_failed_table_is_skipped(refresher, origin, store, task_log):
    origin.broken.add(("live", "Item"))

    result = await refresher.refresh(RefreshTarget.LIVE)

    assert result.updated_files == 14
    assert result.failed_files == ["live/Item"]
    assert ("live", "Item") not in store.entries
    assert task_log.tasks[result.task_id]["status"] == "completed"


async def test_store_failure_is_per_table(refresher, store, task_log):
    store.fail = True

    result = await refresher.refresh(RefreshTarget.LIVE)

    assert result.updated_files == 0
    assert len(result.failed_files) == 15
    assert task_log.progress == []
    assert task_log.tasks[result.task_id]["status"] == "completed"


async def test_refresh_replaces_stale_memory_entry(refresher, store, clock):
    cache = refresher.cache
    await store.upsert_entry("live", "Stage", [{"no": 1}], clock.now, True)
    assert await cache.get("live", "Stage") == [{"no": 1}]

    await refresher.refresh(RefreshTarget.LIVE)

    assert await cache.get("live", "Stage") == NEW_STAGE


async def test_unexpected_error_marks_task_failed(store, task_log):
    class BrokenFetcher:
        async def fetch(self, source, table):
            raise RuntimeError("boom")

    refresher = CacheRefresher(BrokenFetcher(), store, task_log)

    with pytest.raises(RuntimeError):
        await refresher.refresh(RefreshTarget.LIVE)

    task = next(iter(task_log.tasks.values()))
    assert task["status"] == "failed"
    assert task["error_message"] == "boom"


async def test_is_running_and_latest(refresher, task_log):
    await task_log.create("auto", "all")
    assert await refresher.is_running("auto") is True
    assert await refresher.is_running("manual") is False

    await refresher.refresh(RefreshTarget.LIVE)

    latest = await refresher.latest_tasks(limit=1)
    assert latest[0]["task_type"] == "manual"
    assert latest[0]["status"] == "completed"
