"""테스트 대역 (저장소 / 작업 로그 / Redis / 원격 저장소) 과 번들 헬퍼"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import orjson

from eversoul.gamedata.fetcher import TableFetcher
from eversoul.gamedata.store import CacheEntry
from eversoul.schemas.gamedata import GameDataBundle, TABLE_FILES

TEST_ORIGIN = "https://data.test/MasterData"


class FakeStore:
    """PersistedTableStore 대역 (메모리 dict). fail=True 면 모든 연산이 OSError"""

    def __init__(self):
        self.entries: Dict[tuple, CacheEntry] = {}
        self.fail = False
        self.writes = 0
        self.compacted = 0

    def _check(self):
        if self.fail:
            raise OSError("store unavailable")

    async def get_entry(self, data_source, file_name) -> Optional[CacheEntry]:
        self._check()
        return self.entries.get((data_source, file_name))

    async def upsert_entry(self, data_source, file_name, data, fetched_at, is_valid=True):
        self._check()
        self.writes += 1
        self.entries[(data_source, file_name)] = CacheEntry(data, fetched_at, is_valid)

    async def delete_all(self) -> int:
        self._check()
        count = len(self.entries)
        self.entries.clear()
        return count

    async def compact(self):
        self._check()
        self.compacted += 1

    async def count_by_source(self) -> List[dict]:
        self._check()
        counts: Dict[str, int] = {}
        for source, _ in self.entries:
            counts[source] = counts.get(source, 0) + 1
        return [{"data_source": s, "count": c, "last_updated": None} for s, c in sorted(counts.items())]


class FakeTaskLog:
    """UpdateTaskLog 대역"""

    def __init__(self):
        self.tasks: Dict[int, dict] = {}
        self.progress: List[int] = []

    async def create(self, task_type, data_source) -> int:
        task_id = len(self.tasks) + 1
        self.tasks[task_id] = {
            "id": task_id,
            "task_type": task_type,
            "data_source": data_source,
            "status": "running",
            "updated_files": 0,
            "error_message": None,
        }
        return task_id

    async def set_progress(self, task_id, updated_files):
        self.tasks[task_id]["updated_files"] = updated_files
        self.progress.append(updated_files)

    async def finish(self, task_id, status, updated_files=None, error_message=None):
        task = self.tasks[task_id]
        task["status"] = status
        if updated_files is not None:
            task["updated_files"] = updated_files
        if error_message is not None:
            task["error_message"] = error_message

    async def find_running(self, task_type):
        return next(
            (t for t in self.tasks.values() if t["task_type"] == task_type and t["status"] == "running"),
            None,
        )

    async def latest(self, limit=10):
        return list(reversed(list(self.tasks.values())))[:limit]


class FakeRedis:
    """응답 캐시용 Redis 대역 (get/set/scan_iter/unlink 만 지원)"""

    def __init__(self):
        self.data: Dict[str, str] = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value

    async def scan_iter(self, match="*"):
        prefix = match.rstrip("*")
        for key in list(self.data):
            if key.startswith(prefix):
                yield key

    async def unlink(self, *keys):
        removed = 0
        for key in keys:
            removed += self.data.pop(key, None) is not None
        return removed


class MockOrigin:
    """
    httpx.MockTransport 기반 원격 저장소
    tables[source][file_name] = 응답 본문(객체), 없는 파일은 404
    """

    def __init__(self, tables: Dict[str, Dict[str, Any]]):
        self.tables = tables
        self.calls: List[str] = []
        self.broken: set = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.path)
        *_, source, file_name = request.url.path.split("/")
        table = file_name.removesuffix(".json")
        if (source, table) in self.broken:
            return httpx.Response(500)
        body = self.tables.get(source, {}).get(table)
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=orjson.dumps(body))

    def fetcher(self) -> TableFetcher:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return TableFetcher(client, origin=TEST_ORIGIN)


def full_tables(**overrides) -> Dict[str, Any]:
    """15개 파일을 모두 빈 배열로 채운 뒤 overrides(파일명 기준)로 덮어씀"""
    tables = {file_name: [] for file_name in TABLE_FILES.values()}
    tables.update(overrides)
    return tables


def make_bundle(**tables) -> GameDataBundle:
    return GameDataBundle.model_validate(tables)


class Clock:
    def __init__(self, now: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = now

    def __call__(self) -> datetime:
        return self.now



def sample_tables() -> Dict[str, List[dict]]:
    """
    스테이지 1-1 (no=101) 하나를 중심으로 한 최소 테이블 묶음 (번들 속성명 기준)
    - 1팀: 2001(1번) + 2002(4번), 등급 600, 레벨 5
    - 2팀: 2001(2번), 등급 600, 레벨 10
    """
    return {
        "stage": [
            {
                "no": 101, "area_no": 1, "stage_no": 1, "stage_type": 1,
                "level_type": 500, "exp": 100, "item_drop_group_no": 55,
                "item_no_1": 7, "amount_1": 3,
                "item_no_3": 8, "amount_3": 1,
            },
        ],
        "stage_battle": [
            {
                "no": 101, "team_no": 2, "formation_type": 3,
                "hero_no_2": 2001, "hero_grade_2": 600, "level_2": 10,
            },
            {
                "no": 101, "team_no": 1, "formation_type": 1,
                "hero_no_1": 2001, "hero_grade_1": 600, "level_1": 5,
                "hero_no_4": 2002, "hero_grade_4": 600, "level_4": 5,
            },
            {"no": 999, "team_no": 1, "formation_type": 2, "hero_no_1": 2001},
        ],
        "string_system": [
            {"no": 500, "zh_tw": "普通"},
            {"no": 600, "zh_tw": "传说"},
        ],
        "string_item": [
            {"no": 900, "zh_tw": "金币"},
            {"no": 901, "zh_tw": "经验药水"},
        ],
        "string_character": [
            {"no": 3001, "zh_tw": "史莱姆"},
            {"no": 2002, "zh_tw": "哥布林"},
        ],
        "string_cashshop": [
            {"no": 7001, "zh_tw": "新手礼包"},
            {"no": 7002, "zh_tw": "超值"},
        ],
        "string_ui": [{"no": 8001, "zh_tw": "限购{0}次"}],
        "item": [
            {"no": 7, "name_sno": 900},
            {"no": 8, "name_sno": 901},
        ],
        "item_drop_group": [
            {"no": 55, "item_no": 7, "amount": 2, "drop_rate": 1500},
        ],
        "hero": [
            {"no": 2001, "name_sno": 3001},
            {"no": 2002},
        ],
        "key_values": [
            {"key_name": "BP_monster_base", "values_data": "100"},
            {"key_name": "BP_monster_level", "values_data": "10"},
            {"key_name": "BP_monster_level_per", "values_data": "1"},
        ],
        "hero_grade": [{"name_sno": 600, "hero_grade_value": 1.5}],
        "hero_level_grade": [
            {"level": 1, "value": 1.0},
            {"level": 10, "value": 1.25},
        ],
    }


def sample_files(**overrides) -> Dict[str, Any]:
    """sample_tables 를 원격 파일명 기준으로 바꾼 것 (MockOrigin 용)"""
    files = full_tables(**{TABLE_FILES[attr]: rows for attr, rows in sample_tables().items()})
    files.update(overrides)
    return files
