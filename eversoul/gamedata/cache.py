import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Set

from sqlalchemy.exc import SQLAlchemyError

from eversoul.core.config import CACHE_EXPIRY_HOURS, MEMORY_CACHE_MAX_SIZE, ENABLE_MEMORY_CACHE
from eversoul.gamedata.fetcher import TableFetcher, source_value
from eversoul.gamedata.store import PersistedTableStore
from eversoul.schemas.cache import CacheStats, MemoryCacheStats, PersistedCacheStats

logger = logging.getLogger(__name__)

# 영속 계층 오류는 캐시 미스로 취급 (호출자에게 올리지 않음)
STORE_ERRORS = (SQLAlchemyError, OSError, ValueError)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TableCache:
    """
    [2단 캐시] 원격 테이블 조회 앞단
    1. 프로세스 메모리 (빠름, 휘발성, 크기 제한)
    2. 영속 저장소 (재시작 후에도 유지, 만료 시간 제한)
    3. 둘 다 없으면 원격 fetch -> 양쪽에 저장 (영속 저장은 백그라운드)
    """

    def __init__(
        self,
        fetcher: TableFetcher,
        store: Optional[PersistedTableStore] = None,
        expiry: timedelta = timedelta(hours=CACHE_EXPIRY_HOURS),
        max_memory_entries: int = MEMORY_CACHE_MAX_SIZE,
        enable_memory: bool = ENABLE_MEMORY_CACHE,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.fetcher = fetcher
        self.store = store
        self.expiry = expiry
        self.max_memory_entries = max_memory_entries
        self.enable_memory = enable_memory
        self.clock = clock

        self._memory: Dict[str, Any] = {}
        self._pending_writes: Set[asyncio.Task] = set()
        self.hits = 0
        self.misses = 0
        self.persisted_hits = 0

    @staticmethod
    def cache_key(source: str, table: str) -> str:
        return f"{source}-{table}"

    async def get(self, source, table: str) -> Any:
        source = source_value(source)
        key = self.cache_key(source, table)

        # 1. Fast Path: Memory
        if self.enable_memory and key in self._memory:
            self.hits += 1
            logger.debug(f"⚡ memory hit: {key} (hits={self.hits})")
            return self._memory[key]

        # 2. Persisted store
        rows = await self._read_persisted(source, table)
        if rows is not None:
            self.persisted_hits += 1
            logger.debug(f"🗄️ persisted hit: {key} (hits={self.persisted_hits})")
            self._remember(key, rows)
            return rows

        # 3. Slow Path: Remote origin
        self.misses += 1
        logger.info(f"❌ cache miss, downloading: {key} (misses={self.misses})")
        rows = await self.fetcher.fetch(source, table)

        self._remember(key, rows)
        self._schedule_persist(source, table, rows)
        return rows

    def discard(self, source, table: str) -> None:
        """메모리 계층에서 한 항목만 제거 (갱신 작업 후 재적재 유도)"""
        self._memory.pop(self.cache_key(source_value(source), table), None)

    def reset(self) -> None:
        self._memory.clear()
        self.hits = 0
        self.misses = 0
        self.persisted_hits = 0

    async def wait_for_pending_writes(self) -> None:
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes))

    async def stats(self) -> CacheStats:
        stats_by_source = None
        if self.store is not None:
            try:
                stats_by_source = await self.store.count_by_source()
            except STORE_ERRORS:
                logger.warning("Failed to read persisted cache stats", exc_info=True)

        return CacheStats(
            memory=MemoryCacheStats(
                total_entries=len(self._memory),
                hits=self.hits,
                misses=self.misses,
            ),
            persisted=PersistedCacheStats(
                hits=self.persisted_hits,
                stats_by_source=stats_by_source,
            ),
        )

    async def clear(self) -> Optional[int]:
        """
        메모리/카운터 초기화 + 영속 엔트리 전체 삭제 + 저장소 압축
        저장소 쪽이 실패하면 None 반환 (메모리는 항상 비워짐)
        """
        # 진행 중인 백그라운드 저장이 삭제 이후에 되살아나지 않도록 먼저 기다림
        await self.wait_for_pending_writes()
        self.reset()

        if self.store is None:
            return None

        try:
            deleted = await self.store.delete_all()
            await self.store.compact()
        except STORE_ERRORS:
            logger.exception("Failed to clear persisted cache")
            return None

        logger.info(f"🧹 cache cleared: {deleted} persisted entries removed")
        return deleted

    # --- internal ---

    def _is_fresh(self, fetched_at: datetime) -> bool:
        if fetched_at.tzinfo is None:
            fetched_at = fetched_at.replace(tzinfo=timezone.utc)
        return self.clock() <= fetched_at + self.expiry

    async def _read_persisted(self, source: str, table: str) -> Any:
        if self.store is None:
            return None
        try:
            entry = await self.store.get_entry(source, table)
        except STORE_ERRORS:
            logger.warning(f"Persisted cache read failed: {source}/{table}", exc_info=True)
            return None

        if entry is None or not entry.is_valid:
            return None
        if not self._is_fresh(entry.fetched_at):
            logger.info(f"⏰ persisted entry expired: {source}/{table}")
            return None
        return entry.data

    def _remember(self, key: str, rows: Any) -> None:
        if not self.enable_memory:
            return
        self._memory[key] = rows

        if len(self._memory) > self.max_memory_entries:
            # 가장 최근에 추가된 80%만 유지
            keep = int(self.max_memory_entries * 0.8)
            before = len(self._memory)
            entries = list(self._memory.items())
            self._memory = dict(entries[len(entries) - keep:]) if keep else {}
            logger.debug(f"memory cache trimmed: {before} -> {len(self._memory)}")

    def _schedule_persist(self, source: str, table: str, rows: Any) -> None:
        if self.store is None:
            return
        task = asyncio.create_task(self._persist(source, table, rows))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _persist(self, source: str, table: str, rows: Any) -> None:
        try:
            await self.store.upsert_entry(source, table, rows, self.clock(), True)
            logger.debug(f"💾 persisted: {source}/{table}")
        except STORE_ERRORS:
            logger.warning(f"Persisted cache write failed: {source}/{table}", exc_info=True)
