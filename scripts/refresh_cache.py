#!/usr/bin/env python3
"""
Quick Start Script
원격 마스터 데이터를 받아 영속 캐시(game_data_cache)를 갱신
  python scripts/refresh_cache.py [live|review|all]
"""

import asyncio
import logging
import os
import sys

import httpx
from dotenv import load_dotenv

# .env 파일 로드
load_dotenv()

from eversoul.core.config import FETCH_TIMEOUT, LOG_LEVEL, RefreshTarget
from eversoul.core.database import SessionLocal, engine, init_models
from eversoul.core.logging import setup_logging
from eversoul.gamedata.fetcher import TableFetcher
from eversoul.gamedata.refresh import CacheRefresher
from eversoul.gamedata.store import PersistedTableStore, UpdateTaskLog


async def run(target: RefreshTarget) -> int:
    try:
        await init_models()
        async with httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True) as client:
            refresher = CacheRefresher(
                TableFetcher(client),
                PersistedTableStore(SessionLocal),
                UpdateTaskLog(SessionLocal),
            )
            result = await refresher.refresh(target, task_type="manual")
    finally:
        await engine.dispose()
    return len(result.failed_files)


def main():
    """환경 변수 / 인자 기반 갱신 실행"""
    logger = setup_logging(LOG_LEVEL)

    raw_target = sys.argv[1] if len(sys.argv) > 1 else os.getenv("REFRESH_TARGET", "all")
    try:
        target = RefreshTarget(raw_target)
    except ValueError:
        logger.error(f"Invalid target: {raw_target} (live / review / all)")
        sys.exit(2)

    try:
        failed = asyncio.run(run(target))
    except KeyboardInterrupt:
        logger.warning("⚠️  Refresh interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"❌ Refresh failed: {e}")
        sys.exit(1)

    if failed:
        logger.warning(f"⚠️  {failed} table(s) failed, see log above")
    logger.info("✅ Refresh finished")


if __name__ == "__main__":
    main()
