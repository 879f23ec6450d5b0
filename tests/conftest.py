"""Pytest configuration and fixtures."""

import pytest

from eversoul.schemas.gamedata import GameDataBundle
from fakes import Clock, FakeStore, FakeTaskLog, make_bundle, sample_tables


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def task_log() -> FakeTaskLog:
    return FakeTaskLog()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def sample_bundle() -> GameDataBundle:
    return make_bundle(source="live", **sample_tables())


# 테스트 마커 정의
def pytest_configure(config):
    """Pytest 마커 등록."""
    config.addinivalue_line("markers", "unit: 단위 테스트 (DB/네트워크 불필요)")
    config.addinivalue_line("markers", "integration: 여러 계층을 묶은 테스트 (대역 사용)")
