"""전역 테스트 설정

역할:
- 테스트 환경 구성
- 공통 Fake (시계 / 업스트림 / seed) 주입

금지:
- 실제 네트워크 호출 (Gemini)
- 실제 Redis 연결
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable, Optional

import pytest


# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from localevents.engine import EventOrchestrator, QuotaTracker, TierStrategy  # noqa: E402
from localevents.providers.seed_provider import StaticSeedProvider  # noqa: E402
from localevents.repositories.impl.memory_store import MemoryStore  # noqa: E402
from localevents.schemas.event_schema import EventRecord  # noqa: E402
from localevents.services.impl.cache_service import CacheService  # noqa: E402
from tests.fixtures.upstream import FakeClock, FakeUpstream  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def test_env() -> None:
    """테스트 환경 변수 설정 (세션 전역)"""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_LEVEL"] = "INFO"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def cache_service(store: MemoryStore, clock: FakeClock) -> CacheService:
    return CacheService(store, prefix="test:v1:", clock=clock)


@pytest.fixture
def seed_provider() -> StaticSeedProvider:
    return StaticSeedProvider(
        {
            "tulsa": [
                EventRecord(id="seed-tulsa-1", title="FC Tulsa Home Match", category="Sports", is_trending=True),
                EventRecord(id="seed-tulsa-2", title="Cherry Street Market", category="Food & Drink"),
            ]
        },
        aliases={"Tulsa": "tulsa"},
    )


@pytest.fixture
def make_engine(cache_service: CacheService, clock: FakeClock) -> Callable[..., EventOrchestrator]:
    """EventOrchestrator 팩토리 (테스트마다 독립 인스턴스)"""

    def _make(
        upstream: FakeUpstream,
        seed: Optional[StaticSeedProvider] = None,
        merge_seed: bool = False,
    ) -> EventOrchestrator:
        return EventOrchestrator(
            cache_service=cache_service,
            upstream_client=upstream,
            quota=QuotaTracker(clock=clock),
            seed_provider=seed,
            strategy=TierStrategy(grounded_backoff_s=60.0, base_backoff_s=300.0),
            merge_seed=merge_seed,
        )

    return _make
