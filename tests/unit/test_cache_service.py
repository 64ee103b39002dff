"""캐시 서비스 유닛 테스트 (FakeClock + MemoryStore)"""
import json
from unittest.mock import MagicMock

from localevents.core.config import settings
from localevents.core.exceptions import StorageUnavailableException
from localevents.repositories.impl.memory_store import MemoryStore
from localevents.repositories.impl.null_store import NullStore
from localevents.schemas.event_schema import EventRecord, ProvenanceSource
from localevents.services.impl.cache_service import CacheEntry, CacheService


def _events(*titles):
    return [EventRecord(id=f"tulsa-1-{i}", title=t, category="Sports") for i, t in enumerate(titles)]


class TestCacheTTL:
    """TTL 판정 테스트"""

    def test_hit_just_before_expiry(self, cache_service, clock):
        """T+D-1 시점은 히트"""
        cache_service.put("events:a", _events("Rivalry Game"), [], "grounded", ttl=100)
        clock.advance(99)

        entry = cache_service.get("events:a")
        assert entry is not None
        assert [e.title for e in entry.events] == ["Rivalry Game"]
        assert entry.status == "grounded"

    def test_miss_after_expiry_and_lazy_delete(self, cache_service, clock, store):
        """T+D+1 시점은 미스이며 엔트리는 조회 시 삭제됨"""
        cache_service.put("events:a", _events("Rivalry Game"), [], "grounded", ttl=100)
        clock.advance(101)

        assert cache_service.get("events:a") is None
        assert len(store) == 0

    def test_peek_ignores_ttl(self, cache_service, clock):
        """peek은 만료 여부와 무관하게 엔트리를 돌려줌"""
        cache_service.put("events:a", _events("Rivalry Game"), [], "ai", ttl=100)
        clock.advance(500)

        entry = cache_service.peek("events:a")
        assert entry is not None
        assert not entry.is_valid(cache_service.now())

    def test_sources_round_trip(self, cache_service):
        sources = [ProvenanceSource(title="Tulsa World", uri="https://tulsaworld.com")]
        cache_service.put("events:a", _events("Rivalry Game"), sources, "grounded", ttl=100)

        entry = cache_service.get("events:a")
        assert entry.sources == sources

    def test_persisted_format(self, cache_service, store):
        """저장 포맷: {data: {events, sources, status}, timestamp, ttl}"""
        cache_service.put("events:a", _events("Rivalry Game"), [], "grounded", ttl=100)

        raw = json.loads(store.read("test:v1:events:a"))
        assert set(raw) == {"data", "timestamp", "ttl"}
        assert set(raw["data"]) == {"events", "sources", "status"}
        assert raw["timestamp"] == 1_000.0
        assert raw["ttl"] == 100


class TestCacheEviction:
    """용량 부족 시 eviction 테스트"""

    def test_evicts_oldest_half_then_writes(self, clock):
        store = MemoryStore(max_entries=4)
        service = CacheService(store, prefix="test:v1:", clock=clock)
        for i in range(4):
            assert service.put(f"events:{i}", _events(f"Event {i}"), [], "ai", ttl=3600)
            clock.advance(10)

        assert service.put("events:new", _events("Newest"), [], "ai", ttl=3600)

        assert sorted(store.keys("test:v1:")) == [
            "test:v1:events:2",
            "test:v1:events:3",
            "test:v1:events:new",
        ]

    def test_write_dropped_when_still_full(self, clock):
        """eviction 대상이 없으면 쓰기를 조용히 버림"""
        store = MemoryStore(max_entries=1)
        store.write("other:key", "x")
        service = CacheService(store, prefix="test:v1:", clock=clock)

        assert service.put("events:a", _events("A"), [], "ai", ttl=60) is False
        assert store.read("other:key") == "x"


class TestCacheDegrade:
    """저장소 장애 시 강등 테스트"""

    def test_unavailable_store_degrades_to_noop(self, clock):
        broken = MagicMock()
        broken.read.side_effect = StorageUnavailableException("disk gone")
        service = CacheService(broken, prefix="test:v1:", clock=clock)

        assert service.get("events:a") is None
        assert service.degraded is True
        assert isinstance(service.store, NullStore)
        service.put("events:a", _events("A"), [], "ai", ttl=60)
        assert service.get("events:a") is None
        assert service.health_check() is False

    def test_corrupt_entry_is_dropped(self, cache_service, store):
        store.write("test:v1:events:a", "{not json")

        assert cache_service.get("events:a") is None
        assert store.read("test:v1:events:a") is None
        assert cache_service.degraded is False


class TestCacheAdmin:
    """관리 작업 테스트"""

    def test_clear_only_touches_prefix(self, cache_service, store):
        cache_service.put("events:a", _events("A"), [], "ai", ttl=60)
        cache_service.put("events:b", _events("B"), [], "ai", ttl=60)
        store.write("unrelated:key", "keep")

        assert cache_service.clear() == 2
        assert store.read("unrelated:key") == "keep"

    def test_purge_legacy_keeps_current_prefix(self, cache_service, store):
        store.write("localevents:v1:events:x", "old")
        store.write("localevents:v2:events:y", "older")
        cache_service.put("events:a", _events("A"), [], "ai", ttl=60)

        removed = cache_service.purge_legacy(["localevents:v1:", "localevents:v2:", "test:v1:"])

        assert removed == 2
        assert cache_service.get("events:a") is not None

    def test_ttl_for_query_shape(self, cache_service):
        assert cache_service.ttl_for(is_global=False, narrow=True) == settings.cache_ttl_filtered
        assert cache_service.ttl_for(is_global=True, narrow=False) == settings.cache_ttl_global
        assert cache_service.ttl_for(is_global=False, narrow=False) == settings.cache_ttl_default


def test_cache_entry_validity_boundary():
    entry = CacheEntry(key="events:a", created_at=100.0, ttl=10.0)
    assert entry.is_valid(109.9)
    assert not entry.is_valid(110.0)
