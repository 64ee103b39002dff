"""이벤트 캐시 서비스 - TTL / eviction / 강등 로직만 담당"""
import json
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from pydantic import ValidationError

from localevents.core.config import settings
from localevents.core.exceptions import (
    CacheSerializationException,
    StorageFullException,
    StorageUnavailableException,
)
from localevents.core.logging import logger
from localevents.repositories.base import Store
from localevents.repositories.impl.null_store import NullStore
from localevents.schemas.event_schema import (
    CachedEvents,
    CachedEventsData,
    EventRecord,
    ProvenanceSource,
)


@dataclass
class CacheEntry:
    """캐시 엔트리 (통째로 교체, 부분 수정 없음)"""

    key: str
    events: list[EventRecord] = field(default_factory=list)
    sources: list[ProvenanceSource] = field(default_factory=list)
    status: str = "cache"
    created_at: float = 0.0
    ttl: float = 3600.0

    def is_valid(self, now: float) -> bool:
        return now - self.created_at < self.ttl

    def to_json(self) -> str:
        try:
            return CachedEvents(
                data=CachedEventsData(events=self.events, sources=self.sources, status=self.status),
                timestamp=self.created_at,
                ttl=self.ttl,
            ).model_dump_json()
        except (TypeError, ValueError) as e:
            raise CacheSerializationException("serialize", str(e), details={"key": self.key})

    @classmethod
    def from_json(cls, key: str, raw: str) -> "CacheEntry":
        try:
            cached = CachedEvents.model_validate_json(raw)
        except ValidationError as e:
            raise CacheSerializationException("deserialize", str(e), details={"key": key})
        return cls(
            key=key,
            events=list(cached.data.events),
            sources=list(cached.data.sources),
            status=cached.data.status,
            created_at=cached.timestamp,
            ttl=cached.ttl,
        )


class CacheService:
    """이벤트 캐시 관리 서비스

    - 저장소 키 = prefix(버전 포함) + 쿼리 키
    - 만료 엔트리는 조회 시 지연 삭제, 용량 부족 시 오래된 절반 선제 삭제
    - 저장소 장애 시 no-op 캐시로 강등 (호출자는 절대 예외를 보지 않음)
    """

    def __init__(
        self,
        store: Store,
        prefix: Optional[str] = None,
        clock: Optional[Callable[[], float]] = None,
        ttl_global: Optional[int] = None,
        ttl_default: Optional[int] = None,
        ttl_filtered: Optional[int] = None,
    ):
        self.store = store
        self.prefix = prefix or settings.cache_prefix
        self.ttl_global = ttl_global or settings.cache_ttl_global
        self.ttl_default = ttl_default or settings.cache_ttl_default
        self.ttl_filtered = ttl_filtered or settings.cache_ttl_filtered
        self._clock = clock or time.time
        self._degraded = False

    # ------------------------------------------------------------------
    # 내부 헬퍼
    # ------------------------------------------------------------------

    def _storage_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _degrade(self, error: Exception) -> None:
        if not self._degraded:
            logger.warning(f"[CACHE] storage unavailable, degrading to no-op cache: {error}")
        self._degraded = True
        self.store = NullStore()

    def _read_entry(self, key: str) -> Optional[CacheEntry]:
        storage_key = self._storage_key(key)
        raw = self.store.read(storage_key)
        if not raw:
            return None
        try:
            return CacheEntry.from_json(key, raw)
        except CacheSerializationException as e:
            logger.warning(f"[CACHE] corrupt entry dropped: key={key}, error={e.error_code}")
            self.store.delete(storage_key)
            return None

    # ------------------------------------------------------------------
    # 공개 API
    # ------------------------------------------------------------------

    @property
    def degraded(self) -> bool:
        return self._degraded

    def now(self) -> float:
        return self._clock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        유효한 캐시 엔트리 조회

        만료된 엔트리는 삭제 후 None을 반환합니다.

        Args:
            key: 쿼리 키 문자열

        Returns:
            CacheEntry 또는 None
        """
        try:
            entry = self._read_entry(key)
            if entry is None:
                logger.debug(f"[CACHE] miss: key={key}")
                return None

            if not entry.is_valid(self._clock()):
                logger.debug(f"[CACHE] expired: key={key}")
                self.store.delete(self._storage_key(key))
                return None

            logger.info(f"[CACHE] hit: key={key}, events={len(entry.events)}")
            return entry

        except StorageUnavailableException as e:
            self._degrade(e)
            return None
        except Exception as e:
            logger.warning(f"[CACHE] get failed: {type(e).__name__}: {e}")
            return None

    def peek(self, key: str) -> Optional[CacheEntry]:
        """TTL과 무관하게 엔트리 조회 (부수효과 없음)

        모든 tier가 실패했을 때 만료된 캐시라도 제공하기 위해 사용합니다.
        """
        try:
            raw = self.store.read(self._storage_key(key))
            if not raw:
                return None
            return CacheEntry.from_json(key, raw)
        except StorageUnavailableException as e:
            self._degrade(e)
            return None
        except Exception as e:
            logger.debug(f"[CACHE] peek failed: {type(e).__name__}: {e}")
            return None

    def set(self, key: str, entry: CacheEntry) -> bool:
        """
        캐시 저장

        용량 부족 시 오래된 절반을 비우고 한 번 재시도합니다.

        Returns:
            성공 여부
        """
        try:
            payload = entry.to_json()
        except CacheSerializationException as e:
            logger.error(f"[CACHE] serialization failed: key={key}, error={e}")
            return False

        storage_key = self._storage_key(key)
        try:
            try:
                self.store.write(storage_key, payload)
            except StorageFullException as e:
                logger.warning(f"[CACHE] storage full, evicting oldest half: {e}")
                self.evict_oldest_half()
                self.store.write(storage_key, payload)

            logger.info(f"[CACHE] set: key={key}, events={len(entry.events)}, ttl={entry.ttl:.0f}s")
            return True

        except StorageFullException as e:
            logger.warning(f"[CACHE] write dropped after eviction: key={key}, error={e}")
            return False
        except StorageUnavailableException as e:
            self._degrade(e)
            return False
        except Exception as e:
            logger.warning(f"[CACHE] set failed: {type(e).__name__}: {e}")
            return False

    def put(
        self,
        key: str,
        events: list[EventRecord],
        sources: list[ProvenanceSource],
        status: str,
        ttl: float,
    ) -> bool:
        """현재 시각으로 새 엔트리를 만들어 저장"""
        entry = CacheEntry(
            key=key,
            events=list(events),
            sources=list(sources),
            status=status,
            created_at=self._clock(),
            ttl=ttl,
        )
        return self.set(key, entry)

    def delete(self, key: str) -> bool:
        """캐시 삭제"""
        try:
            return self.store.delete(self._storage_key(key))
        except StorageUnavailableException as e:
            self._degrade(e)
            return False
        except Exception as e:
            logger.warning(f"[CACHE] delete failed: {type(e).__name__}: {e}")
            return False

    def evict_oldest_half(self) -> int:
        """prefix에 속한 엔트리 중 timestamp 기준 오래된 절반 삭제

        Returns:
            삭제된 엔트리 수
        """
        aged: list[tuple[float, str]] = []
        for storage_key in list(self.store.keys(self.prefix)):
            raw = self.store.read(storage_key)
            timestamp = 0.0
            if raw:
                try:
                    timestamp = float(json.loads(raw).get("timestamp", 0.0))
                except (ValueError, TypeError, AttributeError):
                    # 파싱 불가 엔트리는 가장 오래된 것으로 취급
                    timestamp = 0.0
            aged.append((timestamp, storage_key))

        if not aged:
            return 0

        aged.sort(key=lambda item: item[0])
        victims = aged[: max(1, math.ceil(len(aged) / 2))]
        for _, storage_key in victims:
            self.store.delete(storage_key)

        logger.info(f"[CACHE] evicted {len(victims)}/{len(aged)} entries")
        return len(victims)

    def clear(self, prefix: Optional[str] = None) -> int:
        """
        관리용 일괄 삭제 (기본: 현재 prefix 전체)

        Args:
            prefix: 삭제할 저장소 키 prefix (버전 마이그레이션 시 이전 prefix)

        Returns:
            삭제된 엔트리 수
        """
        target = prefix if prefix is not None else self.prefix
        try:
            removed = 0
            for storage_key in list(self.store.keys(target)):
                if self.store.delete(storage_key):
                    removed += 1
            logger.info(f"[CACHE] cleared prefix={target!r}: {removed} entries")
            return removed
        except StorageUnavailableException as e:
            self._degrade(e)
            return 0
        except Exception as e:
            logger.warning(f"[CACHE] clear failed: {type(e).__name__}: {e}")
            return 0

    def purge_legacy(self, prefixes: Iterable[str]) -> int:
        """이전 버전 prefix 엔트리 정리 (현재 prefix는 건드리지 않음)"""
        removed = 0
        for legacy in prefixes:
            if not legacy or legacy == self.prefix or self.prefix.startswith(legacy):
                continue
            removed += self.clear(legacy)
        return removed

    def ttl_for(self, is_global: bool, narrow: bool) -> int:
        """쿼리 종류별 TTL (초)

        - 좁은 쿼리(키워드/날짜): 짧게
        - 전역(All) 쿼리: 길게
        """
        if narrow:
            return self.ttl_filtered
        if is_global:
            return self.ttl_global
        return self.ttl_default

    def health_check(self) -> bool:
        """저장소 상태 확인"""
        if self._degraded:
            return False
        try:
            return bool(self.store.health_check())
        except Exception:
            return False
