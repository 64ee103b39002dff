"""Fetch Result - Standardized Result Format

Provides a standardized format for results across every tier of the
fallback chain (grounded / ai / cache / seed / quota-limited).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from localevents.schemas.event_schema import EventRecord, EventSearchData, ProvenanceSource


class FetchStatus(str, Enum):
    """조회 상태

    실제로 데이터를 만들어낸 tier를 나타냅니다 (시도한 tier가 아님).
    """

    GROUNDED = "grounded"  # 검색 기반 생성 + 출처 있음
    AI = "ai"  # 순수 생성 (출처 없음)
    CACHE = "cache"  # 캐시 (만료된 캐시 포함)
    SEED = "seed"  # 정적 seed 데이터
    QUOTA_LIMITED = "quota-limited"  # 쿼터 소진, 이벤트 0건


@dataclass
class FetchResult:
    """조회 결과 표준 포맷

    Attributes:
        status: 조회 상태
        events: 이벤트 목록 (순서 유지)
        sources: grounded 출처 목록
        key: 쿼리 키 문자열
        page: 페이지
        stale: 만료된 캐시에서 제공되었는지
        elapsed_ms: 소요 시간 (밀리초)
    """

    status: FetchStatus
    events: list[EventRecord] = field(default_factory=list)
    sources: list[ProvenanceSource] = field(default_factory=list)

    # 메타데이터
    key: Optional[str] = None
    page: int = 1
    stale: bool = False
    elapsed_ms: Optional[float] = None

    @property
    def is_live(self) -> bool:
        """업스트림에서 새로 받아온 결과인지"""
        return self.status in (FetchStatus.GROUNDED, FetchStatus.AI)

    @property
    def is_degraded(self) -> bool:
        return self.status in (FetchStatus.SEED, FetchStatus.QUOTA_LIMITED) or self.stale

    @property
    def titles(self) -> list[str]:
        return [e.title for e in self.events]

    def to_data(self) -> EventSearchData:
        """API 응답 본문으로 변환"""
        return EventSearchData(
            events=self.events,
            sources=self.sources,
            status=self.status.value,
            stale=self.stale,
            page=self.page,
            elapsed_ms=self.elapsed_ms or 0.0,
        )

    @classmethod
    def from_upstream(
        cls, events: list[EventRecord], sources: list[ProvenanceSource],
        key: str, page: int, elapsed_ms: float
    ) -> "FetchResult":
        """업스트림 성공 결과 생성

        출처가 하나라도 있으면 grounded, 없으면 ai 입니다.
        """
        return cls(
            status=FetchStatus.GROUNDED if sources else FetchStatus.AI,
            events=events,
            sources=sources,
            key=key,
            page=page,
            elapsed_ms=elapsed_ms,
        )

    @classmethod
    def from_cache(
        cls, events: list[EventRecord], sources: list[ProvenanceSource],
        key: str, page: int, elapsed_ms: float, stale: bool = False
    ) -> "FetchResult":
        """캐시 결과 생성"""
        return cls(
            status=FetchStatus.CACHE,
            events=events,
            sources=sources,
            key=key,
            page=page,
            stale=stale,
            elapsed_ms=elapsed_ms,
        )

    @classmethod
    def from_seed(
        cls, events: list[EventRecord], key: str, page: int, elapsed_ms: float
    ) -> "FetchResult":
        """seed 결과 생성"""
        return cls(
            status=FetchStatus.SEED,
            events=events,
            key=key,
            page=page,
            elapsed_ms=elapsed_ms,
        )

    @classmethod
    def quota_limited(cls, key: str, page: int, elapsed_ms: float) -> "FetchResult":
        """쿼터 소진 결과 생성 (오류 아님, 이벤트 0건)"""
        return cls(
            status=FetchStatus.QUOTA_LIMITED,
            key=key,
            page=page,
            elapsed_ms=elapsed_ms,
        )
