"""Tier Strategy - Grounded/Base Fallback Decision Logic

Determines tier order, fallback behaviour and backoff windows based on
error types.
"""

from enum import Enum
from typing import Protocol

from localevents.core.exceptions import (
    MalformedResponseException,
    RateLimitedException,
    RequestCancelledException,
    UpstreamUnavailableException,
)


class Tier(str, Enum):
    """업스트림 호출 모드

    - GROUNDED: 검색 기반 (느리고 비싸지만 출처 포함)
    - BASE: 생성 전용 (빠르지만 검증되지 않음)
    """

    GROUNDED = "grounded"
    BASE = "base"


# 한 번의 orchestration에서 항상 이 순서로만 시도 (병렬 금지)
TIER_ORDER: tuple[Tier, ...] = (Tier.GROUNDED, Tier.BASE)


class UpstreamClient(Protocol):
    """업스트림 어댑터 인터페이스

    GeminiEventClient가 구현해야 할 프로토콜입니다.
    """

    async def call(self, query, tier: Tier, token):
        """tier 모드로 업스트림 호출

        Args:
            query: UpstreamQuery
            tier: 호출 모드
            token: CancellationToken

        Returns:
            UpstreamPayload (events + sources)

        Raises:
            RateLimitedException: 쿼터 소진
            MalformedResponseException: 배열 추출 실패
            UpstreamUnavailableException: 네트워크/전송 실패
            RequestCancelledException: 토큰 취소
        """
        ...


class TierStrategy:
    """tier 전환 전략 결정

    에러 유형에 따라 다음 tier로 넘어갈지, 쿼터 상태를 갱신할지 결정합니다.

    Usage:
        strategy = TierStrategy(grounded_backoff_s=60, base_backoff_s=300)

        try:
            payload = await client.call(query, Tier.GROUNDED, token)
        except Exception as e:
            if strategy.marks_quota(e):
                quota.mark_exhausted(Tier.GROUNDED, strategy.backoff_for(Tier.GROUNDED))
            if strategy.should_fallback(e):
                payload = await client.call(query, Tier.BASE, token)
    """

    def __init__(self, grounded_backoff_s: float = 60.0, base_backoff_s: float = 300.0):
        self.grounded_backoff_s = grounded_backoff_s
        self.base_backoff_s = base_backoff_s

    @staticmethod
    def should_fallback(error: Exception) -> bool:
        """다음 tier로 Fallback 여부 결정

        취소는 오류가 아니므로 폴백하지 않고 즉시 중단합니다.
        업스트림 예외가 아닌 것(프로그래밍 오류 등)도 다음 tier로 흡수합니다.
        """
        return not isinstance(error, RequestCancelledException)

    @staticmethod
    def marks_quota(error: Exception) -> bool:
        """공유 쿼터 상태를 변경해야 하는지 (RateLimited만 해당)"""
        return isinstance(error, RateLimitedException)

    @staticmethod
    def is_transient(error: Exception) -> bool:
        """단일 호출 실패로 취급되는 오류인지"""
        return isinstance(error, (MalformedResponseException, UpstreamUnavailableException))

    def backoff_for(self, tier: Tier) -> float:
        """tier별 backoff 구간 (초)

        grounded는 짧게, base는 길게 잡습니다.
        """
        if tier == Tier.GROUNDED:
            return self.grounded_backoff_s
        return self.base_backoff_s
