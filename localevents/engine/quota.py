"""Quota Tracker - per-tier exhaustion windows with self-healing."""

from __future__ import annotations

import time
from typing import Callable, Optional

from localevents.core.logging import logger

from .strategy import Tier


class QuotaTracker:
    """tier별 쿼터 소진 상태 관리 (fail-open 자동 복구).

    - RateLimited 시 `exhausted_until = now + backoff` 로 일시 차단
    - backoff 구간이 지나면 자동 복구 (영구 차단 상태 없음)
    - 성공 시 즉시 해제
    - 쓰기는 오케스트레이터만 수행합니다.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        """초기화.

        Args:
            clock: 단조 시계 (테스트에서 주입, 기본값 time.monotonic)
        """
        self._clock = clock or time.monotonic
        self._exhausted_until: dict[Tier, float] = {}

    def is_exhausted(self, tier: Tier) -> bool:
        """tier가 소진 상태인가?"""
        until = self._exhausted_until.get(tier)
        if until is None:
            return False

        if self._clock() >= until:
            # 자동 복구
            self._exhausted_until.pop(tier, None)
            logger.info(f"[QUOTA] {tier.value} available again (auto-recovery)")
            return False

        return True

    def mark_exhausted(self, tier: Tier, backoff: float) -> float:
        """소진 기록 → backoff 동안 차단.

        소진 상태가 유지되는 동안 `exhausted_until`은 줄어들지 않습니다.

        Returns:
            float: 적용된 exhausted_until
        """
        if backoff <= 0:
            raise ValueError(f"backoff must be positive: {backoff}")

        candidate = self._clock() + backoff
        current = self._exhausted_until.get(tier, 0.0)
        until = max(current, candidate)
        self._exhausted_until[tier] = until
        logger.warning(f"[QUOTA] {tier.value} exhausted, backing off for {until - self._clock():.1f}s")
        return until

    def clear(self, tier: Tier) -> None:
        """성공 기록 → 소진 해제."""
        if self._exhausted_until.pop(tier, None) is not None:
            logger.info(f"[QUOTA] {tier.value} cleared")

    def reset(self) -> None:
        """수동 초기화 (사용자 재시도 등)."""
        self._exhausted_until.clear()
        logger.info("[QUOTA] all tiers reset")

    def remaining(self, tier: Tier) -> float:
        """소진 해제까지 남은 시간 (초)."""
        if not self.is_exhausted(tier):
            return 0.0
        return max(0.0, self._exhausted_until[tier] - self._clock())

    def snapshot(self) -> dict[str, float]:
        """tier → 남은 시간 (초). 소진되지 않은 tier는 0.0"""
        return {tier.value: self.remaining(tier) for tier in Tier}

    def __repr__(self) -> str:
        parts = ", ".join(f"{name}={left:.1f}s" for name, left in self.snapshot().items())
        return f"QuotaTracker({parts})"
