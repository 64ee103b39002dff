"""QuotaTracker / TierStrategy 테스트"""
import pytest

from localevents.core.exceptions import (
    MalformedResponseException,
    RateLimitedException,
    RequestCancelledException,
    UpstreamUnavailableException,
)
from localevents.engine import QuotaTracker, TierStrategy
from localevents.engine.strategy import Tier


class TestQuotaTracker:
    """쿼터 소진/자동 복구 테스트"""

    def test_self_heals_after_backoff(self, clock):
        quota = QuotaTracker(clock=clock)
        quota.mark_exhausted(Tier.GROUNDED, 60)

        clock.advance(59)
        assert quota.is_exhausted(Tier.GROUNDED)

        clock.advance(1)
        assert not quota.is_exhausted(Tier.GROUNDED)

    def test_tiers_are_independent(self, clock):
        quota = QuotaTracker(clock=clock)
        quota.mark_exhausted(Tier.GROUNDED, 60)

        assert quota.is_exhausted(Tier.GROUNDED)
        assert not quota.is_exhausted(Tier.BASE)

    def test_exhausted_until_never_shrinks(self, clock):
        """짧은 backoff로 다시 기록해도 차단 구간은 줄지 않음"""
        quota = QuotaTracker(clock=clock)
        first = quota.mark_exhausted(Tier.BASE, 300)
        clock.advance(10)
        second = quota.mark_exhausted(Tier.BASE, 60)

        assert second == first
        assert quota.remaining(Tier.BASE) == pytest.approx(290)

    def test_clear_and_reset(self, clock):
        quota = QuotaTracker(clock=clock)
        quota.mark_exhausted(Tier.GROUNDED, 60)
        quota.mark_exhausted(Tier.BASE, 300)

        quota.clear(Tier.GROUNDED)
        assert not quota.is_exhausted(Tier.GROUNDED)
        assert quota.is_exhausted(Tier.BASE)

        quota.reset()
        assert quota.snapshot() == {"grounded": 0.0, "base": 0.0}

    def test_non_positive_backoff_rejected(self, clock):
        with pytest.raises(ValueError):
            QuotaTracker(clock=clock).mark_exhausted(Tier.BASE, 0)


class TestTierStrategy:
    """에러 유형별 전략 테스트"""

    def test_only_rate_limit_marks_quota(self):
        strategy = TierStrategy()
        assert strategy.marks_quota(RateLimitedException("grounded"))
        assert not strategy.marks_quota(MalformedResponseException("no array"))
        assert not strategy.marks_quota(UpstreamUnavailableException("timeout"))

    def test_cancellation_never_falls_back(self):
        strategy = TierStrategy()
        assert not strategy.should_fallback(RequestCancelledException("events:a"))
        assert strategy.should_fallback(UpstreamUnavailableException("timeout"))
        assert strategy.should_fallback(RuntimeError("boom"))

    def test_backoff_per_tier(self):
        strategy = TierStrategy(grounded_backoff_s=30, base_backoff_s=600)
        assert strategy.backoff_for(Tier.GROUNDED) == 30
        assert strategy.backoff_for(Tier.BASE) == 600
