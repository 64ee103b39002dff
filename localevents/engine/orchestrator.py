"""Event Orchestrator - Main Engine Entry Point

Coordinates the whole data-sourcing pipeline:
1. Key building + supersession of stale in-flight requests
2. Cache lookup (stale-while-revalidate, seed placeholder)
3. Grounded tier → base tier (strictly sequential)
4. Normalization / dedup / seed merge
5. Persistence and status reporting

Tier failures never propagate to the caller: the caller only ever sees a
FetchResult or None.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from localevents.core.exceptions import InvalidQueryException, RequestCancelledException
from localevents.core.logging import logger
from localevents.schemas.event_schema import EventFilters, EventRecord, FetchOptions
from localevents.schemas.upstream_schema import UpstreamPayload, UpstreamQuery
from localevents.services.impl.cache_service import CacheEntry, CacheService

from .cancellation import CancellationToken, InFlightRegistry
from .keys import QueryKey, build_key, is_narrow_query
from .normalizer import EventNormalizer
from .quota import QuotaTracker
from .result import FetchResult
from .strategy import TIER_ORDER, Tier, TierStrategy, UpstreamClient

UpdateCallback = Callable[[FetchResult], Any]


class EventOrchestrator:
    """이벤트 조회 엔진

    Cache → Grounded → Base → Stale cache → Seed 파이프라인을 관리합니다.
    CacheService / QuotaTracker / InFlightRegistry를 소유하며
    전역 상태 없이 주입받아 테스트마다 독립적으로 생성할 수 있습니다.
    """

    def __init__(
        self,
        cache_service: CacheService,
        upstream_client: UpstreamClient,
        quota: Optional[QuotaTracker] = None,
        registry: Optional[InFlightRegistry] = None,
        normalizer: Optional[EventNormalizer] = None,
        seed_provider: Optional[Any] = None,
        strategy: Optional[TierStrategy] = None,
        merge_seed: bool = True,
        events_per_page: int = 10,
    ):
        """
        Args:
            cache_service: 캐시 서비스
            upstream_client: 업스트림 어댑터 (call(query, tier, token) 구현)
            quota: 쿼터 추적기 (기본값: 새 인스턴스)
            registry: 진행 중 요청 레지스트리 (기본값: 새 인스턴스)
            normalizer: 정규화기
            seed_provider: seed 제공자 (get_seed(region, category) 구현, 선택)
            strategy: tier 전략 (backoff 구간)
            merge_seed: 1페이지 live 결과 뒤에 seed를 이어붙일지
            events_per_page: 업스트림에 요청할 이벤트 수
        """
        if cache_service is None:
            raise ValueError("cache_service must not be None")
        if upstream_client is None:
            raise ValueError("upstream_client must not be None")

        self.cache = cache_service
        self.client = upstream_client
        self.quota = quota or QuotaTracker()
        self.registry = registry or InFlightRegistry()
        self.normalizer = normalizer or EventNormalizer()
        self.seed_provider = seed_provider
        self.strategy = strategy or TierStrategy()
        self.merge_seed = merge_seed
        self.events_per_page = events_per_page

    # ------------------------------------------------------------------
    # 공개 API
    # ------------------------------------------------------------------

    async def fetch(
        self,
        region: str,
        filters: Union[EventFilters, Mapping[str, Any], None] = None,
        options: Union[FetchOptions, Mapping[str, Any], None] = None,
        on_update: Optional[UpdateCallback] = None,
    ) -> Optional[FetchResult]:
        """이벤트 조회

        Args:
            region: 지역명 ("All" = 전역)
            filters: 카테고리/키워드/날짜/좌표
            options: page / force_refresh / revalidate / exclude_titles
            on_update: 캐시·seed 데이터를 즉시 전달받을 콜백 (동기 호출)

        Returns:
            FetchResult 또는 None (데이터 없음, 또는 더 최신 요청에 의해 대체됨)

        Raises:
            InvalidQueryException: region/page/filters/options가 유효하지 않은 경우
        """
        started = time.perf_counter()
        f = self._filters(filters)
        opts = self._options(options)

        key = build_key(region, f, opts.page)
        token = self.registry.begin(key.value)
        logger.info(f"[ORCHESTRATOR] fetch started: region='{region}', page={opts.page}, key={key.value}")

        try:
            return await self._run(region, f, opts, key, token, on_update, started)
        except RequestCancelledException:
            logger.info(f"[ORCHESTRATOR] superseded, result discarded: key={key.value}")
            return None
        finally:
            self.registry.finish(key.value, token)

    def cancel(
        self,
        region: str,
        filters: Union[EventFilters, Mapping[str, Any], None] = None,
        page: int = 1,
    ) -> bool:
        """진행 중인 조회 취소 (해당 fetch는 None 반환)"""
        key = build_key(region, self._filters(filters), page)
        cancelled = self.registry.cancel(key.value)
        if cancelled:
            logger.info(f"[ORCHESTRATOR] cancelled by caller: key={key.value}")
        return cancelled

    def reset_quota(self) -> None:
        """수동 재시도 (쿼터 상태 초기화)"""
        self.quota.reset()

    def clear_cache(self, prefix: Optional[str] = None) -> int:
        return self.cache.clear(prefix)

    def quota_snapshot(self) -> dict[str, float]:
        return self.quota.snapshot()

    # ------------------------------------------------------------------
    # 파이프라인
    # ------------------------------------------------------------------

    async def _run(
        self,
        region: str,
        filters: EventFilters,
        options: FetchOptions,
        key: QueryKey,
        token: CancellationToken,
        on_update: Optional[UpdateCallback],
        started: float,
    ) -> Optional[FetchResult]:
        page = options.page

        # 1. 캐시 확인 (stale 사본은 최종 fallback용으로 보관)
        stale = self.cache.peek(key.value)
        delivered = False

        if options.force_refresh:
            if stale is not None:
                self.cache.delete(key.value)
        else:
            fresh = self.cache.get(key.value)
            if fresh is not None:
                cached = self._from_entry(fresh, key, started)
                if not options.revalidate:
                    logger.info(f"[ORCHESTRATOR] served from cache: key={key.value}")
                    return cached
                delivered = self._deliver(on_update, cached, token)
            elif stale is not None:
                delivered = self._deliver(on_update, self._from_entry(stale, key, started), token)

        # 즉시 렌더링용 seed placeholder
        if not delivered and page == 1:
            seed = self._seed(region, filters)
            if seed:
                self._deliver(on_update, FetchResult.from_seed(seed, key.value, page, self._elapsed(started)), token)

        # 2. 페이지네이션 연속성: 이전 페이지 제목 제외
        exclude = list(options.exclude_titles or [])
        if page > 1 and options.exclude_titles is None:
            exclude = self._previous_titles(region, filters, page)

        query = UpstreamQuery(
            region=region.strip(),
            category=filters.category,
            keyword=filters.keyword,
            start_date=filters.start_date,
            end_date=filters.end_date,
            latitude=filters.latitude,
            longitude=filters.longitude,
            page=page,
            count=self.events_per_page,
            exclude_titles=tuple(exclude),
        )

        # 3. Grounded → Base (순차, 병렬 금지)
        quota_limited = False
        for tier in TIER_ORDER:
            if self.quota.is_exhausted(tier):
                logger.info(
                    f"[ORCHESTRATOR] {tier.value} skipped: quota exhausted "
                    f"(remaining {self.quota.remaining(tier):.1f}s)"
                )
                quota_limited = True
                continue

            payload = await self._try_tier(query, tier, token)
            if isinstance(payload, UpstreamPayload):
                return self._complete(payload, tier, region, filters, key, page, exclude, token, started)
            quota_limited = payload is _RATE_LIMITED

        token.raise_if_cancelled()

        # 4. base tier까지 쿼터 소진 → 정상적인 강등 상태
        if quota_limited:
            logger.warning(f"[ORCHESTRATOR] quota limited: key={key.value}")
            return FetchResult.quota_limited(key.value, page, self._elapsed(started))

        # 5. 만료 캐시 → seed → None
        if stale is not None:
            logger.warning(f"[ORCHESTRATOR] all tiers failed, serving cached entry: key={key.value}")
            return self._from_entry(stale, key, started)

        if page == 1:
            seed = self._seed(region, filters)
            if seed:
                logger.warning(f"[ORCHESTRATOR] all tiers failed, serving seed: key={key.value}")
                return FetchResult.from_seed(seed, key.value, page, self._elapsed(started))

        logger.warning(f"[ORCHESTRATOR] unavailable: key={key.value}")
        return None

    async def _try_tier(self, query: UpstreamQuery, tier: Tier, token: CancellationToken):
        """tier 1회 시도

        Returns:
            UpstreamPayload (성공) | _RATE_LIMITED | _FAILED

        Raises:
            RequestCancelledException: 토큰 취소 (상태 변경 없이 중단)
        """
        try:
            payload = await self.client.call(query, tier, token)
        except Exception as e:
            if not self.strategy.should_fallback(e):
                raise
            token.raise_if_cancelled()
            if self.strategy.marks_quota(e):
                self.quota.mark_exhausted(tier, self.strategy.backoff_for(tier))
                logger.warning(f"[ORCHESTRATOR] {tier.value} rate limited: {e}")
                return _RATE_LIMITED
            if self.strategy.is_transient(e):
                logger.warning(f"[ORCHESTRATOR] {tier.value} failed: {e}")
            else:
                logger.error(f"[ORCHESTRATOR] {tier.value} failed unexpectedly: {type(e).__name__}: {e}", exc_info=True)
            return _FAILED

        token.raise_if_cancelled()
        return payload

    def _complete(
        self,
        payload: UpstreamPayload,
        tier: Tier,
        region: str,
        filters: EventFilters,
        key: QueryKey,
        page: int,
        exclude: list[str],
        token: CancellationToken,
        started: float,
    ) -> FetchResult:
        """성공 처리: 정규화 → seed 병합 → 저장 → 결과"""
        self.quota.clear(tier)

        events = self.normalizer.normalize(payload.events, key, page, exclude)
        if page == 1 and self.merge_seed:
            events = self.normalizer.merge_with_seed(events, self._seed(region, filters))

        result = FetchResult.from_upstream(
            events=events,
            sources=list(payload.sources),
            key=key.value,
            page=page,
            elapsed_ms=self._elapsed(started),
        )

        # 저장 직전 마지막 확인: 대체된 요청은 절대 캐시에 쓰지 않음
        if not self.registry.is_current(key.value, token):
            raise RequestCancelledException(key.value)
        ttl = self.cache.ttl_for(key.is_global, is_narrow_query(filters))
        self.cache.put(key.value, result.events, result.sources, result.status.value, ttl)

        logger.info(
            f"[ORCHESTRATOR] {tier.value} success: status={result.status.value}, "
            f"events={len(events)}, elapsed={result.elapsed_ms:.0f}ms"
        )
        return result

    # ------------------------------------------------------------------
    # 헬퍼
    # ------------------------------------------------------------------

    @staticmethod
    def _filters(filters: Union[EventFilters, Mapping[str, Any], None]) -> EventFilters:
        if isinstance(filters, EventFilters):
            return filters
        try:
            return EventFilters(**dict(filters or {}))
        except (ValidationError, TypeError) as e:
            raise InvalidQueryException(f"invalid filters: {e}") from e

    @staticmethod
    def _options(options: Union[FetchOptions, Mapping[str, Any], None]) -> FetchOptions:
        if isinstance(options, FetchOptions):
            return options
        try:
            return FetchOptions(**dict(options or {}))
        except (ValidationError, TypeError) as e:
            raise InvalidQueryException(f"invalid options: {e}") from e

    def _from_entry(self, entry: CacheEntry, key: QueryKey, started: float) -> FetchResult:
        return FetchResult.from_cache(
            events=list(entry.events),
            sources=list(entry.sources),
            key=key.value,
            page=key.page,
            elapsed_ms=self._elapsed(started),
            stale=not entry.is_valid(self.cache.now()),
        )

    def _seed(self, region: str, filters: EventFilters) -> list[EventRecord]:
        if self.seed_provider is None:
            return []
        try:
            return list(self.seed_provider.get_seed(region, filters.category))
        except Exception as e:
            logger.warning(f"[ORCHESTRATOR] seed provider failed: {type(e).__name__}: {e}")
            return []

    def _previous_titles(self, region: str, filters: EventFilters, page: int) -> list[str]:
        """캐시된 이전 페이지(1..page-1) 제목 수집"""
        titles: list[str] = []
        for previous in range(1, page):
            entry = self.cache.peek(build_key(region, filters, previous).value)
            if entry is not None:
                titles.extend(e.title for e in entry.events)
        return titles

    @staticmethod
    def _deliver(on_update: Optional[UpdateCallback], result: FetchResult, token: CancellationToken) -> bool:
        if on_update is None or token.cancelled:
            return False
        try:
            on_update(result)
        except Exception as e:
            logger.warning(f"[ORCHESTRATOR] on_update callback failed: {type(e).__name__}: {e}")
            return False
        return True

    @staticmethod
    def _elapsed(started: float) -> float:
        return (time.perf_counter() - started) * 1000


_RATE_LIMITED = object()
_FAILED = object()
