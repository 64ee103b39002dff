"""Gemini Event Client - tier-aware upstream adapter.

A pure strategy around one network call: no caching, no quota mutation.
Every failure is mapped onto the upstream exception taxonomy.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from localevents.core.config import settings
from localevents.core.exceptions import (
    MalformedResponseException,
    RateLimitedException,
    UpstreamUnavailableException,
)
from localevents.core.logging import logger
from localevents.engine.cancellation import CancellationToken
from localevents.engine.strategy import Tier
from localevents.schemas.upstream_schema import UpstreamPayload, UpstreamQuery

from .http_client import SharedHttpClient, get_shared_http_client
from .parsing import candidate_text, extract_json_array, grounding_sources, is_quota_error
from .prompts import build_request_body


class GeminiEventClient:
    """Gemini generateContent 어댑터

    - GROUNDED: google_search 도구 사용, 출처(groundingChunks) 반환
    - BASE: responseSchema 강제, 출처 없음

    Usage:
        client = GeminiEventClient(api_key="...")
        payload = await client.call(query, Tier.GROUNDED, token)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        http_client: Optional[SharedHttpClient] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout_s = timeout_s or settings.gemini_request_timeout_s
        self.http = http_client or get_shared_http_client()

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def call(self, query: UpstreamQuery, tier: Tier, token: CancellationToken) -> UpstreamPayload:
        """tier 모드로 이벤트 조회

        Args:
            query: 조회 조건
            tier: GROUNDED | BASE
            token: 취소 토큰 (네트워크 호출과 경쟁)

        Returns:
            UpstreamPayload: 원시 이벤트 + 출처

        Raises:
            RateLimitedException: 429 / RESOURCE_EXHAUSTED
            MalformedResponseException: 이벤트 배열 추출 실패
            UpstreamUnavailableException: API 키 누락, 전송 실패, 기타 non-2xx
            RequestCancelledException: 토큰 취소
        """
        token.raise_if_cancelled()

        if not self.api_key:
            raise UpstreamUnavailableException("API key is not configured")

        body = build_request_body(query, tier)
        logger.debug(f"[UPSTREAM] {tier.value} request: region='{query.region}', page={query.page}")

        response = await token.run(
            self.http.post_json(
                self.endpoint,
                body,
                timeout_s=self.timeout_s,
                headers={"x-goog-api-key": self.api_key},
            )
        )

        if response is None:
            raise UpstreamUnavailableException("transport failure", details={"tier": tier.value})

        status_code, text = response
        if is_quota_error(status_code, text):
            raise RateLimitedException(tier.value, details={"status_code": status_code})
        if not 200 <= status_code < 300:
            raise UpstreamUnavailableException(
                f"HTTP {status_code}",
                details={"tier": tier.value, "status_code": status_code},
            )

        return self.parse_response(text, tier)

    @staticmethod
    def parse_response(text: str, tier: Tier) -> UpstreamPayload:
        """generateContent 응답 본문 → UpstreamPayload

        Raises:
            MalformedResponseException: 본문/배열 파싱 실패
        """
        try:
            envelope: Any = json.loads(text) if text else None
        except json.JSONDecodeError as e:
            raise MalformedResponseException(f"response envelope is not JSON: {e.msg}")
        if not isinstance(envelope, dict):
            raise MalformedResponseException("response envelope is not an object")

        raw_events = extract_json_array(candidate_text(envelope))
        sources = grounding_sources(envelope) if tier == Tier.GROUNDED else []

        logger.info(
            f"[UPSTREAM] {tier.value} success: events={len(raw_events)}, sources={len(sources)}"
        )
        return UpstreamPayload(
            events=[e for e in raw_events if isinstance(e, dict)],
            sources=sources,
        )
