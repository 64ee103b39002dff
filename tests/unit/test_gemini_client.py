"""GeminiEventClient 테스트 (HTTP 모의)"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from localevents.core.exceptions import (
    MalformedResponseException,
    RateLimitedException,
    RequestCancelledException,
    UpstreamUnavailableException,
)
from localevents.engine import CancellationToken
from localevents.engine.strategy import Tier
from localevents.schemas.upstream_schema import UpstreamQuery
from localevents.upstream.gemini_client import GeminiEventClient


QUERY = UpstreamQuery(region="Tulsa", category="Sports")


def _envelope(text: str, chunks=None) -> str:
    candidate = {"content": {"parts": [{"text": text}]}}
    if chunks is not None:
        candidate["groundingMetadata"] = {"groundingChunks": chunks}
    return json.dumps({"candidates": [candidate]})


@pytest.fixture
def mock_http():
    """SharedHttpClient 모의 객체"""
    http = MagicMock()
    http.post_json = AsyncMock(return_value=(200, _envelope("[]")))
    return http


@pytest.fixture
def client(mock_http):
    return GeminiEventClient(
        api_key="test-key",
        model="test-model",
        base_url="https://example.test/v1beta/",
        timeout_s=5,
        http_client=mock_http,
    )


@pytest.mark.asyncio
async def test_grounded_success_returns_sources(client, mock_http):
    events = [{"title": "Union vs. Jenks"}, "junk"]
    mock_http.post_json.return_value = (
        200,
        _envelope(
            "```json\n" + json.dumps(events) + "\n```",
            chunks=[{"web": {"uri": "https://tulsaworld.com", "title": "Tulsa World"}}],
        ),
    )

    payload = await client.call(QUERY, Tier.GROUNDED, CancellationToken("k"))

    assert payload.events == [{"title": "Union vs. Jenks"}]
    assert payload.grounded
    assert payload.sources[0].uri == "https://tulsaworld.com"

    url, body = mock_http.post_json.await_args.args
    assert url == "https://example.test/v1beta/models/test-model:generateContent"
    assert body["tools"] == [{"google_search": {}}]
    assert mock_http.post_json.await_args.kwargs["headers"] == {"x-goog-api-key": "test-key"}
    assert mock_http.post_json.await_args.kwargs["timeout_s"] == 5


@pytest.mark.asyncio
async def test_base_tier_ignores_grounding_metadata(client, mock_http):
    mock_http.post_json.return_value = (
        200,
        _envelope('[{"title": "Jazz Night"}]', chunks=[{"web": {"uri": "https://x.com"}}]),
    )

    payload = await client.call(QUERY, Tier.BASE, CancellationToken("k"))

    assert payload.events == [{"title": "Jazz Night"}]
    assert payload.sources == []
    assert "generationConfig" in mock_http.post_json.await_args.args[1]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code,body",
    [
        (429, ""),
        (400, json.dumps({"error": {"code": 429, "status": "RESOURCE_EXHAUSTED"}})),
    ],
)
async def test_quota_errors_raise_rate_limited(client, mock_http, status_code, body):
    mock_http.post_json.return_value = (status_code, body)

    with pytest.raises(RateLimitedException) as exc_info:
        await client.call(QUERY, Tier.GROUNDED, CancellationToken("k"))
    assert exc_info.value.tier == "grounded"


@pytest.mark.asyncio
async def test_server_error_raises_unavailable(client, mock_http):
    mock_http.post_json.return_value = (503, "unavailable")

    with pytest.raises(UpstreamUnavailableException):
        await client.call(QUERY, Tier.BASE, CancellationToken("k"))


@pytest.mark.asyncio
async def test_transport_failure_raises_unavailable(client, mock_http):
    mock_http.post_json.return_value = None

    with pytest.raises(UpstreamUnavailableException):
        await client.call(QUERY, Tier.BASE, CancellationToken("k"))


@pytest.mark.asyncio
async def test_prose_without_array_raises_malformed(client, mock_http):
    mock_http.post_json.return_value = (200, _envelope("I could not find any events."))

    with pytest.raises(MalformedResponseException):
        await client.call(QUERY, Tier.GROUNDED, CancellationToken("k"))


@pytest.mark.asyncio
async def test_missing_api_key_skips_network(mock_http):
    client = GeminiEventClient(api_key="", http_client=mock_http)

    with pytest.raises(UpstreamUnavailableException):
        await client.call(QUERY, Tier.BASE, CancellationToken("k"))
    mock_http.post_json.assert_not_called()


@pytest.mark.asyncio
async def test_cancelled_token_skips_network(client, mock_http):
    token = CancellationToken("k")
    token.cancel()

    with pytest.raises(RequestCancelledException):
        await client.call(QUERY, Tier.GROUNDED, token)
    mock_http.post_json.assert_not_called()


def test_parse_response_rejects_non_json_envelope():
    with pytest.raises(MalformedResponseException):
        GeminiEventClient.parse_response("<html>", Tier.BASE)


def test_parse_response_null_text_is_malformed():
    body = json.dumps({"candidates": [{"content": {"parts": [{"text": None}]}}]})

    with pytest.raises(MalformedResponseException):
        GeminiEventClient.parse_response(body, Tier.GROUNDED)
