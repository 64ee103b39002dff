"""Upstream response parsing.

The model may wrap the JSON array in prose or markdown fences, so extraction
takes the text between the first ``[`` and the last
``]`` and requires it to decode to a list.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from localevents.core.exceptions import MalformedResponseException
from localevents.schemas.event_schema import ProvenanceSource


def extract_json_array(text: Optional[str]) -> list[Any]:
    """자유 텍스트에서 JSON 배열 추출

    Raises:
        MalformedResponseException: 유효한 배열을 찾지 못한 경우
    """
    if not text or not text.strip():
        raise MalformedResponseException("empty response text")

    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end == -1 or end < start:
        raise MalformedResponseException("no JSON array delimiters found")

    try:
        parsed = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise MalformedResponseException(f"invalid JSON array: {e.msg}", details={"position": e.pos})

    if not isinstance(parsed, list):
        raise MalformedResponseException("extracted JSON is not an array")
    return parsed


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def candidate_text(response: dict[str, Any]) -> str:
    """첫 번째 candidate의 text part를 이어붙임"""
    candidates = response.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))


def grounding_sources(response: dict[str, Any]) -> list[ProvenanceSource]:
    """groundingMetadata.groundingChunks[].web → 출처 목록 (URI 기준 중복 제거)"""
    candidates = response.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return []

    metadata = candidates[0].get("groundingMetadata")
    if not isinstance(metadata, dict):
        return []
    sources: list[ProvenanceSource] = []
    seen: set[str] = set()
    chunks = metadata.get("groundingChunks")
    for chunk in chunks if isinstance(chunks, list) else []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not isinstance(web, dict):
            continue
        uri = _text(web.get("uri"))
        if not uri or uri in seen:
            continue
        seen.add(uri)
        sources.append(ProvenanceSource(title=_text(web.get("title")), uri=uri))
    return sources


def is_quota_error(status_code: int, body: str) -> bool:
    """429 또는 RESOURCE_EXHAUSTED 응답인지"""
    if status_code == 429:
        return True
    if not body:
        return False
    try:
        error = json.loads(body).get("error") or {}
    except (json.JSONDecodeError, AttributeError):
        return False
    return isinstance(error, dict) and error.get("status") == "RESOURCE_EXHAUSTED"
