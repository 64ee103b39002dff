"""Result Normalizer - stable ids, title dedup, seed merge.

Records are identified by (key, page, raw index), never by upstream ids.
The dedup identity is the lower-cased, whitespace-collapsed title.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from localevents.core.logging import logger
from localevents.schemas.event_schema import EventRecord

from .keys import QueryKey, event_id

_TRUTHY = {"true", "yes", "1", "y"}


def normalize_title(title: Optional[str]) -> str:
    """
    중복 판정용 제목 정규화

    예:
    - "  FC Tulsa   Home Match " -> "fc tulsa home match"
    """
    if not title:
        return ""
    return re.sub(r"\s+", " ", str(title)).strip().casefold()


def _coerce_float(value: Any, lower: float, upper: float) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or not (lower <= number <= upper):
        return None
    return number


def _coerce_raw(raw: dict[str, Any]) -> dict[str, Any]:
    """업스트림의 느슨한 필드 타입 보정"""
    data = dict(raw)
    data.pop("id", None)

    for field_name, (lower, upper) in (("lat", (-90.0, 90.0)), ("lng", (-180.0, 180.0))):
        if field_name in data:
            data[field_name] = _coerce_float(data[field_name], lower, upper)

    for trending_key in ("isTrending", "is_trending"):
        value = data.get(trending_key)
        if isinstance(value, str):
            data[trending_key] = value.strip().lower() in _TRUTHY
        elif value is None and trending_key in data:
            data[trending_key] = False

    if data.get("price") is not None and not isinstance(data["price"], str):
        data["price"] = str(data["price"])

    for text_key in ("category", "description", "location"):
        if data.get(text_key) is None:
            data.pop(text_key, None)

    return data


class EventNormalizer:
    """이벤트 정규화/중복 제거기

    Usage:
        normalizer = EventNormalizer()
        events = normalizer.normalize(raw, key, page=2, exclude_titles=page1_titles)
        merged = normalizer.merge_with_seed(events, seed)
    """

    def normalize(
        self,
        raw_events: Iterable[Any],
        key: QueryKey,
        page: int,
        exclude_titles: Iterable[str] = (),
    ) -> list[EventRecord]:
        """원시 이벤트 → EventRecord 목록

        Args:
            raw_events: 업스트림 원시 이벤트 (dict 목록)
            key: 쿼리 키 (ID 생성용)
            page: 페이지
            exclude_titles: 이미 노출된 제목 (페이지네이션 연속성)

        Returns:
            list[EventRecord]: 순서를 유지한, 중복 없는 레코드
        """
        seen = {normalize_title(t) for t in exclude_titles}
        seen.discard("")
        records: list[EventRecord] = []
        dropped = 0

        for index, raw in enumerate(raw_events or []):
            if not isinstance(raw, dict):
                dropped += 1
                continue

            identity = normalize_title(raw.get("title"))
            if not identity or identity in seen:
                dropped += 1
                continue

            try:
                record = EventRecord(**_coerce_raw(raw))
            except ValidationError as e:
                logger.debug(f"[NORMALIZER] invalid record skipped: index={index}, errors={e.error_count()}")
                dropped += 1
                continue

            seen.add(identity)
            records.append(record.model_copy(update={"id": event_id(key, page, index)}))

        if dropped:
            logger.debug(f"[NORMALIZER] dropped {dropped} record(s): key={key.value}, page={page}")
        return records

    @staticmethod
    def merge_with_seed(live: list[EventRecord], seed: list[EventRecord]) -> list[EventRecord]:
        """live 결과 우선, 제목이 겹치지 않는 seed만 뒤에 이어붙임"""
        return EventNormalizer.dedupe([*live, *seed])

    @staticmethod
    def dedupe(events: Iterable[EventRecord]) -> list[EventRecord]:
        """집계 결과 내 중복 제거 (첫 등장 우선)"""
        seen: set[str] = set()
        unique: list[EventRecord] = []
        for record in events:
            identity = normalize_title(record.title)
            if identity in seen:
                continue
            seen.add(identity)
            unique.append(record)
        return unique
