"""Seed Provider - 지역별 정적 이벤트 (읽기 전용)

업스트림 응답 전 즉시 렌더링용 placeholder이자,
모든 tier와 캐시가 실패했을 때의 최종 fallback 입니다.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol

from pydantic import ValidationError

from localevents.core.logging import logger
from localevents.engine.keys import GLOBAL_REGION, normalize_category
from localevents.schemas.event_schema import EventRecord
from localevents.utils.hash_utils import slugify
from localevents.utils.resource_loader import load_yaml_resource

TRENDING_CATEGORY = "trending"


class SeedProvider(Protocol):
    """seed 데이터 제공자 인터페이스"""

    def get_seed(self, region: str, category: Optional[str] = None) -> list[EventRecord]:
        ...


class StaticSeedProvider:
    """메모리에 적재된 seed 데이터

    Args:
        regions: region id → EventRecord 목록
        aliases: 지역명(소문자) → region id (예: "oklahoma city" → "okc")
    """

    def __init__(
        self,
        regions: Mapping[str, Iterable[EventRecord]],
        aliases: Optional[Mapping[str, str]] = None,
    ):
        self._regions: dict[str, list[EventRecord]] = {
            rid.casefold(): list(events) for rid, events in regions.items()
        }
        self._aliases: dict[str, str] = {k.casefold(): v.casefold() for k, v in (aliases or {}).items()}

    def _resolve(self, region: str) -> Optional[str]:
        name = (region or "").strip().casefold()
        if name in self._regions:
            return name
        return self._aliases.get(name)

    def get_seed(self, region: str, category: Optional[str] = None) -> list[EventRecord]:
        """지역/카테고리별 seed 조회

        - region "All": 모든 지역 합산
        - category "All"/None: 전체, "Trending": 인기 이벤트만
        """
        if (region or "").strip().casefold() == GLOBAL_REGION:
            events = [e for region_events in self._regions.values() for e in region_events]
        else:
            resolved = self._resolve(region)
            events = list(self._regions.get(resolved, [])) if resolved else []

        wanted = normalize_category(category)
        if wanted is None:
            return events
        if wanted == TRENDING_CATEGORY:
            return [e for e in events if e.is_trending]
        return [e for e in events if e.category.casefold() == wanted]

    @property
    def region_ids(self) -> list[str]:
        return list(self._regions)


def _build_events(region_id: str, raw_events: Iterable[Any], city_name: str) -> list[EventRecord]:
    events: list[EventRecord] = []
    for index, raw in enumerate(raw_events or []):
        if not isinstance(raw, dict):
            continue
        data = {"cityName": city_name, **raw}
        data["id"] = f"seed-{slugify(region_id)}-{index + 1}"
        try:
            events.append(EventRecord(**data))
        except ValidationError as e:
            logger.warning(f"[SEED] invalid seed event skipped: region={region_id}, index={index}, errors={e.error_count()}")
    return events


def load_seed_provider(resource: str = "seed_events.yaml") -> StaticSeedProvider:
    """YAML 리소스에서 seed 제공자 생성

    리소스가 없거나 비어있으면 빈 제공자를 반환합니다.
    """
    data = load_yaml_resource(resource)
    regions: dict[str, list[EventRecord]] = {}
    aliases: dict[str, str] = {}

    for region in data.get("regions", []) or []:
        if not isinstance(region, dict) or not region.get("id"):
            continue
        region_id = str(region["id"])
        name = str(region.get("name") or region_id)
        regions[region_id] = _build_events(region_id, region.get("events"), name)
        aliases[name] = region_id

    logger.info(f"[SEED] loaded {sum(len(v) for v in regions.values())} seed events for {len(regions)} regions")
    return StaticSeedProvider(regions, aliases)
