"""업스트림 / 시계 Fake"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from localevents.engine.strategy import Tier
from localevents.schemas.event_schema import ProvenanceSource
from localevents.schemas.upstream_schema import UpstreamPayload


@dataclass
class FakeClock:
    """수동으로 진행시키는 시계"""

    now: float = 1_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def raw_events(prefix: str, count: int) -> list[dict[str, Any]]:
    """업스트림 원시 이벤트 생성"""
    return [
        {
            "title": f"{prefix} Event {i}",
            "category": "Sports",
            "description": f"{prefix} description {i}",
            "date": "11/0{}/2024".format(i % 9 + 1),
            "location": "Downtown",
            "lat": 36.15,
            "lng": -95.99,
            "ageRestriction": "All Ages",
        }
        for i in range(count)
    ]


@dataclass
class FakeUpstream:
    """tier별 스크립트 응답을 돌려주는 업스트림

    responses[tier]는 UpstreamPayload / Exception / callable(query) 의 목록이며
    호출마다 앞에서부터 소비합니다 (마지막 항목은 계속 재사용).
    """

    responses: dict[Tier, list[Any]] = field(default_factory=dict)
    calls: list[tuple[Tier, Any]] = field(default_factory=list)

    async def call(self, query, tier: Tier, token):
        self.calls.append((tier, query))
        script = self.responses.get(tier) or [UpstreamPayload()]
        item = script.pop(0) if len(script) > 1 else script[0]
        if callable(item) and not isinstance(item, Exception):
            item = item(query)
            if asyncio.iscoroutine(item):
                item = await token.run(item)
        if isinstance(item, Exception):
            raise item
        return item

    def tiers_called(self) -> list[Tier]:
        return [tier for tier, _ in self.calls]


def grounded_payload(prefix: str = "Live", count: int = 3) -> UpstreamPayload:
    return UpstreamPayload(
        events=raw_events(prefix, count),
        sources=[ProvenanceSource(title="Tulsa World", uri="https://tulsaworld.com/events")],
    )


def base_payload(prefix: str = "Gen", count: int = 3) -> UpstreamPayload:
    return UpstreamPayload(events=raw_events(prefix, count), sources=[])
