"""업스트림 프롬프트 / 요청 본문 생성 (tier별)"""

from __future__ import annotations

from typing import Any

from localevents.engine.keys import normalize_category
from localevents.engine.strategy import Tier
from localevents.schemas.upstream_schema import UpstreamQuery

CATEGORIES: tuple[str, ...] = (
    "Sports",
    "Family Activities",
    "Entertainment",
    "Visitor Attractions",
    "Food & Drink",
    "Night Life",
    "Arts & Culture",
    "Outdoors",
    "Community",
)

# 너무 긴 제외 목록은 프롬프트를 낭비하므로 최근 것만 전달
MAX_EXCLUDED_TITLES = 40

EVENT_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING"},
            "category": {"type": "STRING"},
            "description": {"type": "STRING"},
            "date": {"type": "STRING"},
            "time": {"type": "STRING"},
            "location": {"type": "STRING"},
            "venue": {"type": "STRING"},
            "cityName": {"type": "STRING"},
            "sourceUrl": {"type": "STRING"},
            "isTrending": {"type": "BOOLEAN"},
            "lat": {"type": "NUMBER"},
            "lng": {"type": "NUMBER"},
            "ageRestriction": {"type": "STRING"},
            "price": {"type": "STRING"},
        },
        "required": ["title", "category", "description", "location", "date", "lat", "lng", "ageRestriction"],
    },
}


def _region_phrase(query: UpstreamQuery) -> str:
    if query.region.strip().casefold() == "all":
        return "major US cities"
    return query.region.strip()


def category_instruction(query: UpstreamQuery) -> str:
    category = normalize_category(query.category)
    region = _region_phrase(query)
    if category == "sports":
        return (
            "Include professional, collegiate, LOCAL HIGH SCHOOL, and YOUTH sports "
            f"(football, basketball, soccer, baseball). Focus on game schedules for schools in {region}."
        )
    if category == "trending":
        return "Only the most popular, high-demand picks right now."
    if category:
        return f"Strictly filter for {query.category.strip()}."
    return "Diverse mix: local festivals, High School/Youth sports, arts, and nightlife."


def date_instruction(query: UpstreamQuery) -> str:
    if query.start_date or query.end_date:
        return f"Dates: {query.start_date or 'today'} to {query.end_date or 'future'}."
    return "Upcoming this week/month."


def build_prompt(query: UpstreamQuery, tier: Tier) -> str:
    """tier별 자연어 프롬프트

    grounded tier는 responseSchema를 쓸 수 없으므로 JSON 배열 형식을 본문에서 강제합니다.
    """
    lines = [
        f"Find {query.count} unique local events for {_region_phrase(query)} (Page {query.page}).",
        category_instruction(query),
        date_instruction(query),
    ]
    if query.keyword:
        lines.append(f"Keyword: {query.keyword.strip()}")
    if query.latitude is not None and query.longitude is not None:
        lines.append(f"Prefer events near lat {query.latitude:.3f}, lng {query.longitude:.3f}.")
    if query.exclude_titles:
        excluded = list(query.exclude_titles)[-MAX_EXCLUDED_TITLES:]
        lines.append("Do NOT repeat these events: " + "; ".join(excluded))

    lines.extend([
        "",
        "MANDATORY:",
        "- If category is Sports, include High School and Youth athletic events.",
        "- Format dates as MM/DD/YYYY.",
        '- ageRestriction: "All Ages", "21+", "18+".',
        "- isTrending: true for popular picks.",
        "- Include lat/lng for mapping.",
        f"- Category must match: {', '.join(CATEGORIES)}.",
    ])
    if tier == Tier.GROUNDED:
        lines.append(
            "- Respond with a JSON array only. Each object has keys: "
            + ", ".join(EVENT_SCHEMA["items"]["properties"])
            + "."
        )
    else:
        lines.append("- JSON Array only.")
    return "\n".join(lines)


def build_request_body(query: UpstreamQuery, tier: Tier) -> dict[str, Any]:
    """generateContent 요청 본문

    - GROUNDED: google_search 도구 활성화 (출처 포함)
    - BASE: 도구 없이 JSON schema 강제 (빠르지만 검증 안 됨)
    """
    body: dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": build_prompt(query, tier)}]}],
    }
    if tier == Tier.GROUNDED:
        body["tools"] = [{"google_search": {}}]
    else:
        body["generationConfig"] = {
            "responseMimeType": "application/json",
            "responseSchema": EVENT_SCHEMA,
        }
    return body
