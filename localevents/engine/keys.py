"""Cache Key Builder - Deterministic Query Identity

Encodes a query (region, filters, page, mode flags) into a stable string that
is the sole identity for caching and cancellation.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from localevents.core.exceptions import InvalidQueryException
from localevents.schemas.event_schema import EventFilters
from localevents.utils.hash_utils import hash_string, slugify

GLOBAL_REGION = "all"
KEY_NAMESPACE = "events"

# "All" / 미지정 / 빈 문자열은 모두 "카테고리 제약 없음"
_NO_CATEGORY = {"", "all"}


@dataclass(frozen=True)
class QueryKey:
    """쿼리 식별자 (불변)

    Attributes:
        value: 저장소/레지스트리에서 사용하는 안정적인 문자열 키
        region: 정규화된 지역명
        page: 페이지 번호
        canonical: 해시 이전의 정규 표현 (디버깅용)
    """

    value: str
    region: str
    page: int
    canonical: str

    @property
    def digest(self) -> str:
        return self.value.split(":", 1)[-1]

    @property
    def is_global(self) -> bool:
        """지역 제약 없는 전체 조회인지"""
        return self.region == GLOBAL_REGION

    def __str__(self) -> str:
        return self.value


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = re.sub(r"\s+", " ", str(value)).strip()
    return cleaned or None


def normalize_region(region: Optional[str]) -> str:
    """지역명 정규화 (대소문자/공백 무시)

    Raises:
        InvalidQueryException: 지역이 비어있는 경우
    """
    cleaned = _clean(region)
    if not cleaned:
        raise InvalidQueryException("region must not be empty")
    return cleaned.casefold()


def normalize_category(category: Optional[str]) -> Optional[str]:
    cleaned = _clean(category)
    if cleaned is None or cleaned.casefold() in _NO_CATEGORY:
        return None
    return cleaned.casefold()


def _coerce_filters(filters: Union[EventFilters, Mapping[str, Any], None]) -> EventFilters:
    if filters is None:
        return EventFilters()
    if isinstance(filters, EventFilters):
        return filters
    return EventFilters(**dict(filters))


def build_key(
    region: str,
    filters: Union[EventFilters, Mapping[str, Any], None] = None,
    page: int = 1,
    **flags: Any,
) -> QueryKey:
    """쿼리 키 생성 (순수 함수)

    정규화된 필드를 key-sorted JSON으로 직렬화한 뒤 SHA-256으로 인코딩합니다.
    프로퍼티 입력 순서와 무관하게 동일한 쿼리는 동일한 키를 갖습니다.

    Args:
        region: 지역명 ("All" = 전역 조회)
        filters: 카테고리/키워드/날짜/좌표 필터
        page: 페이지 (1부터)
        **flags: 모드 플래그 (None 값은 무시)

    Returns:
        QueryKey: 불변 쿼리 키

    Raises:
        InvalidQueryException: 지역이 비었거나 page가 1 미만인 경우
    """
    if not isinstance(page, int) or page < 1:
        raise InvalidQueryException(f"page must be a positive integer: {page}")

    f = _coerce_filters(filters)
    normalized_region = normalize_region(region)

    near = None
    if f.latitude is not None and f.longitude is not None:
        # 소수점 2자리(약 1km)로 묶어 캐시 적중률 확보
        near = [round(f.latitude, 2), round(f.longitude, 2)]

    keyword = _clean(f.keyword)
    canonical_fields = {
        "region": normalized_region,
        "category": normalize_category(f.category),
        "keyword": keyword.casefold() if keyword else None,
        "start_date": _clean(f.start_date),
        "end_date": _clean(f.end_date),
        "near": near,
        "page": page,
        "flags": {k: v for k, v in sorted(flags.items()) if v is not None},
    }
    canonical = json.dumps(canonical_fields, sort_keys=True, separators=(",", ":"), ensure_ascii=False)

    return QueryKey(
        value=f"{KEY_NAMESPACE}:{hash_string(canonical)}",
        region=normalized_region,
        page=page,
        canonical=canonical,
    )


def is_narrow_query(filters: Union[EventFilters, Mapping[str, Any], None]) -> bool:
    """키워드나 날짜로 좁혀진 쿼리인지 (짧은 TTL 대상)"""
    f = _coerce_filters(filters)
    return bool(_clean(f.keyword) or _clean(f.start_date) or _clean(f.end_date))


def event_id(key: QueryKey, page: int, index: int) -> str:
    """(key, page, index)에 대해 안정적인 이벤트 ID"""
    return f"{slugify(key.region)}-{page}-{index}-{key.digest[:8]}"
