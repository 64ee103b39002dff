"""Pydantic 스키마 정의 (이벤트 / 캐시 / API)"""
from typing import Optional, List, Any
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime


class ProvenanceSource(BaseModel):
    """Grounded 검색 출처 (title + uri)"""
    title: str = Field("", description="출처 제목")
    uri: str = Field(..., min_length=1, description="출처 URI")


class EventRecord(BaseModel):
    """이벤트 레코드

    `id`는 정규화 단계에서만 부여합니다 (업스트림 값은 신뢰하지 않음).
    """
    id: str = Field("", description="정규화 단계에서 부여한 안정적인 ID")
    title: str = Field(..., min_length=1, max_length=300, description="이벤트 제목")
    category: str = Field("Community", description="카테고리")
    description: str = Field("", description="설명")
    date: Optional[str] = Field(None, description="날짜 (MM/DD/YYYY)")
    time: Optional[str] = Field(None, description="시간")
    location: str = Field("", description="장소/지역")
    venue: Optional[str] = Field(None, description="공연장/경기장")
    city_name: Optional[str] = Field(None, description="도시명")
    source_url: Optional[str] = Field(None, description="출처 URL")
    is_trending: bool = Field(False, description="인기 여부")
    lat: Optional[float] = Field(None, ge=-90, le=90, description="위도")
    lng: Optional[float] = Field(None, ge=-180, le=180, description="경도")
    age_restriction: Optional[str] = Field(None, description="All Ages | 18+ | 21+")
    price: Optional[str] = Field(None, description="가격 정보 원문")

    @model_validator(mode="before")
    @classmethod
    def _coerce_camel_case(cls, data: Any):
        """업스트림/seed 데이터의 camelCase 키를 허용"""
        if not isinstance(data, dict):
            return data

        aliases = {
            "cityName": "city_name",
            "sourceUrl": "source_url",
            "isTrending": "is_trending",
            "ageRestriction": "age_restriction",
        }
        data = dict(data)
        for camel, snake in aliases.items():
            if camel in data and snake not in data:
                data[snake] = data.pop(camel)
        return data

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("title must not be blank")
        return v.strip()


class EventFilters(BaseModel):
    """조회 필터"""
    category: Optional[str] = Field(None, max_length=50, description="카테고리 (All = 제약 없음)")
    keyword: Optional[str] = Field(None, max_length=200, description="키워드")
    start_date: Optional[str] = Field(None, max_length=20, description="시작일")
    end_date: Optional[str] = Field(None, max_length=20, description="종료일")
    latitude: Optional[float] = Field(None, ge=-90, le=90, description="사용자 위도")
    longitude: Optional[float] = Field(None, ge=-180, le=180, description="사용자 경도")


class FetchOptions(BaseModel):
    """조회 옵션"""
    page: int = Field(1, ge=1, le=100, description="페이지 (1부터)")
    force_refresh: bool = Field(False, description="캐시 무시 후 재조회")
    revalidate: bool = Field(False, description="신선한 캐시 히트여도 백그라운드 재검증")
    exclude_titles: Optional[List[str]] = Field(None, description="이전 페이지에서 노출된 제목")


class CachedEventsData(BaseModel):
    """캐시 엔트리 본문"""
    events: List[EventRecord] = Field(default_factory=list)
    sources: List[ProvenanceSource] = Field(default_factory=list)
    status: str = Field("cache", description="grounded | ai | cache | seed")


class CachedEvents(BaseModel):
    """저장소에 영속되는 캐시 포맷

    {"data": {"events", "sources", "status"}, "timestamp", "ttl"}
    """

    data: CachedEventsData
    timestamp: float = Field(..., ge=0, description="생성 시각 (epoch 초)")
    ttl: float = Field(..., gt=0, description="TTL (초)")


class EventSearchData(BaseModel):
    """이벤트 조회 결과 본문"""
    events: List[EventRecord] = Field(default_factory=list)
    sources: List[ProvenanceSource] = Field(default_factory=list)
    status: str = Field(..., description="grounded | ai | cache | seed | quota-limited")
    stale: bool = Field(False, description="만료된 캐시에서 제공되었는지")
    page: int = Field(1, ge=1)
    elapsed_ms: float = Field(0.0, ge=0)


class EventSearchResponse(BaseModel):
    """이벤트 조회 응답"""
    status: str = Field(..., description="success | unavailable | error")
    data: Optional[EventSearchData] = Field(None, description="조회 결과")
    message: str = Field(..., description="응답 메시지")
    error_code: str | None = Field(None, description="에러 코드 (error 시)")


class QuotaStatus(BaseModel):
    """tier별 쿼터 상태"""
    tier: str
    exhausted: bool
    remaining_s: float = Field(0.0, ge=0)


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    timestamp: datetime
    version: str
    storage_ok: bool
    quota: List[QuotaStatus] = Field(default_factory=list)
