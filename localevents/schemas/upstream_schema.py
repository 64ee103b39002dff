"""업스트림 요청/응답 값 객체"""
from dataclasses import dataclass, field
from typing import Any, Optional

from localevents.schemas.event_schema import ProvenanceSource


@dataclass(frozen=True)
class UpstreamQuery:
    """업스트림 프롬프트 생성에 필요한 조회 조건

    region은 사용자가 입력한 표기 그대로 유지합니다 (프롬프트 품질).
    """

    region: str
    category: Optional[str] = None
    keyword: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    page: int = 1
    count: int = 10
    exclude_titles: tuple[str, ...] = ()


@dataclass
class UpstreamPayload:
    """업스트림 응답 (정규화 전)

    Attributes:
        events: 원시 이벤트 dict 목록
        sources: grounded 출처 (없으면 순수 생성 결과)
    """

    events: list[dict[str, Any]] = field(default_factory=list)
    sources: list[ProvenanceSource] = field(default_factory=list)

    @property
    def grounded(self) -> bool:
        return bool(self.sources)
