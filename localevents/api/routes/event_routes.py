"""Event Routes (Engine Layer)

HTTP Layer가 Engine Layer로 요청을 위임하는 단순한 Translator 역할만 수행합니다.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from localevents.core.exceptions import InvalidQueryException
from localevents.core.logging import logger, sanitize_for_log
from localevents.engine import EventOrchestrator, FetchStatus
from localevents.engine.factory import create_engine
from localevents.schemas.event_schema import EventFilters, EventSearchResponse, FetchOptions

router = APIRouter(prefix="/api/v1", tags=["events"])

# 싱글톤 엔진
_engine: Optional[EventOrchestrator] = None

_STATUS_MESSAGES = {
    FetchStatus.GROUNDED: "검색 기반 최신 이벤트입니다.",
    FetchStatus.AI: "AI가 생성한 이벤트입니다 (출처 미확인).",
    FetchStatus.CACHE: "캐시된 이벤트입니다.",
    FetchStatus.SEED: "오프라인 기본 이벤트입니다.",
    FetchStatus.QUOTA_LIMITED: "요청이 많아 잠시 로컬 데이터를 표시합니다.",
}


def get_engine() -> EventOrchestrator:
    """EventOrchestrator 싱글톤

    Engine Layer의 진입점을 제공합니다.
    """
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


def set_engine(engine: Optional[EventOrchestrator]) -> None:
    """엔진 교체 (테스트/종료 시)"""
    global _engine
    _engine = engine


@router.get("/events", response_model=EventSearchResponse)
async def search_events(
    region: str = Query(..., min_length=1, max_length=100, description="지역명 (All = 전체)"),
    category: Optional[str] = Query(None, max_length=50),
    keyword: Optional[str] = Query(None, max_length=200),
    start_date: Optional[str] = Query(None, max_length=20),
    end_date: Optional[str] = Query(None, max_length=20),
    page: int = Query(1, ge=1, le=100),
    force_refresh: bool = Query(False),
    engine: EventOrchestrator = Depends(get_engine),
):
    """이벤트 조회 API

    HTTP → Engine → Cache/Grounded/Base/Seed 파이프라인으로 실행
    """
    try:
        filters = EventFilters(
            category=category,
            keyword=keyword,
            start_date=start_date,
            end_date=end_date,
        )
        result = await engine.fetch(
            region,
            filters,
            FetchOptions(page=page, force_refresh=force_refresh),
        )
    except InvalidQueryException as e:
        logger.warning(f"[API] Input validation failed: region={sanitize_for_log(region)!r}, error={e}")
        return EventSearchResponse(
            status="error",
            data=None,
            message=f"입력 검증 실패: {e.message}",
            error_code=e.error_code,
        )

    if result is None:
        return EventSearchResponse(
            status="unavailable",
            data=None,
            message="지금은 이벤트를 불러올 수 없습니다. 기본 데이터를 사용하세요.",
        )

    if result.is_degraded:
        logger.info(f"[API] degraded response: status={result.status.value}, stale={result.stale}")

    return EventSearchResponse(
        status="success",
        data=result.to_data(),
        message=_STATUS_MESSAGES[result.status],
    )


@router.post("/events/quota/reset")
async def reset_quota(engine: EventOrchestrator = Depends(get_engine)):
    """쿼터 수동 초기화 (사용자 재시도)"""
    engine.reset_quota()
    return {"status": "success", "quota": engine.quota_snapshot()}


@router.delete("/events/cache")
async def clear_cache(engine: EventOrchestrator = Depends(get_engine)):
    """현재 버전 prefix 캐시 전체 삭제"""
    removed = engine.clear_cache()
    return {"status": "success", "removed": removed}
