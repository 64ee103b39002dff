"""헬스 체크 엔드포인트"""
from datetime import datetime

from fastapi import APIRouter, Depends

from localevents import __version__
from localevents.api.routes.event_routes import get_engine
from localevents.engine import EventOrchestrator
from localevents.schemas.event_schema import HealthResponse, QuotaStatus

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(engine: EventOrchestrator = Depends(get_engine)):
    """
    헬스 체크 엔드포인트

    - 캐시 저장소 상태
    - tier별 쿼터 상태

    쿼터 소진은 정상적인 강등 상태이므로 status에 반영하지 않습니다.
    """
    storage_ok = engine.cache.health_check()
    quota = [
        QuotaStatus(tier=tier, exhausted=remaining > 0, remaining_s=remaining)
        for tier, remaining in engine.quota_snapshot().items()
    ]

    return HealthResponse(
        status="ok" if storage_ok else "degraded",
        timestamp=datetime.now(),
        version=__version__,
        storage_ok=storage_ok,
        quota=quota,
    )


@router.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "service": "Local Events Engine",
        "version": __version__,
        "docs": "/docs"
    }
