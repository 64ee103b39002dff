"""FastAPI 앱 팩토리

uvicorn localevents.app:app 으로 실행합니다.
"""
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from localevents.api import event_router, get_engine, health_router, set_engine
from localevents.core.config import settings
from localevents.core.exceptions import EventEngineException
from localevents.core.logging import logger
from localevents.upstream.http_client import shutdown_shared_http_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """엔진 준비 → 서비스 → 진행 중 요청 취소 및 세션 정리"""
    engine = get_engine()
    logger.info(
        f"Engine ready: cache_prefix={engine.cache.prefix!r}, "
        f"storage_ok={engine.cache.health_check()}"
    )
    yield
    cancelled = engine.registry.cancel_all()
    if cancelled:
        logger.info(f"Cancelled {cancelled} in-flight request(s) on shutdown")
    set_engine(None)
    await shutdown_shared_http_client()
    logger.info("Engine stopped")


def register_exception_handlers(app: FastAPI) -> None:
    """엔진 예외 → JSON 응답 (error_code 유지)"""

    @app.exception_handler(EventEngineException)
    async def engine_exception_handler(request: Request, exc: EventEngineException) -> JSONResponse:
        logger.error(f"[API] {request.method} {request.url.path} failed: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "data": None,
                "message": exc.message,
                "error_code": exc.error_code,
            },
        )


def create_app() -> FastAPI:
    """
    FastAPI 앱 생성 (Factory Pattern)

    Returns:
        FastAPI 앱 인스턴스
    """
    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        lifespan=lifespan,
    )

    # 이벤트 UI는 별도 origin에서 호출
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def timing_header(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Elapsed-Ms"] = f"{(time.perf_counter() - started) * 1000:.1f}"
        return response

    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(event_router)

    return app


app = create_app()
