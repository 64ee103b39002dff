"""API 엔드포인트 패키지 - export only."""

from .routes import event_router, health_router, get_engine, set_engine

__all__ = ["event_router", "health_router", "get_engine", "set_engine"]
