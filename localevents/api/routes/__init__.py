"""API routes package."""

from .event_routes import router as event_router, get_engine, set_engine
from .health_routes import router as health_router

__all__ = ["event_router", "health_router", "get_engine", "set_engine"]
