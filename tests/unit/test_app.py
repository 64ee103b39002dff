"""앱 팩토리 테스트 (예외 핸들러 / 생명주기)"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from localevents.api import get_engine, set_engine
from localevents.app import create_app
from localevents.core.exceptions import StorageUnavailableException

from tests.fixtures.upstream import FakeUpstream


@pytest.mark.asyncio
async def test_engine_exception_mapped_to_error_body():
    app = create_app()

    @app.get("/boom")
    async def boom():
        raise StorageUnavailableException("disk detached")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["status"] == "error"
    assert body["error_code"] == "CACHE_STORAGE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_elapsed_header(make_engine):
    app = create_app()
    engine = make_engine(FakeUpstream())
    app.dependency_overrides[get_engine] = lambda: engine

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.get("/")

    assert float(response.headers["X-Elapsed-Ms"]) >= 0


def test_lifespan_releases_engine(make_engine):
    engine = make_engine(FakeUpstream())
    set_engine(engine)
    token = engine.registry.begin("events:pending")

    with TestClient(create_app()) as client:
        assert client.get("/health").json()["storage_ok"] is True

    assert token.cancelled
    assert engine.registry.active_count == 0
    set_engine(None)
