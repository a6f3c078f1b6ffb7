"""Tests for FastAPI health and version endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from src.api.main import app


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def client() -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


class TestVersionEndpoint:
    """GET /api/version returns application version info."""

    @pytest.mark.anyio
    async def test_version_response_body(self, client: AsyncClient) -> None:
        response = await client.get("/api/version")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "survey-review"
        assert "version" in data

    def test_routers_registered(self) -> None:
        paths = {route.path for route in app.routes}
        assert "/v1/records/{record_id}/actions" in paths
        assert "/v1/actors/{actor_id}/role" in paths
        assert "/v1/logs" in paths


class TestHealthEndpoint:
    """GET /health reports the review store without ever failing."""

    @pytest.mark.anyio
    async def test_ok_when_review_tables_present(
        self, client: AsyncClient, db_engine, monkeypatch,
    ) -> None:
        monkeypatch.setattr("src.db.session.engine", db_engine)
        data = (await client.get("/health")).json()
        assert data["status"] == "ok"
        assert data["checks"] == {"api": True, "database": True, "schema": True}

    @pytest.mark.anyio
    async def test_degraded_before_migrations(self, client: AsyncClient, monkeypatch) -> None:
        empty = create_async_engine("sqlite+aiosqlite:///:memory:")
        monkeypatch.setattr("src.db.session.engine", empty)
        response = await client.get("/health")
        await empty.dispose()
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"]["database"] is True
        assert data["checks"]["schema"] is False
