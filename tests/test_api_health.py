"""Tests for health check endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from spellbinder.config import settings
from spellbinder.db.database import get_session
from spellbinder.main import app


@pytest.fixture
async def bare_client():
    """Client whose database has no tables created."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    await engine.dispose()


class TestHealthEndpoint:
    async def test_health_is_alive(self, client: AsyncClient) -> None:
        """Liveness reports the app without touching the database."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "alive", "app": settings.app_name}


class TestReadyEndpoint:
    async def test_ready_counts_empty_tables(self, client: AsyncClient) -> None:
        """A fresh schema is ready with zero rows."""
        response = await client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["containers"] == 0
        assert data["segments"] == 0
        assert data["plans"] == 0

    async def test_ready_counts_created_rows(self, client: AsyncClient) -> None:
        """Created containers show up in the readiness counts."""
        await client.post(
            "/containers",
            json={"name": "Blue", "kind": "binder", "page_count": 2, "slots_per_page": 9},
        )

        data = (await client.get("/ready")).json()

        assert data["containers"] == 1
        assert data["plans"] == 0

    async def test_missing_tables_not_ready(self, bare_client: AsyncClient) -> None:
        """Without the planner tables readiness is a 503."""
        response = await bare_client.get("/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not ready"
        assert data["containers"] is None

    async def test_card_cache_state(
        self, client: AsyncClient, tmp_path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Card cache is empty until its directory exists."""
        cache_dir = tmp_path / "scryfall"
        monkeypatch.setattr(settings, "card_cache_dir", str(cache_dir))

        assert (await client.get("/ready")).json()["card_cache"] == "empty"

        cache_dir.mkdir()
        assert (await client.get("/ready")).json()["card_cache"] == "present"
