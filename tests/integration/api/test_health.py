"""Tests for health check endpoints."""

import pytest
from httpx import AsyncClient


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client: AsyncClient) -> None:
        """Test that health endpoint returns 200 OK."""
        response = await client.get("/health")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_returns_correct_structure(self, client: AsyncClient) -> None:
        """Test that health endpoint returns expected structure."""
        response = await client.get("/health")
        data = response.json()

        assert "status" in data
        assert "version" in data
        assert "timestamp" in data
        assert "environment" in data

    @pytest.mark.asyncio
    async def test_health_status_is_healthy(self, client: AsyncClient) -> None:
        """Test that health status is 'healthy'."""
        response = await client.get("/health")
        data = response.json()

        assert data["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_health_version_format(self, client: AsyncClient) -> None:
        """Test that version has expected format."""
        response = await client.get("/health")
        data = response.json()

        # Check version follows semver pattern
        assert data["version"] == "1.0.0"


class TestDetailedHealthEndpoint:
    """Tests for the detailed health check with overridden dependencies."""

    @pytest.fixture
    async def detailed_client(self, db_session):
        from httpx import ASGITransport

        from api.routes.health import check_auth_server
        from infrastructure.database.session import get_async_session
        from main import create_app

        app = create_app()
        app.dependency_overrides[get_async_session] = lambda: db_session
        auth_status = {"value": "healthy"}
        app.dependency_overrides[check_auth_server] = lambda: auth_status["value"]

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c, auth_status

    @pytest.mark.asyncio
    async def test_all_dependencies_healthy(self, detailed_client) -> None:
        client, _ = detailed_client

        data = (await client.get("/health/detailed")).json()

        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["auth"] == "healthy"

    @pytest.mark.asyncio
    async def test_unconfigured_auth_is_not_degraded(self, detailed_client) -> None:
        client, auth_status = detailed_client
        auth_status["value"] = "not_configured"

        data = (await client.get("/health/detailed")).json()

        assert data["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_unreachable_auth_degrades(self, detailed_client) -> None:
        client, auth_status = detailed_client
        auth_status["value"] = "unhealthy: HTTP 503"

        data = (await client.get("/health/detailed")).json()

        assert data["status"] == "degraded"
        assert data["database"] == "healthy"
