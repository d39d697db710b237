"""
Tests for health and utility endpoints.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.unit
class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient) -> None:
        """Test basic health check endpoint returns 200."""
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "ornot-api"


@pytest.mark.unit
class TestAPIDocumentation:
    """Test API documentation endpoints."""

    async def test_openapi_schema_available(self, client: AsyncClient) -> None:
        """Test OpenAPI schema is accessible (only in debug mode)."""
        from core.config import settings

        response = await client.get("/openapi.json")
        if settings.DEBUG:
            assert response.status_code == 200
            assert "/api/v1/topic/{topic_id}/vote/{user_id}" in response.json()["paths"]
        else:
            # Docs disabled in production
            assert response.status_code == 404
