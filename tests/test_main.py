import pytest

from marketplace.core.config import settings
from marketplace.services.catalog import CatalogService


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_metrics_endpoint(client):
    await client.get("/api/health")
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "app_request_count" in response.text


@pytest.mark.asyncio
async def test_response_headers(client):
    response = await client.get("/api/health")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-request-id"]


@pytest.mark.asyncio
async def test_unexpected_error_renders_500(authorized_client, monkeypatch):
    async def explode(self):
        raise RuntimeError("database went away")

    monkeypatch.setattr(CatalogService, "list_categories", explode)

    response = await authorized_client.get(f"{settings.API_PREFIX}/productos/categorias")
    assert response.status_code == 500
    body = response.json()
    assert body["message"] == "Error en el servidor."
    assert "database went away" in body["stack"]
