import pytest


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/v1/health")
    assert response.status_code == 200

    payload = response.json()
    assert payload["status_code"] == 200
    assert payload["status"] == "success"
    assert payload["message"] == "Service is healthy"
    assert payload["data"] == {"status": "ok", "service": "Hiddo"}


@pytest.mark.asyncio
async def test_root_info(client):
    response = await client.get("/")
    assert response.status_code == 200
    payload = response.json()
    assert payload["app_name"] == "Hiddo API"
    assert payload["version"] == "1.0.0"
    assert payload["docs_url"] == "/docs"
    assert payload["api_base"] == "/api/v1"


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(client):
    response = await client.get("/api/v1/nope")
    assert response.status_code == 404
    assert response.json()["status"] == "error"
