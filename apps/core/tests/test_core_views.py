import pytest
from starlette.applications import Starlette
from starlette.routing import Route
from starlette.testclient import TestClient

from apps.core.views import health_check


@pytest.mark.usefixtures("services")
async def test_hero_catalog(async_client, opendota):
    response = await async_client.get("/api/v1/heroes")

    assert response.status_code == 200
    heroes = response.json()["data"]
    assert [h["localized_name"] for h in heroes] == ["Anti-Mage", "Axe"]
    assert heroes[1]["icon"].endswith("/axe.png")


@pytest.mark.usefixtures("services")
async def test_unknown_route_uses_json_envelope(async_client):
    response = await async_client.get("/api/v1/nowhere")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "The requested endpoint was not found."}


def test_health_reports_cache_and_rate_limit(services):
    app = Starlette(routes=[Route("/health", endpoint=health_check)])
    with TestClient(app) as client:
        body = client.get("/health").json()

    assert body["status"] == "healthy"
    cache = body["checks"]["cache"]
    assert cache["status"] == "degraded"
    assert cache["backend"] == "memory"
    assert cache["degraded"] is True
    assert body["checks"]["rate_limit"] == {"status": "healthy", "used": 0, "limit": 60, "resets_in_s": pytest.approx(60, abs=1)}


def test_health_basic_liveness(services):
    app = Starlette(routes=[Route("/health", endpoint=health_check)])
    with TestClient(app) as client:
        assert client.get("/health", params={"check": "basic"}).json()["status"] == "ok"
