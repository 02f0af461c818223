"""
tests.test_smoke

Minimal smoke tests to validate the service can boot and serve core endpoints.
"""

from __future__ import annotations

import httpx
import pytest

from portfolio_api.api.app import create_app
from portfolio_api.settings import Settings


@pytest.mark.asyncio
async def test_health_endpoints(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    r = await client.get("/readyz")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"
    assert r.headers["x-request-id"]


@pytest.mark.asyncio
async def test_request_id_is_propagated(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz", headers={"x-request-id": "abc-123"})
    assert r.headers["x-request-id"] == "abc-123"

    r = await client.get("/healthz", headers={"x-request-id": "not valid id!"})
    assert r.headers["x-request-id"] != "not valid id!"


@pytest.mark.asyncio
async def test_unknown_route_uses_error_format(client: httpx.AsyncClient) -> None:
    r = await client.get("/nope")
    assert r.status_code == 404
    assert r.json() == {"code": "RESOURCE_NOT_FOUND", "message": "Resource not found"}


@pytest.mark.asyncio
async def test_readyz_reports_audit_backlog(settings: Settings) -> None:
    # Default app wiring: the queued sink rather than a test double.
    app = create_app(settings=settings)
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            r = await c.get("/readyz")

    assert r.status_code == 200
    assert r.json()["auditPending"] == 0
    assert r.json()["auditDropped"] == 0


@pytest.mark.asyncio
async def test_wrong_method_keeps_405(client: httpx.AsyncClient) -> None:
    r = await client.delete("/healthz")
    assert r.status_code == 405
    assert r.json()["code"] == "METHOD_NOT_ALLOWED"
    assert "GET" in r.headers["allow"]


# --- Module Notes -----------------------------------------------------------
# Boot-level checks only; behavior of the gatekeeping stages lives in test_gatekeeping.
