"""Tests for the request size filter, catch-all middleware and error handlers."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from errors import NotFoundError, StorageError, ValidationError, register_exception_handlers
from middleware import CatchAllExceptionMiddleware, RequestSizeLimitMiddleware


@pytest.fixture
async def small_app_client():
    app = FastAPI()
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=16)
    app.add_middleware(CatchAllExceptionMiddleware)
    register_exception_handlers(app)

    @app.post("/echo")
    async def echo(value: int):
        return {"value": value}

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    @app.get("/missing")
    async def missing():
        raise NotFoundError("Thing not found")

    @app.get("/bad")
    async def bad():
        raise ValidationError("Bad thing")

    @app.get("/storage")
    async def storage():
        raise StorageError("Failed to store", details="disk on fire")

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestRequestSizeLimit:
    async def test_rejects_large_body(self, small_app_client):
        resp = await small_app_client.post("/echo?value=1", content=b"x" * 17)
        assert resp.status_code == 413
        assert "error" in resp.json()

    async def test_allows_body_within_limit(self, small_app_client):
        resp = await small_app_client.post("/echo?value=1", content=b"x" * 16)
        assert resp.status_code == 200


class TestErrorRendering:
    async def test_unhandled_exception_becomes_500(self, small_app_client):
        resp = await small_app_client.get("/boom")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error"}

    async def test_not_found(self, small_app_client):
        resp = await small_app_client.get("/missing")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Thing not found"}

    async def test_validation(self, small_app_client):
        resp = await small_app_client.get("/bad")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Bad thing"}

    async def test_storage_error_includes_details(self, small_app_client):
        resp = await small_app_client.get("/storage")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to store", "details": "disk on fire"}

    async def test_unknown_route_has_error_field(self, small_app_client):
        resp = await small_app_client.get("/nope")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Not Found"}

    async def test_request_validation_maps_to_400(self, small_app_client):
        resp = await small_app_client.post("/echo?value=abc")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"
