"""Tests for the correlation ID middleware."""

import logging
import uuid

import pytest
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient

from helmsman.logging_config import correlation_id_ctx
from helmsman.middleware import CORRELATION_ID_HEADER, CorrelationIdMiddleware


@pytest.fixture
def traced_app():
    app = FastAPI()
    app.add_middleware(CorrelationIdMiddleware)

    @app.get("/whoami")
    async def whoami():
        return {"correlation_id": correlation_id_ctx.get()}

    @app.get("/explode")
    async def explode():
        raise RuntimeError("boom")

    return app


class TestCorrelationId:
    """Correlation IDs are reused or generated and echoed back."""

    async def test_generates_uuid(self, traced_app):
        async with AsyncClient(
            transport=ASGITransport(app=traced_app), base_url="http://test"
        ) as ac:
            response = await ac.get("/whoami")

        correlation_id = response.headers[CORRELATION_ID_HEADER]
        assert uuid.UUID(correlation_id)
        assert response.json()["correlation_id"] == correlation_id

    async def test_reuses_incoming_header(self, traced_app):
        async with AsyncClient(
            transport=ASGITransport(app=traced_app), base_url="http://test"
        ) as ac:
            response = await ac.get(
                "/whoami", headers={CORRELATION_ID_HEADER: "trace-me"}
            )

        assert response.headers.get_list(CORRELATION_ID_HEADER) == ["trace-me"]
        assert response.json()["correlation_id"] == "trace-me"

    async def test_context_reset_after_request(self, traced_app):
        async with AsyncClient(
            transport=ASGITransport(app=traced_app), base_url="http://test"
        ) as ac:
            await ac.get("/whoami")

        assert correlation_id_ctx.get() is None

    async def test_failure_is_logged_and_reraised(self, traced_app, caplog):
        transport = ASGITransport(app=traced_app, raise_app_exceptions=True)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            with caplog.at_level(logging.INFO), pytest.raises(RuntimeError):
                await ac.get("/explode")

        messages = [record.getMessage() for record in caplog.records]
        assert "Request started" in messages
        assert "Request failed" in messages

    async def test_replaces_correlation_header_set_by_route(self):
        app = FastAPI()
        app.add_middleware(CorrelationIdMiddleware)

        @app.get("/stale")
        async def stale():
            return JSONResponse({}, headers={CORRELATION_ID_HEADER: "stale-id"})

        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            response = await ac.get("/stale", headers={CORRELATION_ID_HEADER: "fresh"})

        assert response.headers.get_list(CORRELATION_ID_HEADER) == ["fresh"]

    async def test_completion_logged_with_status(self, traced_app, caplog):
        async with AsyncClient(
            transport=ASGITransport(app=traced_app), base_url="http://test"
        ) as ac:
            with caplog.at_level(logging.INFO):
                await ac.get("/whoami")

        completed = next(
            r for r in caplog.records if r.getMessage() == "Request completed"
        )
        assert completed.extra_fields["status_code"] == 200
        assert completed.extra_fields["method"] == "GET"
        assert completed.extra_fields["path"] == "/whoami"
        assert completed.extra_fields["duration_ms"] >= 0
