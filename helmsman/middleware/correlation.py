"""Correlation ID middleware.

Tags every request with a correlation ID and logs its start and outcome.
"""

import time
import uuid

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from helmsman.logging_config import correlation_id_ctx, get_logger

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class CorrelationIdMiddleware:
    """Pure ASGI middleware that adds correlation IDs to requests.

    Reuses the incoming X-Correlation-ID header when present, otherwise
    generates a UUID4. The ID lives in ``correlation_id_ctx`` for the
    request and replaces any value the app put on the response.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming = Headers(scope=scope).get(CORRELATION_ID_HEADER, "").strip()
        correlation_id = incoming or str(uuid.uuid4())
        token = correlation_id_ctx.set(correlation_id)

        request_fields = {"method": scope["method"], "path": scope["path"]}
        response_status: dict[str, int] = {}
        start = time.perf_counter()

        client = scope.get("client")
        logger.info(
            "Request started",
            client_ip=client[0] if client else None,
            **request_fields,
        )

        async def send_with_correlation(message: Message) -> None:
            if message["type"] == "http.response.start":
                response_status["status_code"] = message["status"]
                message.setdefault("headers", [])
                MutableHeaders(scope=message)[CORRELATION_ID_HEADER] = correlation_id
            await send(message)

        try:
            await self.app(scope, receive, send_with_correlation)
        except Exception:
            logger.exception(
                "Request failed", duration_ms=_elapsed_ms(start), **request_fields
            )
            raise
        else:
            logger.info(
                "Request completed",
                duration_ms=_elapsed_ms(start),
                **request_fields,
                **response_status,
            )
        finally:
            correlation_id_ctx.reset(token)
