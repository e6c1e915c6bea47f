"""Security response headers middleware.

Applies an ordered chain of header rules to every HTTP response
(clickjacking, MIME sniffing, caching, CSP, etc.). Rules run in the order
given, so a later rule overrides or removes what an earlier one set.

Uses a pure ASGI middleware (not BaseHTTPMiddleware) to avoid buffering
the full response body.
"""

from collections.abc import Iterable

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from helmsman.middleware.header_rules import HeaderRule


class SecurityHeadersMiddleware:
    """Pure ASGI middleware that runs header rules on every response."""

    def __init__(self, app: ASGIApp, rules: Iterable[HeaderRule] = ()) -> None:
        self.app = app
        self.rules: tuple[HeaderRule, ...] = tuple(rules)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                headers = MutableHeaders(scope=message)
                for rule in self.rules:
                    rule.apply(headers, scope)
            await send(message)

        await self.app(scope, receive, send_with_headers)
