"""Middleware package for the Helmsman server."""

from helmsman.middleware.correlation import CORRELATION_ID_HEADER, CorrelationIdMiddleware
from helmsman.middleware.header_rules import HeaderConfigurationError, HeaderRule
from helmsman.middleware.security_headers import SecurityHeadersMiddleware

__all__ = [
    "CorrelationIdMiddleware",
    "CORRELATION_ID_HEADER",
    "HeaderConfigurationError",
    "HeaderRule",
    "SecurityHeadersMiddleware",
]
