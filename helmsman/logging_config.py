"""Structured logging configuration.

Log records carry keyword fields (``logger.info("...", path="/")``) and the
correlation ID of the request being served. Both render either as JSON
lines or as a single readable text line.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# Correlation ID of the request being served, if any
correlation_id_ctx: ContextVar[str | None] = ContextVar("correlation_id", default=None)

DEFAULT_SERVICE_NAME = "helmsman"

# Keyword arguments the stdlib logging calls understand themselves
_LOGGING_KWARGS = frozenset({"exc_info", "stack_info", "stacklevel", "extra"})


class _ServiceFormatter(logging.Formatter):
    """Shared base: stamps the service name and collects record fields."""

    def __init__(self, service_name: str = DEFAULT_SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    @staticmethod
    def fields_of(record: logging.LogRecord) -> dict[str, Any]:
        return dict(getattr(record, "extra_fields", None) or {})


class JsonFormatter(_ServiceFormatter):
    """One JSON object per line.

    Errors also carry their source location so they can be traced without
    the text traceback.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = correlation_id_ctx.get()
        if correlation_id:
            payload["correlation_id"] = correlation_id
        payload.update(self.fields_of(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.levelno >= logging.ERROR:
            payload["location"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
        return json.dumps(payload, default=str)


class TextFormatter(_ServiceFormatter):
    """``timestamp - service - LEVEL - [correlation] - message key=value ...``"""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc)
        parts = [
            f"{timestamp:%Y-%m-%d %H:%M:%S} - {self.service_name} - "
            f"{record.levelname} - [{correlation_id_ctx.get() or '-'}] - "
            f"{record.getMessage()}"
        ]
        parts.extend(f"{key}={value}" for key, value in self.fields_of(record).items())
        line = " ".join(parts)

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_format: str = "json",
    log_level: str = "INFO",
    service_name: str = DEFAULT_SERVICE_NAME,
) -> None:
    """Route all logging to stdout in the chosen format.

    Args:
        log_format: 'json' for structured logging, anything else for text
        log_level: Level name; unknown names fall back to INFO
        service_name: Service name stamped on every record
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter_cls = JsonFormatter if log_format.lower() == "json" else TextFormatter
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter_cls(service_name=service_name))

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(level)

    # Every request is already logged by the correlation middleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter turning keyword arguments into structured fields.

    ``logger.info("Request completed", status_code=200)`` attaches
    ``{"status_code": 200}`` to the record as ``extra_fields``.
    """

    def __init__(self, name: str):
        super().__init__(logging.getLogger(name), {})

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        fields = {k: kwargs.pop(k) for k in list(kwargs) if k not in _LOGGING_KWARGS}
        if fields:
            kwargs["extra"] = {**kwargs.get("extra", {}), "extra_fields": fields}
        return msg, kwargs


def get_logger(name: str) -> StructuredLogger:
    """Return a StructuredLogger for ``name`` (typically ``__name__``)."""
    return StructuredLogger(name)
