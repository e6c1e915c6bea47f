"""Sub-router mounted under the API prefix (``/_api`` by default)."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.datastructures import MutableHeaders

from helmsman.logging_config import get_logger
from helmsman.security import describe_header_rules

logger = get_logger(__name__)

router = APIRouter(tags=["api"])


@router.get("/app-info")
async def app_info(request: Request) -> dict[str, Any]:
    """Report the headers the security chain puts on a plain http response.

    Returns:
        {"headers": {name: value}, "appStack": [rule names in order]}
    """
    rules = request.app.state.header_rules
    message: dict[str, Any] = {"headers": []}
    headers = MutableHeaders(scope=message)
    for rule in rules:
        rule.apply(headers, {"type": "http", "scheme": "http"})

    # Browsers add CORS headers on their own terms; they are not ours to report
    reported = {
        key: value
        for key, value in headers.items()
        if not key.startswith("access-control-")
    }
    logger.debug("App info requested", header_count=len(reported))
    return {"headers": reported, "appStack": describe_header_rules(rules)}
