"""Helmsman FastAPI application."""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from helmsman.config import Settings, settings
from helmsman.logging_config import get_logger, setup_logging
from helmsman.middleware import CorrelationIdMiddleware, SecurityHeadersMiddleware
from helmsman.routers import api, health
from helmsman.security import build_header_rules, describe_header_rules

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(
        "Helmsman started",
        header_rules=describe_header_rules(app.state.header_rules),
    )
    yield
    logger.info("Helmsman shutdown complete")


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create the application with its header chain and routes.

    Raises:
        HeaderConfigurationError: If the security header settings are invalid.
    """
    app_settings = app_settings or settings
    rules = build_header_rules(app_settings)
    logger.info(
        "Security header chain built",
        header_rules=[repr(rule) for rule in rules],
    )

    app = FastAPI(title="Helmsman", version="0.1.0", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.header_rules = rules

    # Middleware (order matters: first added = last executed)
    app.add_middleware(SecurityHeadersMiddleware, rules=rules)
    app.add_middleware(CorrelationIdMiddleware)

    index_file = app_settings.index_file
    if not index_file.is_file():
        logger.warning("Index page not found", index_file=str(index_file))

    @app.get("/", include_in_schema=False)
    async def index() -> FileResponse:
        """Serve the landing page."""
        return FileResponse(index_file, media_type="text/html")

    app.include_router(api.router, prefix=app_settings.api_prefix)
    app.include_router(health.router)

    # Mounted last so it only sees paths no route claimed
    static_dir = app_settings.static_dir
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir), name="public")
        logger.info("Serving static files", static_dir=str(static_dir))
    else:
        logger.warning("Static directory not found", static_dir=str(static_dir))

    return app


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    logger.info(f"Your app is listening on port {settings.port}", port=settings.port)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
