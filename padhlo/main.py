"""FastAPI application entry point for the Padhlo entitlements API."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from padhlo.config import configure_logging, get_settings
from padhlo.database import dispose_engine, initialize_database
from padhlo.exceptions import PadhloError
from padhlo.infrastructure.billing.routers import subscription_router, usage_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan events."""
    settings = get_settings()
    configure_logging(settings.ENVIRONMENT)
    initialize_database(settings)
    logger.info("application_started", environment=settings.ENVIRONMENT)
    try:
        yield
    finally:
        dispose_engine()
        logger.info("application_stopped")


async def padhlo_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render application errors that escaped a use case as a structured body."""
    status_code = getattr(exc, "status_code", status.HTTP_500_INTERNAL_SERVER_ERROR)
    message = getattr(exc, "message", str(exc))
    logger.error("unhandled_application_error", path=request.url.path, error=message)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "reason": "internal_error", "message": message},
    )


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION, lifespan=lifespan)

    app.add_exception_handler(PadhloError, padhlo_error_handler)

    app.include_router(subscription_router, prefix=settings.API_V1_PREFIX)
    app.include_router(usage_router, prefix=settings.API_V1_PREFIX)

    @app.get("/health", tags=["health"])
    def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return app


app = create_app()
