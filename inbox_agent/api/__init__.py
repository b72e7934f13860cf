"""
FastAPI application and API initialization.
"""
from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from inbox_agent.api.middleware import setup_cors, setup_exception_handlers
from inbox_agent.api.routes import api_router
from inbox_agent.config import get_settings

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup and shutdown."""
    settings = get_settings()
    logger.info(
        "application_startup_complete",
        environment=settings.environment,
        version=settings.APP_VERSION,
        gmail_configured=bool(settings.GMAIL_REFRESH_TOKEN),
        model=settings.LLM_MODEL_NAME,
    )

    yield

    logger.info("application_shutdown_complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    setup_cors(app)
    setup_exception_handlers(app)

    app.include_router(api_router)

    return app
