"""
FastAPI middleware and exception handlers.
"""
from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from inbox_agent.api.utils import get_cors_headers
from inbox_agent.config import get_settings

logger = structlog.get_logger(__name__)

REJECTED_STATUS_CODES = (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED)


def setup_cors(app: FastAPI) -> None:
    """Setup CORS middleware."""
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _create_error_response(
    request: Request,
    status_code: int,
    detail: object,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Create an error response with CORS headers.

    Args:
        request: FastAPI request object
        status_code: HTTP status code
        detail: Error detail message
        headers: Additional headers to include (e.g. Allow on 405)

    Returns:
        JSONResponse with error details and CORS headers
    """
    response_headers = get_cors_headers(request)
    if headers:
        response_headers.update(headers)

    return JSONResponse(
        status_code=status_code,
        content={"detail": detail},
        headers=response_headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Setup exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions (including unknown routes and wrong methods)."""
        if exc.status_code in REJECTED_STATUS_CODES:
            logger.info(
                "server.request_rejected",
                path=request.url.path,
                method=request.method,
                status_code=exc.status_code,
            )
        headers = dict(exc.headers) if exc.headers else None
        return _create_error_response(
            request,
            status_code=exc.status_code,
            detail=exc.detail,
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all exceptions and ensure CORS headers are included."""
        logger.exception(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
            exc_info=exc,
        )

        detail = str(exc) if isinstance(exc, ValueError) else "Internal server error"

        return _create_error_response(
            request,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
        )
