"""Global exception handlers for consistent error responses.

This module provides FastAPI exception handlers that intercept all errors
(domain and unexpected) and return consistent JSON responses with proper
HTTP status codes.

Design:
- AppError subclasses → fixed status per error type (405, 400, 429, 500, 502)
- UpstreamAppError → the upstream's own status code, passed through
- Starlette HTTPException → same ``{"error": ...}`` shape
- Unexpected Exception → generic 500 (safety net)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chat_proxy.core.errors import (
    AppError,
    ConfigurationAppError,
    LLMAppError,
    MethodNotAllowedAppError,
    RateLimitAppError,
    UpstreamAppError,
)
from chat_proxy.core.logging import get_request_id

logger = logging.getLogger(__name__)


def resolve_status_code(exc: AppError) -> int:
    """Map a domain error to its HTTP status code.

    Args:
        exc: AppError instance (or subclass).

    Returns:
        HTTP status code for the response.
    """
    if isinstance(exc, MethodNotAllowedAppError):
        return 405
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, ConfigurationAppError):
        return 500
    if isinstance(exc, UpstreamAppError):
        return exc.upstream_status
    if isinstance(exc, LLMAppError):
        return 502
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle domain application errors with consistent JSON format.

    All responses carry a single human-readable ``error`` field. Rate limit
    errors additionally carry ``resetIn`` and their throttling headers.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error message.
    """
    status_code = resolve_status_code(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "error_details": exc.details or {},
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    content: dict = {"error": exc.message}
    headers: dict[str, str] | None = None

    if isinstance(exc, RateLimitAppError):
        content["resetIn"] = exc.retry_after
        headers = exc.headers or None

    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework HTTP errors (404, 405 on unknown routes) as ``{"error": ...}``."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 405:
        message = "Method not allowed"

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors (safety net).

    Logs detailed information for debugging while returning a generic message.
    Prevents information leakage (no stack traces to client).

    Args:
        request: FastAPI request object.
        exc: Exception instance (unexpected).

    Returns:
        JSONResponse with generic error (no implementation details leaked).
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
    )

    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
