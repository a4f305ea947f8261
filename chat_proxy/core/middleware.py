"""HTTP middleware for CORS and request ID correlation.

This module provides two middlewares:
- ``cors_middleware`` answers every OPTIONS request with 204 and attaches
  the CORS headers to every other response
- ``request_id_middleware`` accepts an incoming X-Request-ID header or
  generates a UUID, stores it in contextvars for log correlation, and echoes
  it (plus the request duration) in the response headers

Usage:
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(cors_middleware)  # registered last, runs first
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from chat_proxy.core.config import settings
from chat_proxy.core.cors import build_cors_headers
from chat_proxy.core.exception_handlers import general_exception_handler
from chat_proxy.core.logging import clear_request_id, set_request_id


async def cors_middleware(request: Request, call_next) -> Response:
    """Attach CORS headers and short-circuit preflight requests.

    OPTIONS is answered before routing, rate limiting or configuration
    checks run, so preflights always get 204 with no body.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: 204 for OPTIONS, otherwise the downstream response (or a
            generic 500 for an unhandled error) with CORS headers added.
    """

    headers = build_cors_headers(request.headers.get("origin"), settings.app)

    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)

    try:
        response: Response = await call_next(request)
    except Exception as exc:
        # Unhandled errors would otherwise be rendered outside this middleware
        response = await general_exception_handler(request, exc)
    response.headers.update(headers)
    return response


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides an X-Request-ID header (configurable via
    LOG_REQUEST_ID_HEADER), that value is used. Otherwise, a new UUID
    is generated.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
