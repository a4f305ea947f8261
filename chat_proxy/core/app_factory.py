from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests and the ASGI entrypoint build the same application.
"""

from fastapi import FastAPI

from chat_proxy.api.routes import chat_router, health_router
from chat_proxy.core.config import settings
from chat_proxy.core.exception_handlers import setup_exception_handlers
from chat_proxy.core.logging import configure_logging
from chat_proxy.core.middleware import cors_middleware, request_id_middleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Chat Proxy",
        description=(
            "Forwards chat-completion requests to OpenAI while keeping the API "
            "key server-side. Clients are throttled per IP with a fixed-window "
            "rate limit."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Middleware: the last registered runs first, so CORS wraps everything
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(cors_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(chat_router, prefix="/api")
    app.include_router(health_router)

    return app
