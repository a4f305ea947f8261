from __future__ import annotations

from chat_proxy.api.routes.chat import router as chat_router
from chat_proxy.api.routes.health import router as health_router

__all__ = ["chat_router", "health_router"]
