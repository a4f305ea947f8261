from __future__ import annotations

from fastapi import APIRouter

from chat_proxy.core.config import load_llm_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check.

    Also reports whether an upstream credential is configured, without
    revealing it, so a misconfigured deployment is visible before the first
    chat request fails with 500.

    Returns:
        dict: ``status`` is always "ok"; ``upstream_configured`` is a bool.
    """

    return {
        "status": "ok",
        "upstream_configured": bool(load_llm_settings().api_key),
    }
