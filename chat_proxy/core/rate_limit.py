"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: storage backend can be replaced (e.g., Redis) behind an
  abstract interface.

Rate limiting strategy:
- Fixed-window limit per client key.
- The client key is the first X-Forwarded-For hop, then X-Real-IP, then a
  shared "unknown" bucket. It is advisory only and never validated as an IP.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request

from chat_proxy.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from chat_proxy.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from chat_proxy.core.config import settings
from chat_proxy.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT_KEY = "unknown"

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int, int | None] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
        settings.app.rate_limit_sweep_interval_seconds,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryFixedWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
            sweep_interval_seconds=settings.app.rate_limit_sweep_interval_seconds,
        )
        _limiter_config = config

    return _limiter


def reset_rate_limiter() -> None:
    """Drop the cached limiter and all its counters."""

    global _limiter, _limiter_config
    _limiter = None
    _limiter_config = None


def build_rate_limit_key(request: Request) -> str:
    """Derive the client key for the current request.

    Args:
        request: FastAPI request.

    Returns:
        str: First forwarded-for hop, X-Real-IP, or the "unknown" sentinel.
    """

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    return UNKNOWN_CLIENT_KEY


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _build_throttle_headers(result: RateLimitResult) -> dict[str, str]:
    headers = {"Retry-After": str(result.reset_in or 0)}
    if settings.app.rate_limit_include_headers:
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)
    return headers


async def enforce_rate_limit(request: Request) -> RateLimitResult | None:
    """FastAPI dependency enforcing rate limits.

    When enabled, counts the request against the client's budget. Declared
    async so the check-and-increment runs on the event loop without yielding.

    Args:
        request: FastAPI request.

    Returns:
        The limiter decision, or None when rate limiting is disabled.

    Raises:
        RateLimitAppError: 429 Too Many Requests when the budget is exhausted.
    """

    if not settings.app.rate_limit_enabled:
        return None

    limiter = get_rate_limiter()
    key = build_rate_limit_key(request)
    key_hash = _hash_limiter_key(key)

    result = limiter.check(key)
    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": settings.app.rate_limit_window_seconds,
            },
        )
        return result

    reset_in = result.reset_in or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": settings.app.rate_limit_window_seconds,
            "retry_after_s": reset_in,
        },
    )

    raise RateLimitAppError(
        code="rate_limited",
        message=f"Rate limited. Try again in {reset_in}s.",
        details={"retry_after": reset_in},
        retry_after=reset_in,
        headers=_build_throttle_headers(result),
    )
