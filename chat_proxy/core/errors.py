"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability.

    Details are logged by the exception handlers; they are never part of the
    response body, which only carries a human-readable ``error`` string.
    """

    code: str
    message: str
    hint: str
    http_status: int
    retry_after: int
    method: str
    field: str
    model: str
    error_type: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message returned to the caller.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class MethodNotAllowedAppError(AppError):
    """Raised when a route is called with an unsupported HTTP method."""


class ValidationAppError(AppError):
    """Raised when the inbound payload is malformed."""


class ConfigurationAppError(AppError):
    """Raised when the server lacks required configuration (e.g. credential)."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when a client key has exhausted its quota for the window.

    Attributes:
        retry_after: Seconds until the client's window resets.
        headers: Extra response headers (Retry-After, X-RateLimit-*).
    """

    retry_after: int = 0
    headers: dict[str, str] = field(default_factory=dict)


class LLMAppError(AppError):
    """Base class for failures talking to the upstream chat-completion API."""


@dataclass
class UpstreamAppError(LLMAppError):
    """Raised when the upstream answered with a non-success status.

    Attributes:
        upstream_status: HTTP status returned by the upstream, passed through.
    """

    upstream_status: int = 502


class UpstreamUnreachableAppError(LLMAppError):
    """Raised when the upstream could not be reached or gave no usable reply."""
