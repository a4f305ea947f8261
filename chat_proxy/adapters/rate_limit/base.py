"""Rate limiter interfaces.

The API should depend on these abstractions (not the concrete implementation)
so we can swap storage backends later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateRecord:
    """Request counter for one client key.

    Attributes:
        window_start: UNIX time in seconds when the key's window opened.
        count: Requests admitted in the current window.
    """

    window_start: float
    count: int


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        reset_in: Seconds until the window resets, only set when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    reset_in: int | None


class AbstractRateLimitStore(ABC):
    """Key/value storage for rate records."""

    @abstractmethod
    def get(self, key: str) -> RateRecord | None:
        """Return the record for ``key`` or None if the key is unknown."""
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, record: RateRecord) -> None:
        """Create or overwrite the record for ``key``."""
        raise NotImplementedError

    @abstractmethod
    def purge_expired(self, window_started_before: float) -> int:
        """Delete records whose window opened before the given time.

        Args:
            window_started_before: UNIX time in seconds; older windows are expired.

        Returns:
            Number of records removed.
        """
        raise NotImplementedError

    @abstractmethod
    def __len__(self) -> int:
        raise NotImplementedError


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, key: str) -> RateLimitResult:
        """Decide whether a request from ``key`` may proceed and record it.

        Args:
            key: Client key (e.g., first X-Forwarded-For hop).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError
