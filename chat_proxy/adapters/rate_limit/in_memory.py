"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- State is lost on restart.
- Each key's window opens on its first request, not on a wall-clock boundary,
  so bursts of up to twice the limit are possible around a reset.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from typing import Callable

from chat_proxy.adapters.rate_limit.base import (
    AbstractRateLimiter,
    AbstractRateLimitStore,
    RateLimitResult,
    RateRecord,
)

logger = logging.getLogger(__name__)


class InMemoryRateLimitStore(AbstractRateLimitStore):
    """Dict-backed record store guarded by a lock."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: dict[str, RateRecord] = {}

    def get(self, key: str) -> RateRecord | None:
        with self._lock:
            return self._records.get(key)

    def set(self, key: str, record: RateRecord) -> None:
        with self._lock:
            self._records[key] = record

    def purge_expired(self, window_started_before: float) -> int:
        with self._lock:
            expired = [
                key
                for key, record in self._records.items()
                if record.window_start < window_started_before
            ]
            for key in expired:
                del self._records[key]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    Limits requests per key within a window that starts at the key's first
    request (e.g., 20 requests per 3600 seconds). Expired records are swept
    from the store at most once per ``sweep_interval_seconds``.

    Important:
        The default store is per-process only. If the API runs with multiple
        workers, each worker enforces its own independent limits unless a
        shared store is injected.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        store: AbstractRateLimitStore | None = None,
        sweep_interval_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            limit: Maximum number of allowed requests per window.
            window_seconds: Size of the fixed window in seconds.
            store: Record storage; defaults to a fresh in-memory store.
            sweep_interval_seconds: Minimum time between sweeps of expired
                records. Defaults to ``window_seconds``.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit, window_seconds or sweep interval are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if sweep_interval_seconds is not None and sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._store = store if store is not None else InMemoryRateLimitStore()
        self._sweep_interval = sweep_interval_seconds or window_seconds
        self._clock = clock
        self._next_sweep_at = clock() + self._sweep_interval

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    @property
    def store(self) -> AbstractRateLimitStore:
        return self._store

    def _is_expired(self, record: RateRecord, now: float) -> bool:
        return now - record.window_start > self._window_seconds

    def _maybe_sweep(self, now: float) -> None:
        """Evict expired records when the sweep interval has elapsed."""
        if now < self._next_sweep_at:
            return
        self._next_sweep_at = now + self._sweep_interval
        removed = self._store.purge_expired(now - self._window_seconds)
        if removed:
            logger.debug(
                "rate_limit.swept",
                extra={"removed": removed, "tracked_keys": len(self._store)},
            )

    def sweep(self) -> int:
        """Evict every expired record now.

        Returns:
            Number of records removed.
        """
        now = self._clock()
        self._next_sweep_at = now + self._sweep_interval
        return self._store.purge_expired(now - self._window_seconds)

    def check(self, key: str) -> RateLimitResult:
        """Check the budget for ``key`` and count the request if allowed.

        Args:
            key: Client key for rate limiting.

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock()
        self._maybe_sweep(now)

        record = self._store.get(key)

        if record is None or self._is_expired(record, now):
            self._store.set(key, RateRecord(window_start=now, count=1))
            return RateLimitResult(
                allowed=True,
                limit=self._limit,
                remaining=self._limit - 1,
                reset_at=math.ceil(now + self._window_seconds),
                reset_in=None,
            )

        reset_at = record.window_start + self._window_seconds

        if record.count >= self._limit:
            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=0,
                reset_at=math.ceil(reset_at),
                reset_in=max(0, math.ceil(reset_at - now)),
            )

        count = record.count + 1
        self._store.set(key, RateRecord(window_start=record.window_start, count=count))
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=self._limit - count,
            reset_at=math.ceil(reset_at),
            reset_in=None,
        )
