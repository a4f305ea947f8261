"""Unit tests for the in-memory fixed-window rate limiter adapter."""

from unittest.mock import Mock

import pytest

from chat_proxy.adapters.rate_limit.base import RateRecord
from chat_proxy.adapters.rate_limit.in_memory import (
    InMemoryFixedWindowRateLimiter,
    InMemoryRateLimitStore,
)


def test_first_request_opens_window() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryRateLimitStore()
    limiter = InMemoryFixedWindowRateLimiter(limit=5, window_seconds=60, store=store, clock=clock)

    result = limiter.check("k")

    assert result.allowed is True
    assert result.remaining == 4
    assert result.reset_in is None
    assert store.get("k") == RateRecord(window_start=1000.0, count=1)


def test_remaining_decreases_by_one_per_call() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=4, window_seconds=60, clock=clock)

    remaining = [limiter.check("k").remaining for _ in range(4)]

    assert remaining == [3, 2, 1, 0]


def test_blocks_when_over_limit() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=2, window_seconds=60, clock=clock)

    assert limiter.check("k").allowed is True
    assert limiter.check("k").allowed is True

    clock.return_value = 1010.5
    blocked = limiter.check("k")
    assert blocked.allowed is False
    assert blocked.remaining == 0
    # ceil(1000 + 60 - 1010.5)
    assert blocked.reset_in == 50


def test_blocked_requests_do_not_extend_window() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryRateLimitStore()
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60, store=store, clock=clock)

    limiter.check("k")
    limiter.check("k")
    limiter.check("k")

    assert store.get("k") == RateRecord(window_start=1000.0, count=1)


def test_window_boundary_is_inclusive() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=10, clock=clock)

    assert limiter.check("k").allowed is True

    # Exactly window_seconds later the window has not yet expired
    clock.return_value = 1010.0
    assert limiter.check("k").allowed is False


def test_resets_after_window_elapses() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryRateLimitStore()
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=10, store=store, clock=clock)

    assert limiter.check("k").allowed is True
    assert limiter.check("k").allowed is False

    clock.return_value = 1010.5
    result = limiter.check("k")
    assert result.allowed is True
    assert result.remaining == 0
    assert store.get("k") == RateRecord(window_start=1010.5, count=1)


def test_isolated_by_key() -> None:
    clock = Mock(return_value=1000.0)
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.check("k1").allowed is True
    assert limiter.check("k1").allowed is False

    assert limiter.check("k2").allowed is True


def test_sweep_evicts_only_expired_records() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryRateLimitStore()
    limiter = InMemoryFixedWindowRateLimiter(limit=5, window_seconds=60, store=store, clock=clock)

    limiter.check("old")
    clock.return_value = 1050.0
    limiter.check("fresh")

    clock.return_value = 1070.0
    removed = limiter.sweep()

    assert removed == 1
    assert store.get("old") is None
    assert store.get("fresh") is not None
    assert len(store) == 1


def test_check_sweeps_after_interval() -> None:
    clock = Mock(return_value=1000.0)
    store = InMemoryRateLimitStore()
    limiter = InMemoryFixedWindowRateLimiter(
        limit=5,
        window_seconds=10,
        store=store,
        sweep_interval_seconds=30,
        clock=clock,
    )

    limiter.check("a")
    limiter.check("b")

    # Expired but the sweep interval has not elapsed yet
    clock.return_value = 1020.0
    limiter.check("c")
    assert len(store) == 3

    clock.return_value = 1031.0
    limiter.check("d")
    assert store.get("a") is None
    assert store.get("b") is None
    assert store.get("c") is None
    assert store.get("d") is not None


def test_uses_injected_store() -> None:
    store = Mock()
    store.get.return_value = RateRecord(window_start=1000.0, count=3)
    limiter = InMemoryFixedWindowRateLimiter(
        limit=3, window_seconds=60, store=store, clock=Mock(return_value=1001.0)
    )

    result = limiter.check("k")

    assert result.allowed is False
    store.get.assert_called_once_with("k")
    store.set.assert_not_called()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0, "window_seconds": 60},
        {"limit": 1, "window_seconds": 0},
        {"limit": 1, "window_seconds": 60, "sweep_interval_seconds": 0},
    ],
)
def test_invalid_constructor_args(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        InMemoryFixedWindowRateLimiter(**kwargs)


def test_invalid_check_args() -> None:
    limiter = InMemoryFixedWindowRateLimiter(limit=1, window_seconds=60)

    with pytest.raises(ValueError):
        limiter.check("")
