from __future__ import annotations

import pytest

from errors import RateLimitExceeded
from rate_limit import FixedWindowRateLimiter


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_sixty_calls_pass_and_sixty_first_fails() -> None:
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(clock=clock)
    for _ in range(60):
        limiter.check_and_consume()
    with pytest.raises(RateLimitExceeded, match="Rate limit exceeded"):
        limiter.check_and_consume()
    assert limiter.snapshot().count == 60


def test_rejected_call_does_not_increment() -> None:
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=2, clock=clock)
    limiter.check_and_consume()
    limiter.check_and_consume()
    for _ in range(3):
        with pytest.raises(RateLimitExceeded):
            limiter.check_and_consume()
    assert limiter.snapshot().count == 2


def test_window_resets_after_elapsed_window() -> None:
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(clock=clock)
    for _ in range(60):
        limiter.check_and_consume()

    clock.now += 60.5
    limiter.check_and_consume()

    state = limiter.snapshot()
    assert state.count == 1
    assert state.window_start == clock.now


def test_window_does_not_reset_at_exact_boundary() -> None:
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=1, clock=clock)
    limiter.check_and_consume()
    clock.now += 60.0
    with pytest.raises(RateLimitExceeded):
        limiter.check_and_consume()


def test_boundary_burst_admits_twice_the_ceiling() -> None:
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=5, clock=clock)
    clock.now += 59.9
    for _ in range(5):
        limiter.check_and_consume()
    clock.now += 0.2
    for _ in range(5):
        limiter.check_and_consume()
    assert limiter.snapshot().count == 5


def test_snapshot_does_not_mutate_state() -> None:
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(clock=clock)
    limiter.check_and_consume()
    clock.now += 120
    state = limiter.snapshot()
    assert state.count == 1
    assert state.window_start == 1_000.0


def test_invalid_settings_rejected() -> None:
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(max_requests=0)
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(window_seconds=0)
