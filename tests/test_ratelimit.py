from __future__ import annotations

import pytest

from viper_server.errors import RateLimitExceeded
from viper_server.ratelimit import SlidingWindowLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_window_slides_instead_of_resetting():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(max_requests=2, window_seconds=10, clock=clock)

    assert limiter.hit("ip") == 1
    clock.now += 6
    assert limiter.hit("ip") == 0
    with pytest.raises(RateLimitExceeded) as info:
        limiter.hit("ip")
    assert info.value.retry_after == pytest.approx(4.0)

    # First hit ages out; only one slot frees up.
    clock.now += 4.5
    assert limiter.hit("ip") == 0
    with pytest.raises(RateLimitExceeded):
        limiter.hit("ip")


def test_keys_are_independent():
    limiter = SlidingWindowLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    limiter.hit("a")
    assert limiter.hit("b") == 0
    assert limiter.remaining("a") == 0
    assert limiter.remaining("never-seen") == 1


def test_idle_keys_are_evicted():
    clock = FakeClock()
    limiter = SlidingWindowLimiter(max_requests=5, window_seconds=10, clock=clock)
    for i in range(100):
        limiter.hit(f"caller-{i}")
    assert len(limiter) == 100

    clock.now += 11
    limiter.hit("fresh")
    assert len(limiter) == 1


def test_rejects_nonsense_limits():
    with pytest.raises(ValueError):
        SlidingWindowLimiter(max_requests=0)
