"""Tests for the per-button debounce limiter."""

from __future__ import annotations

import threading
import time
from datetime import timedelta

import pytest

from buttonoff.core.limiter import PressRateLimiter, TokenBucket


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.mark.parametrize(
    "trials",
    [
        pytest.param(
            [(0.001, True), (0.010, False), (0.091, True)],
            id="100ms-period",
        ),
        pytest.param(
            [
                (0.001, True),
                (0.010, False),
                (0.091, True),
                (0.201, True),
                (0.010, False),
            ],
            id="100ms-period-repeats",
        ),
    ],
)
def test_accept_period(trials):
    limiter = PressRateLimiter(timedelta(milliseconds=100))

    for delay, expected in trials:
        time.sleep(delay)
        assert limiter.accept("key") is expected


def test_first_press_is_accepted_for_every_key():
    clock = FakeClock()
    limiter = PressRateLimiter(timedelta(seconds=10), clock=clock)

    assert limiter.accept("aa:aa:aa:aa:aa:aa")
    assert limiter.accept("bb:bb:bb:bb:bb:bb")
    assert not limiter.accept("aa:aa:aa:aa:aa:aa")
    assert len(limiter) == 2


def test_token_returns_after_full_period():
    clock = FakeClock()
    limiter = PressRateLimiter(timedelta(seconds=10), clock=clock)

    assert limiter.accept("key")
    clock.advance(9)
    assert not limiter.accept("key")
    clock.advance(1)
    assert limiter.accept("key")


def test_idle_time_does_not_accumulate_tokens():
    clock = FakeClock()
    limiter = PressRateLimiter(timedelta(seconds=1), clock=clock)

    assert limiter.accept("key")
    clock.advance(3600)
    assert limiter.accept("key")
    assert not limiter.accept("key")


def test_bucket_rejects_non_positive_period():
    with pytest.raises(ValueError):
        TokenBucket(0)


def test_concurrent_first_sightings_create_one_bucket():
    limiter = PressRateLimiter(timedelta(seconds=10), clock=FakeClock())
    barrier = threading.Barrier(16)
    results: list[bool] = []
    results_lock = threading.Lock()

    def press() -> None:
        barrier.wait()
        accepted = limiter.accept("fc:a6:67:b1:24:41")
        with results_lock:
            results.append(accepted)

    threads = [threading.Thread(target=press) for _ in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count(True) == 1
    assert len(limiter) == 1


@pytest.mark.parametrize("denied_at", [0.01, 0.016, 0.019, 0.022, 0.025, 0.07])
def test_refused_press_does_not_delay_next_accept(denied_at):
    clock = FakeClock()
    limiter = PressRateLimiter(timedelta(milliseconds=700), clock=clock)

    assert limiter.accept("key")
    clock.now = denied_at
    assert not limiter.accept("key")
    clock.now = 0.7
    assert limiter.accept("key")


def test_accepts_at_exactly_default_period_after_refusals():
    clock = FakeClock()
    limiter = PressRateLimiter(clock=clock)

    assert limiter.accept("key")
    for ms in range(1, 600, 7):
        clock.now = ms / 1000
        assert not limiter.accept("key")
    clock.now = 0.6
    assert limiter.accept("key")
