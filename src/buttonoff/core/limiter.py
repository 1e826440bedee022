from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Protocol

from buttonoff.config import DEFAULT_DEBOUNCE_PERIOD

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class Accepter(Protocol):
    def accept(self, key: str) -> bool: ...


class TokenBucket:
    """Single-token bucket refilled at one token per ``period`` seconds.

    The bucket starts full, so the first call to :meth:`take` succeeds.
    With a capacity of one the bucket state is just the instant it was last
    drained; it is full again once ``period`` has passed since then, however
    many calls were refused in between.
    """

    def __init__(self, period: float, clock: Clock = time.monotonic) -> None:
        if period <= 0:
            raise ValueError("period must be positive")
        self._period = period
        self._clock = clock
        self._lock = threading.Lock()
        self._drained: float | None = None

    def take(self) -> bool:
        with self._lock:
            now = self._clock()
            if self._drained is not None and now - self._drained < self._period:
                return False
            self._drained = now
            return True


class PressRateLimiter:
    """Per-key debounce: at most one accepted press per key per period."""

    def __init__(
        self,
        period: timedelta = DEFAULT_DEBOUNCE_PERIOD,
        clock: Clock = time.monotonic,
    ) -> None:
        self._period = period.total_seconds()
        self._clock = clock
        self._lock = threading.Lock()
        self._buckets: dict[str, TokenBucket] = {}

    def _bucket(self, key: str) -> TokenBucket:
        bucket = self._buckets.get(key)
        if bucket is not None:
            return bucket

        with self._lock:
            # another thread may have created it while we waited
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = TokenBucket(self._period, self._clock)
                self._buckets[key] = bucket
                logger.debug("Created debounce bucket for %s", key)
            return bucket

    def accept(self, key: str) -> bool:
        return self._bucket(key).take()

    def __len__(self) -> int:
        return len(self._buckets)
