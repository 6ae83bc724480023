"""Token-bucket pacing for politely spaced upstream calls."""

from __future__ import annotations

import threading
import time
from typing import Callable, Iterable, Iterator, TypeVar

T = TypeVar("T")


class TokenBucket:
    def __init__(
        self,
        rate_per_sec: float,
        capacity: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.rate_per_sec = rate_per_sec
        self.capacity = capacity if capacity is not None else rate_per_sec
        self.tokens = self.capacity
        self.clock = clock
        self.sleep = sleep
        self.updated_at = clock()
        self.lock = threading.Lock()

    def acquire(self, tokens: float = 1.0) -> None:
        while True:
            with self.lock:
                now = self.clock()
                elapsed = now - self.updated_at
                self.tokens = min(self.capacity, self.tokens + elapsed * self.rate_per_sec)
                self.updated_at = now
                if self.tokens >= tokens:
                    self.tokens -= tokens
                    return
                deficit = tokens - self.tokens
                wait_for = max(deficit / self.rate_per_sec, 0.01)
            self.sleep(wait_for)


class HostRateLimiter:
    def __init__(self, default_rate_per_sec: float) -> None:
        self.default_rate_per_sec = default_rate_per_sec
        self.buckets: dict[str, TokenBucket] = {}
        self.lock = threading.Lock()

    def acquire(self, host: str, tokens: float = 1.0) -> None:
        with self.lock:
            bucket = self.buckets.get(host)
            if bucket is None:
                bucket = TokenBucket(rate_per_sec=self.default_rate_per_sec)
                self.buckets[host] = bucket
        bucket.acquire(tokens=tokens)


def fixed_interval_bucket(interval_seconds: float, **kwargs) -> TokenBucket:
    """One call per ``interval_seconds`` with no burst allowance."""
    if interval_seconds <= 0:
        raise ValueError("interval_seconds must be positive")
    return TokenBucket(rate_per_sec=1.0 / interval_seconds, capacity=1.0, **kwargs)


def paced(items: Iterable[T], bucket: TokenBucket) -> Iterator[T]:
    for item in items:
        bucket.acquire()
        yield item
