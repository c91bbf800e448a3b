"""Coalescing rate limiter for observer updates."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class UpdateThrottle(Generic[T]):
    """Publish snapshots no more often than once per *interval* seconds.

    ``update`` may be called at any rate. An update that arrives too soon
    after the last publish is held, and exactly one deferred publish is
    scheduled for the end of the window; every update that lands before it
    fires replaces the held value, so the observer sees the latest state
    once. ``flush`` publishes immediately and cancels anything pending,
    which is how the final state of a stream is delivered.

    Must be used from a running event loop.

    Args:
        publish: Called with each snapshot that gets through.
        interval: Minimum seconds between publishes.
    """

    def __init__(self, publish: Callable[[T], None], interval: float):
        self._publish = publish
        self.interval = interval
        self._last_publish: float | None = None
        self._pending: asyncio.TimerHandle | None = None
        self._latest: T | None = None

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def update(self, value: T) -> None:
        loop = asyncio.get_running_loop()
        self._latest = value
        if self._pending is not None:
            return
        now = loop.time()
        if self._last_publish is None or now - self._last_publish >= self.interval:
            self._emit(value, now)
            return
        delay = self.interval - (now - self._last_publish)
        self._pending = loop.call_later(delay, self._fire)

    def flush(self, value: T) -> None:
        self.cancel()
        self._latest = value
        self._emit(value, asyncio.get_running_loop().time())

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self) -> None:
        self._pending = None
        self._emit(self._latest, asyncio.get_running_loop().time())

    def _emit(self, value: T, now: float) -> None:
        self._last_publish = now
        self._publish(value)
