"""
tenancy_sdk.tier1_runtime.clock
──────────────────────────────────
Mockable time source. Cache expiry and resolution timings read time from
here instead of calling time.time() directly, so TTL behaviour is fully
controllable in tests without sleeping.
"""
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable


# ── Clock implementation ───────────────────────────────────────────────────

class Clock:
    """Wall clock in float seconds. Override time_fn to control time."""

    def __init__(self, time_fn: Callable[[], float] | None = None) -> None:
        self._time_fn = time_fn or time.time

    def time(self) -> float:
        """Return the current Unix timestamp (float seconds)."""
        return self._time_fn()

    def time_ms(self) -> int:
        return int(self.time() * 1000)

    def now(self) -> datetime:
        """Return the current UTC datetime."""
        return datetime.fromtimestamp(self.time(), tz=timezone.utc)


class FrozenClock(Clock):
    """
    Clock that only moves when told to.

    Usage::

        clock = FrozenClock(1_700_000_000.0)
        cache = TenantCache("lazy", ttl_seconds=1, clock=clock)
        clock.advance(2)
    """

    def __init__(self, at: float = 0.0) -> None:
        self._at = at
        super().__init__(lambda: self._at)

    def advance(self, seconds: float) -> None:
        self._at += seconds


# ── Module-level singleton ─────────────────────────────────────────────────

_clock = Clock()


def get_clock() -> Clock:
    """Return the global clock instance."""
    return _clock


def set_clock(clock: Clock) -> None:
    """Replace the global clock (use in tests)."""
    global _clock
    _clock = clock


def now() -> datetime:
    """Return the current UTC datetime."""
    return _clock.now()


def timestamp() -> float:
    """Return the current Unix timestamp."""
    return _clock.time()


def timestamp_ms() -> int:
    """Return the current Unix timestamp in milliseconds."""
    return _clock.time_ms()


__all__ = [
    "Clock", "FrozenClock", "get_clock", "set_clock", "now", "timestamp", "timestamp_ms",
]
