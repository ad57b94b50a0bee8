"""
Clock capability for the ledgers.

All "time" is read from an externally supplied clock at call time; nothing in
paystream sleeps or schedules work. Ledger entry points accept an explicit
``now`` (UNIX seconds) and fall back to the injected clock when it is omitted,
so tests drive time with :class:`ManualClock` and deployments use
:class:`SystemClock`.
"""
from __future__ import annotations

import time
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int:
        """Current time in integer UNIX seconds."""
        ...


class SystemClock:
    """Wall-clock seconds, never going backwards within one process."""

    def __init__(self) -> None:
        self._last = 0

    def now(self) -> int:
        t = int(time.time())
        if t < self._last:
            t = self._last
        self._last = t
        return t


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError("start must be non-negative")
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def set(self, t: int) -> int:
        if t < self._now:
            raise ValueError(f"clock cannot move backwards ({t} < {self._now})")
        self._now = int(t)
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("seconds must be non-negative")
        self._now += int(seconds)
        return self._now


def resolve_now(clock: Clock, now: Optional[int]) -> int:
    """An explicit `now` wins over the clock."""
    return int(now) if now is not None else clock.now()


__all__ = ["Clock", "SystemClock", "ManualClock", "resolve_now"]
