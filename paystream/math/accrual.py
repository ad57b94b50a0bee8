"""Linear per-second accrual: the one formula every ledger component shares."""
from __future__ import annotations

from ..errors import RangeError
from .uint import mul_div_down


def elapsed(since: int, now: int) -> int:
    """Seconds between two timestamps; the clock must not run backwards."""
    if now < since:
        raise RangeError("clock moved backwards", details={"since": since, "now": now})
    return now - since


def accrue(rate: int, elapsed_seconds: int) -> int:
    """Amount earned by `rate` units/second over `elapsed_seconds`: rate * elapsed, exact."""
    return mul_div_down(rate, elapsed_seconds, 1)


__all__ = ["accrue", "elapsed"]
