"""
paystream.math.uint
===================

Checked and saturating unsigned-integer helpers for the ledgers.

Goals
-----
- U256-oriented arithmetic that never touches floats.
- Two styles of safety:
  1) **Checked**: raise :class:`~paystream.errors.RangeError` on
     overflow/underflow/div-by-zero.
  2) **Saturating**: clamp to bounds (flooring on subtract).
- Explicit rounding: every division says whether it floors or ceils.

``mul_div_down``/``mul_div_up`` keep the full ``a * b`` product before dividing.
Python integers are unbounded, so the intermediate is at least as wide as the
512-bit product a fixed-width implementation needs; only the inputs and the
final quotient are range-checked.
"""
from __future__ import annotations

from typing import Final

from ..errors import RangeError

U256_MAX: Final[int] = (1 << 256) - 1
I256_MIN: Final[int] = -(1 << 255)
I256_MAX: Final[int] = (1 << 255) - 1


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def require_u256(*xs: int) -> None:
    """Raise if any value is outside [0, U256_MAX]."""
    for n in xs:
        if not isinstance(n, int) or isinstance(n, bool):
            raise RangeError("expected an integer amount", details={"value": repr(n)})
        if n < 0 or n > U256_MAX:
            raise RangeError("value outside u256", details={"value": n})


def require_i256(*xs: int) -> None:
    """Raise if any value is outside [I256_MIN, I256_MAX]."""
    for n in xs:
        if n < I256_MIN or n > I256_MAX:
            raise RangeError("value outside i256", details={"value": n})


def require_divisor(d: int) -> None:
    if d == 0:
        raise RangeError("division by zero")


# ---------------------------------------------------------------------------
# Saturating
# ---------------------------------------------------------------------------

def sub_floor(x: int, y: int) -> int:
    """Saturating subtract: returns 0 when y > x."""
    require_u256(x, y)
    return x - y if x > y else 0


# ---------------------------------------------------------------------------
# Checked
# ---------------------------------------------------------------------------

def add(x: int, y: int) -> int:
    """Checked add: raise on overflow."""
    require_u256(x, y)
    s = x + y
    if s > U256_MAX:
        raise RangeError("u256 overflow", details={"x": x, "y": y})
    return s


def sub(x: int, y: int) -> int:
    """Checked sub: raise on underflow (y > x)."""
    require_u256(x, y)
    if y > x:
        raise RangeError("u256 underflow", details={"x": x, "y": y})
    return x - y


def add_signed(x: int, delta: int) -> int:
    """Apply a signed i256 delta to a u256 value, checked on both ends."""
    require_u256(x)
    require_i256(delta)
    r = x + delta
    if r < 0 or r > U256_MAX:
        raise RangeError("signed adjustment out of range", details={"x": x, "delta": delta})
    return r


def mul_div_down(a: int, b: int, d: int) -> int:
    """floor((a * b) / d) with a full-width intermediate product."""
    require_u256(a, b, d)
    require_divisor(d)
    q = (a * b) // d
    if q > U256_MAX:
        raise RangeError("mul_div result outside u256", details={"a": a, "b": b, "d": d})
    return q


def mul_div_up(a: int, b: int, d: int) -> int:
    """ceil((a * b) / d) with a full-width intermediate product."""
    require_u256(a, b, d)
    require_divisor(d)
    q = -((-(a * b)) // d)
    if q > U256_MAX:
        raise RangeError("mul_div result outside u256", details={"a": a, "b": b, "d": d})
    return q


__all__ = [
    "U256_MAX",
    "I256_MIN",
    "I256_MAX",
    "require_u256",
    "require_i256",
    "require_divisor",
    "sub_floor",
    "add",
    "sub",
    "add_signed",
    "mul_div_down",
    "mul_div_up",
]
