"""
paystream.math
==============

Deterministic, integer-only math for the ledgers. No floats anywhere; every
division states its rounding mode (floor for accrual and pro-rata claims, ceil
where the protocol rounds in its own favour).
"""
from __future__ import annotations

from .accrual import accrue, elapsed
from .uint import (
    I256_MAX,
    I256_MIN,
    U256_MAX,
    add,
    add_signed,
    mul_div_down,
    mul_div_up,
    require_i256,
    require_u256,
    sub,
    sub_floor,
)

__all__ = [
    "U256_MAX",
    "I256_MIN",
    "I256_MAX",
    "accrue",
    "elapsed",
    "add",
    "add_signed",
    "sub",
    "sub_floor",
    "mul_div_down",
    "mul_div_up",
    "require_u256",
    "require_i256",
]
