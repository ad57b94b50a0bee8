from __future__ import annotations

import pytest

from paystream.errors import RangeError
from paystream.math import (
    I256_MAX,
    U256_MAX,
    accrue,
    add,
    add_signed,
    elapsed,
    mul_div_down,
    mul_div_up,
    require_u256,
    sub,
    sub_floor,
)


def test_checked_add_and_sub():
    assert add(2, 3) == 5
    assert sub(5, 3) == 2
    with pytest.raises(RangeError):
        add(U256_MAX, 1)
    with pytest.raises(RangeError):
        sub(3, 5)


def test_saturating_sub_floors_at_zero():
    assert sub_floor(10, 3) == 7
    assert sub_floor(3, 10) == 0
    assert sub_floor(0, 0) == 0


def test_add_signed():
    assert add_signed(10, -4) == 6
    assert add_signed(10, 5) == 15
    with pytest.raises(RangeError):
        add_signed(3, -4)
    with pytest.raises(RangeError):
        add_signed(0, I256_MAX + 1)


def test_mul_div_rounding():
    assert mul_div_down(7, 3, 2) == 10
    assert mul_div_up(7, 3, 2) == 11
    # exact quotients agree
    assert mul_div_down(6, 4, 3) == mul_div_up(6, 4, 3) == 8
    with pytest.raises(RangeError):
        mul_div_down(1, 1, 0)


def test_mul_div_keeps_full_width_product():
    # (2^255 * 4) overflows 256 bits, the quotient does not
    assert mul_div_down(1 << 255, 4, 8) == 1 << 254
    with pytest.raises(RangeError):
        mul_div_down(U256_MAX, 2, 1)


def test_require_u256_rejects_bools_and_negatives():
    require_u256(0, 1, U256_MAX)
    with pytest.raises(RangeError):
        require_u256(True)
    with pytest.raises(RangeError):
        require_u256(-1)
    with pytest.raises(RangeError):
        require_u256(U256_MAX + 1)


def test_accrual():
    assert accrue(1, 100) == 100
    assert accrue(0, 10**9) == 0
    assert accrue(7, 0) == 0
    assert elapsed(100, 250) == 150
    with pytest.raises(RangeError):
        elapsed(250, 100)
