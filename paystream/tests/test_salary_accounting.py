from __future__ import annotations

import pytest

from paystream.errors import RangeError
from paystream.salary import GlobalAccumulator, SalaryBook


def test_accumulator_settle_is_idempotent_at_fixed_time():
    acc = GlobalAccumulator(total_sps=3, last_release_at=100)
    assert acc.total_accumulated_salary(110) == 30
    acc.settle(110)
    acc.settle(110)
    assert acc.old_total_accumulated_salary == 30
    assert acc.last_release_at == 110
    assert acc.total_accumulated_salary(110) == 30


def test_accumulator_monotone_without_rate_change():
    acc = GlobalAccumulator(total_sps=5, last_release_at=0)
    seen = [acc.total_accumulated_salary(t) for t in (0, 1, 7, 7, 1000)]
    assert seen == sorted(seen)


def test_pending_is_accumulated_minus_released():
    acc = GlobalAccumulator(total_sps=2, last_release_at=0)
    acc.record_release(15)
    assert acc.total_pending_salary(10) == 5
    assert acc.total_released + acc.total_pending_salary(10) == acc.total_accumulated_salary(10)


def test_accumulator_rejects_time_travel():
    acc = GlobalAccumulator(total_sps=1, last_release_at=50)
    with pytest.raises(RangeError):
        acc.total_accumulated_salary(49)


def test_rate_delta_cannot_go_negative():
    acc = GlobalAccumulator(total_sps=1)
    acc.apply_rate_delta(4)
    assert acc.total_sps == 5
    with pytest.raises(RangeError):
        acc.apply_rate_delta(-6)


def test_salary_book_settle_and_stash():
    book = SalaryBook()
    rec = book.get("a")
    rec.current_sps = 4
    rec.last_release_at = 10
    book.stash("a", 7)

    assert book.releasable("a", 20) == 47
    assert book.settle("a", 20) == 47
    assert book.releasable("a", 20) == 0
    assert book.pending_release("a") == 0


def test_peek_does_not_create_entries():
    book = SalaryBook()
    assert book.releasable("ghost", 123) == 0
    assert list(book.items()) == []
