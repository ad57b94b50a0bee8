"""
Global salary accumulator.

Tracks the aggregate committed salary rate and a running total of everything
ever accrued, checkpointed at ``last_release_at``:

    total_accumulated_salary(now) = old_total_accumulated_salary
                                    + total_sps * (now - last_release_at)

For a fixed ``total_sps`` this is monotone non-decreasing in ``now``. Anything
that changes ``total_sps`` must :meth:`settle` first so the old rate is folded
into ``old_total_accumulated_salary`` up to the change.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict

from ..math.accrual import accrue, elapsed
from ..math.uint import add, add_signed, sub_floor

log = logging.getLogger(__name__)


@dataclass
class GlobalAccumulator:
    total_sps: int = 0
    old_total_accumulated_salary: int = 0
    last_release_at: int = 0
    total_released: int = 0

    def total_accumulated_salary(self, now: int) -> int:
        return add(
            self.old_total_accumulated_salary,
            accrue(self.total_sps, elapsed(self.last_release_at, now)),
        )

    def total_pending_salary(self, now: int) -> int:
        """Accrued salary not yet paid out."""
        return sub_floor(self.total_accumulated_salary(now), self.total_released)

    def settle(self, now: int) -> None:
        """Fold accrual up to `now` into the checkpoint. Idempotent at a fixed `now`."""
        if now == self.last_release_at:
            return
        self.old_total_accumulated_salary = self.total_accumulated_salary(now)
        self.last_release_at = now
        log.debug("accumulator settled at %d: accumulated=%d", now, self.old_total_accumulated_salary)

    def apply_rate_delta(self, delta: int) -> None:
        """Signed change of the committed rate; callers settle first."""
        self.total_sps = add_signed(self.total_sps, delta)

    def record_release(self, amount: int) -> None:
        self.total_released = add(self.total_released, amount)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "GlobalAccumulator":
        return GlobalAccumulator(
            total_sps=int(d.get("total_sps", 0)),
            old_total_accumulated_salary=int(d.get("old_total_accumulated_salary", 0)),
            last_release_at=int(d.get("last_release_at", 0)),
            total_released=int(d.get("total_released", 0)),
        )


__all__ = ["GlobalAccumulator"]
