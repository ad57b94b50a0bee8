"""
Salary rate-change scheduler.

A rate change goes through a two-step queue → commit, gated by a waiting
period (a deployment parameter, possibly zero):

    NoPendingUpdate --schedule--> PendingUpdate --commit (once due)--> NoPendingUpdate

Monthly salaries are converted to per-second rates by floor division with the
configured month length. At most one update per account can be pending; it
cannot be re-armed until committed.

This module only owns the queue. Settlement of the old rate and the change of
the global rate happen in the vault, which calls :meth:`RateChangeScheduler.due`
and :meth:`RateChangeScheduler.clear` around its own effects.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..config import SECONDS_PER_MONTH
from ..errors import InvalidState, NoOp, NothingPending, NotYetDue, RangeError
from ..math.uint import require_i256, require_u256


@dataclass(frozen=True)
class PendingUpdate:
    expected_sps: int
    update_time: int

    def to_dict(self) -> Dict[str, int]:
        return {"expected_sps": self.expected_sps, "update_time": self.update_time}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "PendingUpdate":
        return PendingUpdate(expected_sps=int(d["expected_sps"]), update_time=int(d["update_time"]))


def monthly_to_sps(monthly: int, seconds_per_month: int = SECONDS_PER_MONTH) -> int:
    """Per-second rate for a monthly amount (floor)."""
    require_u256(monthly)
    return monthly // seconds_per_month


def sps_to_monthly(sps: int, seconds_per_month: int = SECONDS_PER_MONTH) -> int:
    """Nominal monthly amount for a per-second rate."""
    return sps * seconds_per_month


class RateChangeScheduler:
    def __init__(self, *, waiting_period: int = 0, seconds_per_month: int = SECONDS_PER_MONTH) -> None:
        if waiting_period < 0:
            raise ValueError("waiting_period must be non-negative")
        if seconds_per_month <= 0:
            raise ValueError("seconds_per_month must be positive")
        self.waiting_period = waiting_period
        self.seconds_per_month = seconds_per_month
        self._pending: Dict[str, PendingUpdate] = {}

    def pending(self, account: str) -> Optional[PendingUpdate]:
        return self._pending.get(account)

    def schedule(self, account: str, new_monthly: int, *, current_sps: int, now: int) -> PendingUpdate:
        if account in self._pending:
            raise InvalidState(
                "an update is already pending for this account",
                details={"account": account, "update_time": self._pending[account].update_time},
            )
        rate = monthly_to_sps(new_monthly, self.seconds_per_month)
        if rate == current_sps:
            raise NoOp("new rate equals the current rate", details={"account": account, "sps": rate})
        try:
            require_i256(rate, rate - current_sps)
        except RangeError as e:
            raise RangeError("rate does not fit the signed range", details={"account": account, "sps": rate}) from e
        upd = PendingUpdate(expected_sps=rate, update_time=now + self.waiting_period)
        self._pending[account] = upd
        return upd

    def due(self, account: str, now: int) -> PendingUpdate:
        """The account's pending update, provided it can be committed at `now`."""
        upd = self._pending.get(account)
        if upd is None:
            raise NothingPending("no update scheduled", details={"account": account})
        if now < upd.update_time:
            raise NotYetDue(due_at=upd.update_time, now=now, details={"account": account})
        return upd

    def pending_accounts(self) -> List[str]:
        return sorted(self._pending)

    def clear(self, account: str) -> None:
        self._pending.pop(account, None)

    def dump(self) -> Dict[str, Any]:
        return {
            "waiting_period": self.waiting_period,
            "seconds_per_month": self.seconds_per_month,
            "pending": {k: v.to_dict() for k, v in sorted(self._pending.items())},
        }

    def restore(self, data: Dict[str, Any]) -> None:
        self._pending = {str(k): PendingUpdate.from_dict(v) for k, v in (data.get("pending") or {}).items()}


__all__ = ["PendingUpdate", "RateChangeScheduler", "monthly_to_sps", "sps_to_monthly"]
