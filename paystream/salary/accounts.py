"""
Per-beneficiary salary records.

Each beneficiary has a current per-second rate and the timestamp it was last
settled at, plus a *pending release*: salary that a rate change already
settled but that has not been paid yet.

    releasable(account, now) = current_sps * (now - last_release_at)
                               + pending_release[account]

Entries are created lazily on first touch and never deleted.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Tuple

from ..math.accrual import accrue, elapsed
from ..math.uint import add


@dataclass
class AccountSalary:
    current_sps: int = 0
    last_release_at: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"current_sps": self.current_sps, "last_release_at": self.last_release_at}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "AccountSalary":
        return AccountSalary(current_sps=int(d.get("current_sps", 0)), last_release_at=int(d.get("last_release_at", 0)))


class SalaryBook:
    """AccountSalary and PendingRelease mappings, keyed by beneficiary."""

    def __init__(self) -> None:
        self._accounts: Dict[str, AccountSalary] = {}
        self._pending_release: Dict[str, int] = {}

    def get(self, account: str) -> AccountSalary:
        rec = self._accounts.get(account)
        if rec is None:
            rec = self._accounts[account] = AccountSalary()
        return rec

    def peek(self, account: str) -> AccountSalary:
        """Read-only lookup that does not create an entry."""
        return self._accounts.get(account) or AccountSalary()

    def pending_release(self, account: str) -> int:
        return self._pending_release.get(account, 0)

    def releasable(self, account: str, now: int) -> int:
        rec = self.peek(account)
        if rec.current_sps == 0:
            return self.pending_release(account)
        earned = accrue(rec.current_sps, elapsed(rec.last_release_at, now))
        return add(earned, self.pending_release(account))

    def settle(self, account: str, now: int) -> int:
        """
        Zero the account's releasable balance as of `now` and return it. The
        caller decides whether the amount is paid or stashed.
        """
        amount = self.releasable(account, now)
        rec = self.get(account)
        self._pending_release[account] = 0
        rec.last_release_at = now
        return amount

    def stash(self, account: str, amount: int) -> None:
        self._pending_release[account] = amount

    def sum_sps(self) -> int:
        return sum(r.current_sps for r in self._accounts.values())

    def items(self) -> Iterator[Tuple[str, AccountSalary]]:
        return iter(sorted(self._accounts.items()))

    def dump(self) -> Dict[str, Any]:
        return {
            "accounts": {k: v.to_dict() for k, v in sorted(self._accounts.items())},
            "pending_release": {k: v for k, v in sorted(self._pending_release.items())},
        }

    def restore(self, data: Dict[str, Any]) -> None:
        self._accounts = {str(k): AccountSalary.from_dict(v) for k, v in (data.get("accounts") or {}).items()}
        self._pending_release = {str(k): int(v) for k, v in (data.get("pending_release") or {}).items()}


__all__ = ["AccountSalary", "SalaryBook"]
