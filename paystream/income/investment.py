"""
Investment weight sources.

The income split ledger routes the investment address's slice of income to
investors in proportion to an external investment weight. Weights are read
through the :class:`TotalInvestmentSource` capability; the ledger never
writes them and assumes nothing about freshness beyond "current state".

Implementations:
  - :class:`StaticInvestmentSource`: explicit, mutable weights (tests, fixtures).
  - :class:`VaultInvestmentSource`: a :class:`~paystream.vault.SalaryVault`'s
    depositors, weighted by ``investment_of_v2`` (deposits already spent on
    salary).
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from ..math.uint import require_u256

if TYPE_CHECKING:  # pragma: no cover
    from ..vault import SalaryVault


@runtime_checkable
class TotalInvestmentSource(Protocol):
    def total_investment(self) -> int:
        ...

    def investment_of(self, account: str) -> int:
        ...


class StaticInvestmentSource:
    """
    Weights set by hand. The total is independent of the per-account map so a
    fixture can model investors this process does not know about.
    """

    def __init__(self, total: int = 0, weights: Optional[Mapping[str, int]] = None) -> None:
        require_u256(total, *(weights or {}).values())
        self._total = total
        self._weights: Dict[str, int] = dict(weights or {})

    def total_investment(self) -> int:
        return self._total

    def investment_of(self, account: str) -> int:
        return self._weights.get(account, 0)

    def set_total(self, total: int) -> None:
        require_u256(total)
        self._total = total

    def set_investment(self, account: str, amount: int) -> None:
        require_u256(amount)
        self._weights[account] = amount

    def dump(self) -> Dict[str, Any]:
        return {"total": self._total, "weights": {k: v for k, v in sorted(self._weights.items())}}


class VaultInvestmentSource:
    def __init__(self, vault: "SalaryVault") -> None:
        self.vault = vault

    def total_investment(self) -> int:
        return self.vault.total_investment()

    def investment_of(self, account: str) -> int:
        return self.vault.investment_of_v2(account)


__all__ = ["TotalInvestmentSource", "StaticInvestmentSource", "VaultInvestmentSource"]
