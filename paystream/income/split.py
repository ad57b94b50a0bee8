"""
Proportional income split token
===============================

A fixed-supply token whose holders share everything the contract receives in
the underlying asset, pro rata to their current balance ("dividends per
share" bookkeeping):

    total_received     = asset.balance_of(self) + total_released
    claimable(account) = (total_received - last_total_received[account])
                         * balance_of(account) // total_supply

Investment side channel
-----------------------
One holder, the *investment address*, never claims directly. Its slice of
income is re-distributed to investors by external investment weight
(:class:`~paystream.income.investment.TotalInvestmentSource`):

    return_on_investment()       = max(0, total_received * balance_of(inv)
                                           // total_supply - investment_released)
    claimable_on_investment(acc) = max(0, return_on_investment()
                                           * investment_of(acc) // total_investment()
                                           - claimed_from_investment[acc])

Transfers
---------
Before tokens move both parties are settled. The investment address is never
settled directly: it may receive tokens but cannot send them
(:class:`~paystream.errors.InvalidTarget`). Afterwards the receiver inherits
the sender's snapshot; when the receiver is the investment address, the
value's share of income so far (rounded up) is added to
``investment_released`` instead so that past income is not routed to
investors a second time.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .. import metrics
from ..clock import Clock
from ..errors import InvalidTarget
from ..events import EventType
from ..ledger import reader, require_address
from ..math.uint import add, mul_div_down, mul_div_up, sub, sub_floor
from ..token.asset import Asset
from ..token.fungible import FungibleLedger
from .investment import TotalInvestmentSource

log = logging.getLogger(__name__)


class IncomeSplitToken(FungibleLedger):
    def __init__(
        self,
        address: str,
        asset: Asset,
        *,
        investment_address: str,
        investment_source: TotalInvestmentSource,
        holders: Mapping[str, int],
        name: str = "Income Split Token",
        symbol: str = "SPLIT",
        decimals: int = 18,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(address, name=name, symbol=symbol, decimals=decimals)
        self.asset = asset
        self._share_lock(asset)
        self.investment_address = require_address(investment_address, "investment_address")
        self.investment_source = investment_source
        self.clock = clock
        self.total_released = 0
        self.investment_released = 0
        self._last_total_received: Dict[str, int] = {}
        self._claimed_from_investment: Dict[str, int] = {}
        for holder, amount in sorted(holders.items()):
            self._mint(holder, int(amount))
        if self.total_supply() == 0:
            raise ValueError("initial supply must be positive")

    def _at(self) -> Optional[int]:
        return self.clock.now() if self.clock is not None else None

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @reader
    def get_total_received(self) -> int:
        return add(self.asset.balance_of(self.address), self.total_released)

    @reader
    def last_total_received(self, account: str) -> int:
        return self._last_total_received.get(account, 0)

    @reader
    def claimed_from_investment(self, account: str) -> int:
        return self._claimed_from_investment.get(account, 0)

    @reader
    def claimable(self, account: str) -> int:
        received = sub(self.get_total_received(), self.last_total_received(account))
        return mul_div_down(received, self.balance_of(account), self.total_supply())

    @reader
    def return_on_investment(self) -> int:
        share = mul_div_down(self.get_total_received(), self.balance_of(self.investment_address), self.total_supply())
        return sub_floor(share, self.investment_released)

    @reader
    def claimable_on_investment(self, account: str) -> int:
        total = self.investment_source.total_investment()
        if total == 0:
            return 0
        entitlement = mul_div_down(self.return_on_investment(), self.investment_source.investment_of(account), total)
        return sub_floor(entitlement, self.claimed_from_investment(account))

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def claim(self, account: str) -> int:
        """Pay `account` its direct and investment income. Permissionless."""
        require_address(account, "account")
        with self._atomic("claim", self.asset):
            if account == self.investment_address:
                raise InvalidTarget("the investment address cannot claim", target=account)
            direct, from_investment = self._settle(account)
        metrics.record_claim(self.address, direct, from_investment)
        return direct + from_investment

    def transfer(self, caller: str, to: str, amount: int) -> bool:
        with self._atomic("transfer", self.asset):
            claims = self._transfer_settled(caller, to, amount)
        self._record_claims(claims)
        return True

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        with self._atomic("transfer_from", self.asset):
            self._spend_allowance(owner, caller, amount)
            claims = self._transfer_settled(owner, to, amount)
        self._record_claims(claims)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _settle(self, account: str) -> Tuple[int, int]:
        # both components are priced against the same pre-claim state
        received = self.get_total_received()
        direct = self.claimable(account)
        from_investment = self.claimable_on_investment(account)

        self._last_total_received[account] = received
        self.total_released = add(self.total_released, direct)
        if from_investment:
            self._claimed_from_investment[account] = add(self.claimed_from_investment(account), from_investment)
            self.total_released = add(self.total_released, from_investment)

        amount = direct + from_investment
        if amount > 0:
            self.asset.transfer(self.address, account, amount)
            self.events.emit(
                EventType.INCOME_CLAIMED,
                {"account": account, "amount": amount, "from_investment": from_investment},
                at=self._at(),
            )
            log.info("income claimed by %s: %d (%d via investment)", account, amount, from_investment)
        return direct, from_investment

    def _transfer_settled(self, sender: str, to: str, amount: int) -> List[Tuple[int, int]]:
        require_address(sender, "from")
        require_address(to, "to")
        if sender == self.investment_address:
            raise InvalidTarget("the investment address cannot transfer", target=sender)
        claims: List[Tuple[int, int]] = [self._settle(sender)]
        if to != self.investment_address:
            claims.append(self._settle(to))

        self._update(sender, to, amount)

        if to == self.investment_address:
            earmarked = mul_div_up(amount, self.get_total_received(), self.total_supply())
            self.investment_released = add(self.investment_released, earmarked)
            log.debug("earmarked %d of past income for the investment channel", earmarked)
        else:
            self._last_total_received[to] = self.last_total_received(sender)
        return claims

    def _record_claims(self, claims: List[Tuple[int, int]]) -> None:
        for direct, from_investment in claims:
            metrics.record_claim(self.address, direct, from_investment)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def dump(self) -> Dict[str, Any]:
        data = super().dump()
        data.update(
            {
                "asset": self.asset.address,
                "investment_address": self.investment_address,
                "total_released": self.total_released,
                "investment_released": self.investment_released,
                "last_total_received": {k: v for k, v in sorted(self._last_total_received.items())},
                "claimed_from_investment": {k: v for k, v in sorted(self._claimed_from_investment.items())},
            }
        )
        return data

    def _restore(self, data: Dict[str, Any]) -> None:
        super()._restore(data)
        self.total_released = int(data.get("total_released", 0))
        self.investment_released = int(data.get("investment_released", 0))
        self._last_total_received = {str(k): int(v) for k, v in (data.get("last_total_received") or {}).items()}
        self._claimed_from_investment = {
            str(k): int(v) for k, v in (data.get("claimed_from_investment") or {}).items()
        }

    @classmethod
    def load(
        cls,
        data: Dict[str, Any],
        asset: Asset,
        investment_source: TotalInvestmentSource,
        *,
        clock: Optional[Clock] = None,
    ) -> "IncomeSplitToken":
        token = cls(
            data["address"],
            asset,
            investment_address=data["investment_address"],
            investment_source=investment_source,
            holders={k: int(v) for k, v in (data.get("balances") or {}).items()},
            name=data.get("name", "Income Split Token"),
            symbol=data.get("symbol", "SPLIT"),
            decimals=int(data.get("decimals", 18)),
            clock=clock,
        )
        token._restore(data)
        return token


__all__ = ["IncomeSplitToken"]
