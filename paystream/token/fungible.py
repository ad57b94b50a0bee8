"""
ERC-20-like fungible token ledger
=================================

Deterministic, float-free token ledger used for three things in paystream:
the underlying asset (:class:`~paystream.token.asset.InMemoryAsset`), the
vault's shares and the income split token.

Highlights
----------
- Explicit `caller` parameters for mutating calls (no ambient msg.sender).
- U256-checked math via :mod:`paystream.math.uint` (no silent wrap).
- Events on the ledger's :class:`~paystream.events.EventLog`:
    - Transfer { from, to, value }   (from=None on mint, to=None on burn)
    - Approval { owner, spender, value }
- Every balance movement funnels through :meth:`FungibleLedger._update`.
- Views take the ledger lock (:func:`~paystream.ledger.reader`).

Public interface
----------------
total_supply() -> int
balance_of(addr) -> int
allowance(owner, spender) -> int
transfer(caller, to, amount) -> bool
approve(caller, spender, amount) -> bool
transfer_from(caller, owner, to, amount) -> bool

Insufficient balance or allowance raises
:class:`~paystream.errors.TransferFailure`.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from ..errors import TransferFailure
from ..events import EventType
from ..ledger import LedgerBase, reader, require_address
from ..math.uint import add, require_u256, sub

U256_MAX_ALLOWANCE = (1 << 256) - 1


class FungibleLedger(LedgerBase):
    def __init__(self, address: str, *, name: str, symbol: str, decimals: int = 18) -> None:
        super().__init__(address)
        if not (0 <= decimals <= 255):
            raise ValueError("decimals must be in [0, 255]")
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self._total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[str, Dict[str, int]] = {}

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @reader
    def total_supply(self) -> int:
        return self._total_supply

    @reader
    def balance_of(self, addr: str) -> int:
        return self._balances.get(addr, 0)

    @reader
    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get(owner, {}).get(spender, 0)

    @reader
    def holders(self) -> Dict[str, int]:
        """Non-zero balances, sorted by address."""
        return {k: v for k, v in sorted(self._balances.items()) if v}

    # ------------------------------------------------------------------
    # Mutations (explicit caller)
    # ------------------------------------------------------------------

    def transfer(self, caller: str, to: str, amount: int) -> bool:
        with self._atomic("transfer"):
            self._transfer(caller, to, amount)
        return True

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        with self._atomic("approve"):
            self._approve(caller, spender, amount)
        return True

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        with self._atomic("transfer_from"):
            self._spend_allowance(owner, caller, amount)
            self._transfer(owner, to, amount)
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _transfer(self, sender: str, to: str, amount: int) -> None:
        require_address(sender, "from")
        require_address(to, "to")
        self._update(sender, to, amount)

    def _mint(self, to: str, amount: int) -> None:
        require_address(to, "to")
        self._update(None, to, amount)

    def _burn(self, owner: str, amount: int) -> None:
        require_address(owner, "from")
        self._update(owner, None, amount)

    def _update(self, sender: Optional[str], to: Optional[str], amount: int) -> None:
        require_u256(amount)
        if sender is None:
            self._total_supply = add(self._total_supply, amount)
        else:
            bal = self.balance_of(sender)
            if bal < amount:
                raise TransferFailure(
                    "insufficient balance",
                    sender=sender,
                    to=to,
                    amount=amount,
                    details={"token": self.address, "balance": bal},
                )
            self._balances[sender] = bal - amount
        if to is None:
            self._total_supply = sub(self._total_supply, amount)
        else:
            self._balances[to] = add(self.balance_of(to), amount)
        self.events.emit(EventType.TRANSFER, {"from": sender, "to": to, "value": amount})

    def _approve(self, owner: str, spender: str, amount: int) -> None:
        require_address(owner, "owner")
        require_address(spender, "spender")
        require_u256(amount)
        self._allowances.setdefault(owner, {})[spender] = amount
        self.events.emit(EventType.APPROVAL, {"owner": owner, "spender": spender, "value": amount})

    def _spend_allowance(self, owner: str, spender: str, amount: int) -> None:
        current = self.allowance(owner, spender)
        if current == U256_MAX_ALLOWANCE:
            return
        if current < amount:
            raise TransferFailure(
                "insufficient allowance",
                sender=owner,
                amount=amount,
                details={"token": self.address, "spender": spender, "allowance": current},
            )
        self._allowances[owner][spender] = current - amount

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def dump(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "total_supply": self._total_supply,
            "balances": {k: v for k, v in sorted(self._balances.items())},
            "allowances": {
                o: {s: a for s, a in sorted(sp.items())} for o, sp in sorted(self._allowances.items())
            },
        }

    def _restore(self, data: Dict[str, Any]) -> None:
        self._total_supply = int(data.get("total_supply", 0))
        self._balances = {str(k): int(v) for k, v in (data.get("balances") or {}).items()}
        self._allowances = {
            str(o): {str(s): int(a) for s, a in sp.items()}
            for o, sp in (data.get("allowances") or {}).items()
        }


__all__ = ["FungibleLedger", "U256_MAX_ALLOWANCE"]
