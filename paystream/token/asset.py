"""
The underlying asset the vault pays salary in and the split token receives.

The ledgers only rely on the :class:`Asset` protocol: balance queries plus
transfer / transfer-from that raise :class:`~paystream.errors.TransferFailure`
when the sender's balance or allowance is short. No retries.

:class:`InMemoryAsset` is the in-process implementation; its supply is fixed
at construction from an initial balance map.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol, runtime_checkable

from .fungible import FungibleLedger


@runtime_checkable
class Asset(Protocol):
    address: str

    def balance_of(self, addr: str) -> int:
        ...

    def transfer(self, caller: str, to: str, amount: int) -> bool:
        ...

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        ...


class InMemoryAsset(FungibleLedger):
    def __init__(
        self,
        address: str,
        *,
        name: str = "Stable Asset",
        symbol: str = "STBL",
        decimals: int = 18,
        initial_balances: Optional[Mapping[str, int]] = None,
    ) -> None:
        super().__init__(address, name=name, symbol=symbol, decimals=decimals)
        for holder, amount in sorted((initial_balances or {}).items()):
            self._mint(holder, int(amount))

    @classmethod
    def load(cls, data: Dict[str, Any]) -> "InMemoryAsset":
        asset = cls(
            data["address"],
            name=data.get("name", "Stable Asset"),
            symbol=data.get("symbol", "STBL"),
            decimals=int(data.get("decimals", 18)),
        )
        asset._restore(data)
        return asset


__all__ = ["Asset", "InMemoryAsset"]
