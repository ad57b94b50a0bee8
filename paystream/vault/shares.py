"""
Tokenized-vault share math (ERC-4626 style).

Shares are a :class:`~paystream.token.fungible.FungibleLedger`; the asset/share
rate derives from :meth:`ShareLedger.total_assets`, which subclasses define.
Conversions use one virtual share and one virtual asset so an empty vault (or
one whose assets are all spoken for) still has a defined price:

    to_shares(a) = a * (supply + 1) / (total_assets + 1)
    to_assets(s) = s * (total_assets + 1) / (supply + 1)

Rounding always favours the vault: down when the caller receives
(deposit → shares, redeem → assets), up when the caller pays
(mint → assets, withdraw → shares).

The standard deposit/withdraw flows live here; liability-aware pricing of
deposits is layered on top by :class:`~paystream.vault.ledger.SalaryVault`.
"""
from __future__ import annotations

from typing import Optional

from ..errors import ExceededMaximum
from ..events import EventType
from ..ledger import reader
from ..math.uint import U256_MAX, mul_div_down, mul_div_up
from ..token.asset import Asset
from ..token.fungible import FungibleLedger


class ShareLedger(FungibleLedger):
    def __init__(self, address: str, asset: Asset, *, name: str, symbol: str, decimals: int = 18) -> None:
        super().__init__(address, name=name, symbol=symbol, decimals=decimals)
        self.asset = asset
        self._share_lock(asset)

    # ------------------------------------------------------------------
    # Accounting hook
    # ------------------------------------------------------------------

    def total_assets(self, now: Optional[int] = None) -> int:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Conversions at an explicit total-assets figure
    # ------------------------------------------------------------------

    def _to_shares(self, assets: int, total_assets: int, *, round_up: bool = False) -> int:
        f = mul_div_up if round_up else mul_div_down
        return f(assets, self.total_supply() + 1, total_assets + 1)

    def _to_assets(self, shares: int, total_assets: int, *, round_up: bool = False) -> int:
        f = mul_div_up if round_up else mul_div_down
        return f(shares, total_assets + 1, self.total_supply() + 1)

    # ------------------------------------------------------------------
    # Standard views
    # ------------------------------------------------------------------

    @reader
    def convert_to_shares(self, assets: int, now: Optional[int] = None) -> int:
        return self._to_shares(assets, self.total_assets(now))

    @reader
    def convert_to_assets(self, shares: int, now: Optional[int] = None) -> int:
        return self._to_assets(shares, self.total_assets(now))

    @reader
    def preview_deposit(self, assets: int, now: Optional[int] = None) -> int:
        return self._to_shares(assets, self.total_assets(now))

    @reader
    def preview_mint(self, shares: int, now: Optional[int] = None) -> int:
        return self._to_assets(shares, self.total_assets(now), round_up=True)

    @reader
    def preview_withdraw(self, assets: int, now: Optional[int] = None) -> int:
        return self._to_shares(assets, self.total_assets(now), round_up=True)

    @reader
    def preview_redeem(self, shares: int, now: Optional[int] = None) -> int:
        return self._to_assets(shares, self.total_assets(now))

    def max_deposit(self, receiver: str) -> int:
        return U256_MAX

    def max_mint(self, receiver: str) -> int:
        return U256_MAX

    @reader
    def max_withdraw(self, owner: str, now: Optional[int] = None) -> int:
        return self.convert_to_assets(self.balance_of(owner), now)

    @reader
    def max_redeem(self, owner: str) -> int:
        return self.balance_of(owner)

    # ------------------------------------------------------------------
    # Flows (run inside the caller's atomic scope)
    # ------------------------------------------------------------------

    def _deposit(self, caller: str, receiver: str, assets: int, shares: int) -> None:
        # pull first, then mint
        self.asset.transfer_from(self.address, caller, self.address, assets)
        self._mint(receiver, shares)
        self.events.emit(
            EventType.DEPOSIT,
            {"sender": caller, "owner": receiver, "assets": assets, "shares": shares},
        )

    def _withdraw(self, caller: str, receiver: str, owner: str, assets: int, shares: int) -> None:
        if caller != owner:
            self._spend_allowance(owner, caller, shares)
        # burn first, then pay out
        self._burn(owner, shares)
        self.asset.transfer(self.address, receiver, assets)
        self.events.emit(
            EventType.WITHDRAW,
            {"sender": caller, "receiver": receiver, "owner": owner, "assets": assets, "shares": shares},
        )

    @staticmethod
    def _check_max(requested: int, maximum: int, what: str, owner: str) -> None:
        if requested > maximum:
            raise ExceededMaximum(requested=requested, maximum=maximum, details={"what": what, "owner": owner})


__all__ = ["ShareLedger"]
