"""
Salary vault
============

A tokenized vault that pools an asset from depositors and streams it out as
per-second salaries to beneficiaries.

Accounting
----------
Salary accrues continuously; funds only move on :meth:`SalaryVault.release`.
The vault's share price is computed over assets *net of* that liability:

    total_assets(now) = max(0, asset.balance_of(vault) - total_pending_salary(now))

so accrued-but-unpaid salary is never counted as depositor equity. A deposit
first covers any shortfall between the vault balance and the pending salary;
only the excess earns shares:

    b >= p           -> shares for the whole deposit at the current rate
    b < p < b + a    -> shares only for (b + a - p)
    b + a <= p       -> no shares

``total_deposit`` tracks what each holder put in (re-attributed on share
transfers) and ``investment_of_v2`` is what of it has been consumed paying
salary. The income split ledger reads these as investment weights.

Every mutating entry point settles the global accumulator first and runs
atomically together with the asset ledger.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .. import metrics
from ..access import Ownable
from ..clock import Clock, SystemClock, resolve_now
from ..config import PaystreamConfig, ScheduleConfig, VaultConfig
from ..errors import InvalidState
from ..events import EventType
from ..ledger import reader, require_address
from ..math.uint import add, require_u256, sub_floor
from ..salary import GlobalAccumulator, PendingUpdate, RateChangeScheduler, SalaryBook, sps_to_monthly
from ..token.asset import Asset
from .shares import ShareLedger

log = logging.getLogger(__name__)


class SalaryVault(ShareLedger):
    def __init__(
        self,
        address: str,
        asset: Asset,
        *,
        owner: str,
        clock: Optional[Clock] = None,
        config: Optional[PaystreamConfig] = None,
    ) -> None:
        cfg = config or PaystreamConfig()
        cfg.validate()
        super().__init__(address, asset, name=cfg.vault.share_name, symbol=cfg.vault.share_symbol)
        self.config = cfg
        self.clock: Clock = clock or SystemClock()
        self.accumulator = GlobalAccumulator(last_release_at=self.clock.now())
        self.salaries = SalaryBook()
        self.scheduler = RateChangeScheduler(
            waiting_period=cfg.schedule.waiting_period_seconds,
            seconds_per_month=cfg.schedule.seconds_per_month,
        )
        self.access = Ownable(require_address(owner, "owner"), self.events)
        self._total_deposit: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _now(self, now: Optional[int]) -> int:
        return resolve_now(self.clock, now)

    def _settle(self, now: int) -> None:
        self.accumulator.settle(now)
        metrics.record_settlement(
            self.address, self.accumulator.total_sps, self.accumulator.total_pending_salary(now)
        )

    @property
    def owner(self) -> Optional[str]:
        return self.access.owner

    # ------------------------------------------------------------------
    # Salary views
    # ------------------------------------------------------------------

    @property
    @reader
    def total_sps(self) -> int:
        return self.accumulator.total_sps

    @property
    @reader
    def total_released(self) -> int:
        return self.accumulator.total_released

    @reader
    def total_accumulated_salary(self, now: Optional[int] = None) -> int:
        return self.accumulator.total_accumulated_salary(self._now(now))

    @reader
    def total_pending_salary(self, now: Optional[int] = None) -> int:
        return self.accumulator.total_pending_salary(self._now(now))

    @reader
    def releasable(self, account: str, now: Optional[int] = None) -> int:
        return self.salaries.releasable(account, self._now(now))

    @reader
    def current_sps(self, account: str) -> int:
        return self.salaries.peek(account).current_sps

    @reader
    def salary_of(self, account: str) -> int:
        """Nominal monthly salary of `account` at its committed rate."""
        return sps_to_monthly(self.current_sps(account), self.scheduler.seconds_per_month)

    @reader
    def pending_release(self, account: str) -> int:
        return self.salaries.pending_release(account)

    @reader
    def pending_update(self, account: str) -> Optional[PendingUpdate]:
        return self.scheduler.pending(account)

    # ------------------------------------------------------------------
    # Salary entry points
    # ------------------------------------------------------------------

    def release(self, account: str, now: Optional[int] = None) -> int:
        """Pay `account` everything it is owed as of `now`. Permissionless."""
        require_address(account, "account")
        with self._atomic("release", self.asset):
            now = self._now(now)
            self._settle(now)
            amount = self.salaries.settle(account, now)
            self.accumulator.record_release(amount)
            if amount > 0:
                self.asset.transfer(self.address, account, amount)
            self.events.emit(EventType.SALARY_RELEASED, {"account": account, "amount": amount}, at=now)
        metrics.record_release(self.address, amount)
        log.info("released %d to %s at %d", amount, account, now)
        return amount

    def schedule_update(
        self, caller: str, account: str, new_monthly_salary: int, now: Optional[int] = None
    ) -> PendingUpdate:
        """Queue a rate change for `account`. Owner only."""
        require_address(account, "account")
        with self._atomic("schedule_update"):
            self.access.require_owner(caller)
            now = self._now(now)
            self._settle(now)
            current = self.salaries.peek(account).current_sps
            upd = self.scheduler.schedule(account, new_monthly_salary, current_sps=current, now=now)
            spm = self.scheduler.seconds_per_month
            self.events.emit(
                EventType.UPDATE_SCHEDULED,
                {
                    "account": account,
                    "old_monthly": sps_to_monthly(current, spm),
                    "new_monthly": sps_to_monthly(upd.expected_sps, spm),
                    "expected_sps": upd.expected_sps,
                    "update_time": upd.update_time,
                },
                at=now,
            )
        metrics.record_update_scheduled(self.address)
        log.info("scheduled %s: %d -> %d sps, due %d", account, current, upd.expected_sps, upd.update_time)
        return upd

    def commit_update(self, account: str, now: Optional[int] = None) -> int:
        """
        Apply the pending rate change for `account` once due. Permissionless.

        Salary earned at the old rate up to `now` is stashed as the account's
        pending release before the rate switches. Returns the new rate.
        """
        require_address(account, "account")
        with self._atomic("commit_update"):
            now = self._now(now)
            upd = self.scheduler.due(account, now)
            self._settle(now)
            owed = self.salaries.settle(account, now)
            self.salaries.stash(account, owed)
            rec = self.salaries.get(account)
            self.accumulator.apply_rate_delta(upd.expected_sps - rec.current_sps)
            rec.current_sps = upd.expected_sps
            self.scheduler.clear(account)
            self.events.emit(
                EventType.UPDATE_FINISHED,
                {
                    "account": account,
                    "new_monthly": sps_to_monthly(upd.expected_sps, self.scheduler.seconds_per_month),
                    "sps": upd.expected_sps,
                },
                at=now,
            )
        metrics.record_update_committed(self.address, self.accumulator.total_sps)
        log.info("committed %s at %d sps (total %d)", account, upd.expected_sps, self.accumulator.total_sps)
        return upd.expected_sps

    # ------------------------------------------------------------------
    # Vault accounting
    # ------------------------------------------------------------------

    @reader
    def total_assets(self, now: Optional[int] = None) -> int:
        return sub_floor(self.asset.balance_of(self.address), self.total_pending_salary(now))

    def _deposit_shares(self, assets: int, now: int) -> int:
        balance = self.asset.balance_of(self.address)
        pending = self.accumulator.total_pending_salary(now)
        if balance >= pending:
            return self._to_shares(assets, balance - pending)
        if balance + assets > pending:
            return self._to_shares(balance + assets - pending, 0)
        return 0

    def _mint_cost(self, shares: int, now: int) -> int:
        balance = self.asset.balance_of(self.address)
        pending = self.accumulator.total_pending_salary(now)
        shortfall = sub_floor(pending, balance)
        return add(shortfall, self._to_assets(shares, sub_floor(balance, pending), round_up=True))

    @reader
    def preview_deposit(self, assets: int, now: Optional[int] = None) -> int:
        require_u256(assets)
        return self._deposit_shares(assets, self._now(now))

    @reader
    def preview_mint(self, shares: int, now: Optional[int] = None) -> int:
        require_u256(shares)
        return self._mint_cost(shares, self._now(now))

    @reader
    def total_deposit(self, account: str) -> int:
        return self._total_deposit.get(account, 0)

    @reader
    def depositors(self) -> Dict[str, int]:
        return {k: v for k, v in sorted(self._total_deposit.items()) if v}

    @reader
    def investment_of_v2(self, account: str, now: Optional[int] = None) -> int:
        """Part of `account`'s deposits that has been spent on salary."""
        return sub_floor(self.total_deposit(account), self.convert_to_assets(self.balance_of(account), now))

    @reader
    def total_investment(self, now: Optional[int] = None) -> int:
        now = self._now(now)
        return sum(self.investment_of_v2(a, now) for a in self.depositors())

    # ------------------------------------------------------------------
    # Share entry points
    # ------------------------------------------------------------------

    def deposit(self, caller: str, assets: int, receiver: str, now: Optional[int] = None) -> int:
        require_u256(assets)
        require_address(receiver, "receiver")
        with self._atomic("deposit", self.asset):
            now = self._now(now)
            self._settle(now)
            shares = self._deposit_shares(assets, now)
            self._deposit(caller, receiver, assets, shares)
            self._total_deposit[receiver] = add(self.total_deposit(receiver), assets)
        metrics.record_deposit(self.address, assets)
        log.info("deposit %d by %s for %s -> %d shares", assets, caller, receiver, shares)
        return shares

    def mint(self, caller: str, shares: int, receiver: str, now: Optional[int] = None) -> int:
        require_u256(shares)
        require_address(receiver, "receiver")
        with self._atomic("mint", self.asset):
            now = self._now(now)
            self._settle(now)
            assets = self._mint_cost(shares, now)
            self._deposit(caller, receiver, assets, shares)
            self._total_deposit[receiver] = add(self.total_deposit(receiver), assets)
        metrics.record_deposit(self.address, assets)
        log.info("mint %d shares by %s for %s <- %d assets", shares, caller, receiver, assets)
        return assets

    def withdraw(self, caller: str, assets: int, receiver: str, owner: str, now: Optional[int] = None) -> int:
        require_u256(assets)
        require_address(receiver, "receiver")
        with self._atomic("withdraw", self.asset):
            now = self._now(now)
            self._settle(now)
            self._check_max(assets, self.max_withdraw(owner, now), "withdraw", owner)
            shares = self.preview_withdraw(assets, now)
            self._withdraw(caller, receiver, owner, assets, shares)
            self._total_deposit[caller] = sub_floor(self.total_deposit(caller), assets)
        metrics.record_withdraw(self.address, assets)
        log.info("withdraw %d to %s from %s (%d shares)", assets, receiver, owner, shares)
        return shares

    def redeem(self, caller: str, shares: int, receiver: str, owner: str, now: Optional[int] = None) -> int:
        require_u256(shares)
        require_address(receiver, "receiver")
        with self._atomic("redeem", self.asset):
            now = self._now(now)
            self._settle(now)
            self._check_max(shares, self.max_redeem(owner), "redeem", owner)
            assets = self.preview_redeem(shares, now)
            self._withdraw(caller, receiver, owner, assets, shares)
            self._total_deposit[caller] = sub_floor(self.total_deposit(caller), assets)
        metrics.record_withdraw(self.address, assets)
        log.info("redeem %d shares to %s from %s (%d assets)", shares, receiver, owner, assets)
        return assets

    def transfer(self, caller: str, to: str, amount: int, now: Optional[int] = None) -> bool:
        with self._atomic("transfer"):
            now = self._now(now)
            self._settle(now)
            self._move_shares(caller, to, amount, now)
        return True

    def transfer_from(self, caller: str, owner: str, to: str, amount: int, now: Optional[int] = None) -> bool:
        with self._atomic("transfer_from"):
            now = self._now(now)
            self._settle(now)
            self._spend_allowance(owner, caller, amount)
            self._move_shares(owner, to, amount, now)
        return True

    def _move_shares(self, sender: str, to: str, amount: int, now: int) -> None:
        require_u256(amount)
        # re-attribute at the pre-transfer rate
        moved = self._to_assets(amount, self.total_assets(now))
        super()._transfer(sender, to, amount)
        if sender != to:
            self._total_deposit[sender] = sub_floor(self.total_deposit(sender), moved)
            self._total_deposit[to] = add(self.total_deposit(to), moved)
            log.debug("re-attributed %d of deposits %s -> %s", moved, sender, to)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        with self._atomic("transfer_ownership"):
            self.access.transfer_ownership(caller, new_owner)

    def renounce_ownership(self, caller: str) -> None:
        with self._atomic("renounce_ownership"):
            self.access.renounce_ownership(caller)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def dump(self) -> Dict[str, Any]:
        data = super().dump()
        data.update(
            {
                "asset": self.asset.address,
                "config": self.config.to_dict(),
                "access": self.access.dump(),
                "accumulator": self.accumulator.to_dict(),
                "salaries": self.salaries.dump(),
                "scheduler": self.scheduler.dump(),
                "total_deposit": {k: v for k, v in sorted(self._total_deposit.items())},
            }
        )
        return data

    def _restore(self, data: Dict[str, Any]) -> None:
        super()._restore(data)
        self.access.restore(data.get("access") or {})
        self.accumulator = GlobalAccumulator.from_dict(data.get("accumulator") or {})
        self.salaries.restore(data.get("salaries") or {})
        self.scheduler.restore(data.get("scheduler") or {})
        self._total_deposit = {str(k): int(v) for k, v in (data.get("total_deposit") or {}).items()}

    @classmethod
    def load(
        cls,
        data: Dict[str, Any],
        asset: Asset,
        *,
        clock: Optional[Clock] = None,
        config: Optional[PaystreamConfig] = None,
    ) -> "SalaryVault":
        if data.get("asset") not in (None, asset.address):
            raise InvalidState(
                "snapshot belongs to a different asset",
                details={"expected": data.get("asset"), "got": asset.address},
            )
        if config is None and data.get("config"):
            c = data["config"]
            config = PaystreamConfig(
                schedule=ScheduleConfig(**(c.get("schedule") or {})),
                vault=VaultConfig(**(c.get("vault") or {})),
                chain_id=c.get("chain_id"),
            )
        owner = (data.get("access") or {}).get("owner")
        vault = cls(data["address"], asset, owner=owner or data["address"], clock=clock, config=config)
        vault._restore(data)
        return vault


__all__ = ["SalaryVault"]
