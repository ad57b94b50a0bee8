"""
paystream.tests.conftest
========================

Fixtures for ledger tests:
- a manual clock pinned at ``START`` (tests move it explicitly),
- an in-memory asset with funded accounts that have approved the vault,
- a salary vault owned by ``OWNER`` with no waiting period,
- an income split token with a static investment weight source.

Addresses, amounts and helpers live in :mod:`paystream.tests._util`.
"""
from __future__ import annotations

import os

import pytest

from paystream.clock import ManualClock
from paystream.config import PaystreamConfig, ScheduleConfig
from paystream.income import IncomeSplitToken, StaticInvestmentSource
from paystream.token import U256_MAX_ALLOWANCE, InMemoryAsset
from paystream.vault import SalaryVault

from paystream.tests._util import ALICE, ASSET, BOB, CAROL, DAVE, FUNDED, INVEST, OWNER, SPLIT, START, VAULT

os.environ.setdefault("TZ", "UTC")


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def asset() -> InMemoryAsset:
    return InMemoryAsset(ASSET, initial_balances={ALICE: FUNDED, BOB: FUNDED, CAROL: FUNDED, DAVE: FUNDED})


@pytest.fixture
def vault(asset: InMemoryAsset, clock: ManualClock) -> SalaryVault:
    v = SalaryVault(VAULT, asset, owner=OWNER, clock=clock)
    for who in (ALICE, BOB, CAROL, DAVE):
        asset.approve(who, VAULT, U256_MAX_ALLOWANCE)
    return v


@pytest.fixture
def delayed_vault(asset: InMemoryAsset, clock: ManualClock) -> SalaryVault:
    cfg = PaystreamConfig(schedule=ScheduleConfig(waiting_period_seconds=3600))
    return SalaryVault("vault-delayed", asset, owner=OWNER, clock=clock, config=cfg)


@pytest.fixture
def weights() -> StaticInvestmentSource:
    return StaticInvestmentSource(1000, {ALICE: 250, BOB: 750})


@pytest.fixture
def split(asset: InMemoryAsset, clock: ManualClock, weights: StaticInvestmentSource) -> IncomeSplitToken:
    # supply 1000: CAROL 500, DAVE 100, investment address 400
    return IncomeSplitToken(
        SPLIT,
        asset,
        investment_address=INVEST,
        investment_source=weights,
        holders={CAROL: 500, DAVE: 100, INVEST: 400},
        clock=clock,
    )
