from __future__ import annotations

import threading
import time

import pytest

from paystream.errors import InvalidState, NoOp, NothingPending, NotYetDue, RangeError, TransferFailure, Unauthorized
from paystream.events import EventType
from paystream.config import PaystreamConfig, ScheduleConfig
from paystream.token import InMemoryAsset
from paystream.vault import SalaryVault
from paystream.tests._util import ALICE, BOB, CAROL, ONE_PER_SECOND, OWNER, START, VAULT, hire


def test_round_trip_one_unit_per_second(vault, asset, clock):
    vault.deposit(ALICE, 10_000, ALICE)
    vault.schedule_update(OWNER, BOB, ONE_PER_SECOND)
    vault.commit_update(BOB)
    assert vault.current_sps(BOB) == 1

    clock.advance(100)
    assert vault.releasable(BOB) == 100

    before = asset.balance_of(BOB)
    assert vault.release(BOB) == 100
    assert asset.balance_of(BOB) - before == 100
    assert vault.releasable(BOB) == 0

    ev = vault.events.last(EventType.SALARY_RELEASED)
    assert ev["account"] == BOB and ev["amount"] == 100 and ev.at == START + 100


def test_second_release_at_same_time_pays_nothing(vault, clock):
    vault.deposit(ALICE, 10_000, ALICE)
    hire(vault, BOB, 5 * ONE_PER_SECOND)
    clock.advance(60)
    assert vault.release(BOB) == 300
    assert vault.release(BOB) == 0
    assert vault.total_released == 300


def test_sum_of_rates_matches_total_after_every_commit(vault, clock):
    hire(vault, BOB, 10 * ONE_PER_SECOND)
    assert vault.salaries.sum_sps() == vault.total_sps == 10
    hire(vault, CAROL, ONE_PER_SECOND)
    assert vault.salaries.sum_sps() == vault.total_sps == 11

    clock.advance(100)
    hire(vault, BOB, 5 * ONE_PER_SECOND)
    assert vault.salaries.sum_sps() == vault.total_sps == 6

    hire(vault, CAROL, 0)
    assert vault.salaries.sum_sps() == vault.total_sps == 5


def test_released_plus_pending_equals_accumulated(vault, clock):
    vault.deposit(ALICE, 10**6, ALICE)
    hire(vault, BOB, 3 * ONE_PER_SECOND)
    hire(vault, CAROL, 2 * ONE_PER_SECOND)
    for step in (10, 25, 1, 400):
        clock.advance(step)
        vault.release(BOB)
        now = clock.now()
        assert vault.total_released + vault.total_pending_salary(now) == vault.total_accumulated_salary(now)
    assert vault.total_pending_salary() == vault.releasable(CAROL)


def test_accumulated_salary_is_monotone(vault, clock):
    hire(vault, BOB, 7 * ONE_PER_SECOND)
    samples = [vault.total_accumulated_salary(START + dt) for dt in (0, 1, 2, 50, 50, 9999)]
    assert samples == sorted(samples)
    assert samples[-1] == 7 * 9999


def test_commit_stashes_salary_earned_at_old_rate(vault, clock):
    hire(vault, BOB, 10 * ONE_PER_SECOND)
    clock.advance(100)
    hire(vault, BOB, 5 * ONE_PER_SECOND)
    assert vault.pending_release(BOB) == 1000

    clock.advance(100)
    assert vault.releasable(BOB) == 1500
    assert vault.total_pending_salary() == 1500


def test_monthly_amount_is_floored_to_whole_units_per_second(vault):
    vault.schedule_update(OWNER, BOB, 2 * ONE_PER_SECOND - 1)
    vault.commit_update(BOB)
    assert vault.current_sps(BOB) == 1
    assert vault.salary_of(BOB) == ONE_PER_SECOND


def test_underfunded_release_rolls_back(vault, asset, clock):
    vault.deposit(ALICE, 1000, ALICE)
    hire(vault, BOB, 10 * ONE_PER_SECOND)
    clock.advance(150)
    n_events = len(vault.events)
    asset_before = asset.dump()

    with pytest.raises(TransferFailure):
        vault.release(BOB)

    assert vault.releasable(BOB) == 1500
    assert vault.total_released == 0
    assert len(vault.events) == n_events
    assert asset.dump() == asset_before


def test_scheduling_is_owner_only(vault):
    with pytest.raises(Unauthorized):
        vault.schedule_update(ALICE, BOB, ONE_PER_SECOND)
    assert vault.pending_update(BOB) is None


def test_scheduling_errors(vault):
    with pytest.raises(NoOp):
        vault.schedule_update(OWNER, BOB, 0)
    vault.schedule_update(OWNER, BOB, ONE_PER_SECOND)
    with pytest.raises(InvalidState):
        vault.schedule_update(OWNER, BOB, 2 * ONE_PER_SECOND)
    with pytest.raises(NothingPending):
        vault.commit_update(CAROL)


def test_rate_outside_signed_range(asset, clock):
    cfg = PaystreamConfig(schedule=ScheduleConfig(seconds_per_month=1))
    v = SalaryVault("vault-wide", asset, owner=OWNER, clock=clock, config=cfg)
    with pytest.raises(RangeError):
        v.schedule_update(OWNER, BOB, 1 << 255)


def test_waiting_period_gates_commit(delayed_vault, clock):
    upd = delayed_vault.schedule_update(OWNER, BOB, ONE_PER_SECOND)
    assert upd.update_time == START + 3600

    clock.advance(3599)
    with pytest.raises(NotYetDue) as ei:
        delayed_vault.commit_update(BOB)
    assert ei.value.details["due_at"] == START + 3600

    clock.advance(1)
    assert delayed_vault.commit_update(BOB) == 1
    assert delayed_vault.pending_update(BOB) is None
    # a new schedule is accepted once the previous one is committed
    delayed_vault.schedule_update(OWNER, BOB, 2 * ONE_PER_SECOND)


def test_commit_is_permissionless_and_emits(vault):
    vault.schedule_update(OWNER, BOB, 3 * ONE_PER_SECOND)
    sched = vault.events.last(EventType.UPDATE_SCHEDULED)
    assert sched["old_monthly"] == 0 and sched["new_monthly"] == 3 * ONE_PER_SECOND

    vault.commit_update(BOB)
    done = vault.events.last(EventType.UPDATE_FINISHED)
    assert done["account"] == BOB and done["sps"] == 3


class _CallbackAsset(InMemoryAsset):
    """Asset that calls back into the vault while paying out."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.vault = None

    def transfer(self, caller, to, amount):
        if self.vault is not None and caller == self.vault.address:
            self.vault.release(to)
        return super().transfer(caller, to, amount)


def test_nested_call_into_vault_is_rejected(clock):
    asset = _CallbackAsset("asset-cb", initial_balances={VAULT: 10_000})
    vault = SalaryVault(VAULT, asset, owner=OWNER, clock=clock)
    hire(vault, BOB, ONE_PER_SECOND)
    asset.vault = vault
    clock.advance(10)

    with pytest.raises(InvalidState):
        vault.release(BOB)
    assert vault.releasable(BOB) == 10
    assert asset.balance_of(BOB) == 0


class _StallingAsset(InMemoryAsset):
    """Asset whose payouts stall while another thread reads the vault, then fail."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.vault = None
        self.seen = []
        self.reader = None

    def transfer(self, caller, to, amount):
        if self.vault is not None and caller == self.vault.address:
            started = threading.Event()

            def read():
                started.set()
                self.seen.append(self.vault.releasable(to))

            self.reader = threading.Thread(target=read)
            self.reader.start()
            started.wait(timeout=5)
            time.sleep(0.05)
            raise TransferFailure("payout refused", sender=caller, to=to, amount=amount)
        return super().transfer(caller, to, amount)


def test_concurrent_reader_never_sees_rolled_back_release(clock):
    asset = _StallingAsset("asset-stall", initial_balances={VAULT: 10_000})
    vault = SalaryVault(VAULT, asset, owner=OWNER, clock=clock)
    hire(vault, BOB, ONE_PER_SECOND)
    asset.vault = vault
    clock.advance(10)

    with pytest.raises(TransferFailure):
        vault.release(BOB)
    asset.reader.join(timeout=5)

    assert asset.seen == [10]
    assert vault.releasable(BOB) == 10


def test_ownership_transfer(vault):
    vault.transfer_ownership(OWNER, ALICE)
    assert vault.owner == ALICE
    with pytest.raises(Unauthorized):
        vault.schedule_update(OWNER, BOB, ONE_PER_SECOND)
    vault.schedule_update(ALICE, BOB, ONE_PER_SECOND)

    vault.renounce_ownership(ALICE)
    assert vault.owner is None
    with pytest.raises(Unauthorized):
        vault.schedule_update(ALICE, CAROL, ONE_PER_SECOND)
