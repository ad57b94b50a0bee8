from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from paystream.adapters.snapshot import FileSnapshotStore, Snapshot, decode, encode
from paystream.cli.inspect import app
from paystream.errors import InvalidState
from paystream.income import IncomeSplitToken, VaultInvestmentSource
from paystream.tests._util import ALICE, BOB, CAROL, DAVE, INVEST, OWNER, ONE_PER_SECOND, SPLIT, START, hire

runner = CliRunner()


@pytest.fixture
def populated(vault, split, asset, clock):
    vault.deposit(ALICE, 1000, ALICE)
    hire(vault, BOB, ONE_PER_SECOND)
    vault.schedule_update(OWNER, CAROL, 2 * ONE_PER_SECOND)
    clock.advance(100)
    vault.release(BOB)
    asset.transfer(BOB, SPLIT, 1000)
    split.claim(CAROL)
    return Snapshot(asset=asset, vault=vault, split=split)


def test_round_trip_through_file(tmp_path, populated, clock):
    store = FileSnapshotStore(str(tmp_path / "state.json"))
    assert not store.exists()
    store.save(populated)
    assert store.exists()

    back = store.load(clock=clock)
    assert back.asset.dump() == populated.asset.dump()
    assert back.vault.dump() == populated.vault.dump()
    assert back.split.dump() == populated.split.dump()
    assert back.vault.events.dump() == populated.vault.events.dump()

    t = START + 500
    assert back.vault.releasable(BOB, t) == populated.vault.releasable(BOB, t) == 400
    assert back.vault.pending_update(CAROL) == populated.vault.pending_update(CAROL)
    assert back.split.claimable_on_investment(ALICE) == populated.split.claimable_on_investment(ALICE)


def test_restored_ledgers_keep_working(populated, clock):
    back = decode(json.loads(json.dumps(encode(populated))), clock=clock)
    back.vault.commit_update(CAROL)
    clock.advance(10)
    assert back.vault.releasable(CAROL) == 20


def test_vault_backed_weights_when_no_static_source(populated, clock):
    data = encode(populated)
    del data["split"]["investment"]
    back = decode(data, clock=clock)
    assert isinstance(back.split.investment_source, VaultInvestmentSource)


def test_unknown_format_is_rejected(populated):
    data = encode(populated)
    data["format"] = 99
    with pytest.raises(InvalidState):
        decode(data)


def _saved(tmp_path, snap) -> str:
    path = str(tmp_path / "state.json")
    FileSnapshotStore(path).save(snap)
    return path


def test_cli_vault_json(tmp_path, populated):
    path = _saved(tmp_path, populated)
    r = runner.invoke(app, ["vault", path, "--at", str(START + 100), "--json"])
    assert r.exit_code == 0, r.output
    view = json.loads(r.stdout)
    assert view["total_sps"] == 1
    assert view["total_released"] == 100
    assert view["total_pending_salary"] == 0
    assert view["balance"] == 900
    assert view["total_assets"] == 900
    by_account = {a["account"]: a for a in view["accounts"]}
    assert by_account[BOB]["releasable"] == 0
    assert by_account[CAROL]["pending_update"]["expected_sps"] == 2


def test_cli_account_table(tmp_path, populated):
    path = _saved(tmp_path, populated)
    r = runner.invoke(app, ["account", path, BOB, "--at", str(START + 160)])
    assert r.exit_code == 0, r.output
    assert "Account bob" in r.stdout
    assert "releasable" in r.stdout


def test_cli_account_json(tmp_path, populated):
    path = _saved(tmp_path, populated)
    r = runner.invoke(app, ["account", path, ALICE, "--at", str(START + 100), "--json"])
    assert r.exit_code == 0, r.output
    view = json.loads(r.stdout)
    assert view["vault"]["total_deposit"] == 1000
    assert view["vault"]["investment"] == 100
    assert view["split"]["claimable_on_investment"] == 100


def test_cli_time_before_checkpoint_fails(tmp_path, populated):
    path = _saved(tmp_path, populated)
    r = runner.invoke(app, ["vault", path, "--at", str(START)])
    assert r.exit_code == 1


def test_cli_missing_snapshot(tmp_path):
    r = runner.invoke(app, ["vault", str(tmp_path / "missing.json")])
    assert r.exit_code == 2


def test_cli_account_reads_vault_weights_at_the_requested_time(tmp_path, vault, asset, clock):
    vault.deposit(ALICE, 1000, ALICE)
    hire(vault, BOB, ONE_PER_SECOND)
    clock.advance(100)
    vault.deposit(CAROL, 1000, CAROL)
    split = IncomeSplitToken(
        "split-vault",
        asset,
        investment_address=INVEST,
        investment_source=VaultInvestmentSource(vault),
        holders={DAVE: 600, INVEST: 400},
        clock=clock,
    )
    asset.transfer(BOB, "split-vault", 1000)
    # ALICE 100 of 101 spent on salary; 400 * 100 // 101
    live = split.claimable_on_investment(ALICE)
    assert live == 396

    path = _saved(tmp_path, Snapshot(asset=asset, vault=vault, split=split))
    r = runner.invoke(app, ["account", path, ALICE, "--at", str(START + 100), "--json"])
    assert r.exit_code == 0, r.output
    view = json.loads(r.stdout)
    assert view["vault"]["investment"] == 100
    assert view["split"]["claimable_on_investment"] == live
