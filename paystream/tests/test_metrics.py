from __future__ import annotations

import asyncio

import pytest

from paystream import metrics
from paystream.errors import Unauthorized
from paystream.tests._util import ALICE, BOB, CAROL, ONE_PER_SECOND, SPLIT, VAULT, hire, sample


def test_release_and_deposit_counters(vault, clock):
    released0 = sample("paystream_salary_released_units_total", ledger=VAULT)
    deposited0 = sample("paystream_vault_deposited_units_total", ledger=VAULT)

    vault.deposit(ALICE, 1000, ALICE)
    hire(vault, BOB, ONE_PER_SECOND)
    clock.advance(30)
    vault.release(BOB)

    assert sample("paystream_salary_released_units_total", ledger=VAULT) - released0 == 30
    assert sample("paystream_vault_deposited_units_total", ledger=VAULT) - deposited0 == 1000
    assert sample("paystream_total_sps", ledger=VAULT) == 1


def test_rejections_are_counted_by_code(vault):
    before = sample("paystream_rejected_operations_total", op="schedule_update", code=Unauthorized.code)
    with pytest.raises(Unauthorized):
        vault.schedule_update(ALICE, BOB, ONE_PER_SECOND)
    after = sample("paystream_rejected_operations_total", op="schedule_update", code=Unauthorized.code)
    assert after - before == 1


def test_claims_by_channel(split, asset):
    direct0 = sample("paystream_income_claimed_units_total", ledger=SPLIT, channel="direct")
    side0 = sample("paystream_income_claimed_units_total", ledger=SPLIT, channel="investment")
    asset.transfer(BOB, SPLIT, 1000)
    split.claim(CAROL)
    split.claim(ALICE)
    assert sample("paystream_income_claimed_units_total", ledger=SPLIT, channel="direct") - direct0 == 500
    assert sample("paystream_income_claimed_units_total", ledger=SPLIT, channel="investment") - side0 == 100


def test_render_and_asgi_app():
    assert b"paystream_salary_releases_total" in metrics.render()

    app = metrics.make_prometheus_asgi_app()
    sent = []

    async def receive():
        return {"type": "http.request"}

    async def send(msg):
        sent.append(msg)

    asyncio.run(app({"type": "http", "path": "/"}, receive, send))
    assert sent[0]["status"] == 200
    assert b"paystream_" in sent[1]["body"]

    sent.clear()
    asyncio.run(app({"type": "http", "path": "/nope"}, receive, send))
    assert sent[0]["status"] == 404
