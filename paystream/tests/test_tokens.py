from __future__ import annotations

import pytest

from paystream.clock import ManualClock, SystemClock, resolve_now
from paystream.errors import InvalidState, TransferFailure
from paystream.events import EventLog, EventType, LogEvent
from paystream.token import U256_MAX_ALLOWANCE, InMemoryAsset


@pytest.fixture
def token():
    return InMemoryAsset("tok", initial_balances={"a": 100, "b": 5})


def test_transfer_and_events(token):
    n = len(token.events)
    token.transfer("a", "c", 40)
    assert token.balance_of("a") == 60
    assert token.balance_of("c") == 40
    assert token.total_supply() == 105
    ev = token.events.last(EventType.TRANSFER)
    assert (ev["from"], ev["to"], ev["value"]) == ("a", "c", 40)
    assert len(token.events) == n + 1


def test_insufficient_balance_rolls_back(token):
    n = len(token.events)
    with pytest.raises(TransferFailure):
        token.transfer("b", "a", 6)
    assert token.balance_of("b") == 5
    assert len(token.events) == n


def test_allowances(token):
    token.approve("a", "spender", 30)
    token.transfer_from("spender", "a", "b", 20)
    assert token.allowance("a", "spender") == 10
    with pytest.raises(TransferFailure):
        token.transfer_from("spender", "a", "b", 11)

    token.approve("a", "spender", U256_MAX_ALLOWANCE)
    token.transfer_from("spender", "a", "b", 50)
    assert token.allowance("a", "spender") == U256_MAX_ALLOWANCE


def test_empty_address_rejected(token):
    with pytest.raises(InvalidState):
        token.transfer("a", "", 1)


def test_asset_load_round_trip(token):
    token.approve("a", "s", 3)
    back = InMemoryAsset.load(token.dump())
    assert back.dump() == token.dump()


def test_event_log_dump_load():
    log = EventLog("x")
    log.emit(EventType.SALARY_RELEASED, {"account": "a", "amount": 1}, at=5)
    other = EventLog("x")
    other.load(log.dump())
    assert list(other) == list(log)
    assert LogEvent.from_dict(log.dump()[0]).at == 5
    log.truncate(0)
    assert len(log) == 0


def test_clocks():
    c = ManualClock(10)
    assert c.advance(5) == 15
    with pytest.raises(ValueError):
        c.set(14)
    assert resolve_now(c, None) == 15
    assert resolve_now(c, 99) == 99

    s = SystemClock()
    assert s.now() <= s.now()
