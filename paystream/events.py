"""
Ledger events for off-chain observers.

Every ledger owns an :class:`EventLog` and appends a :class:`LogEvent` for each
observable effect. Events are plain frozen dataclasses with JSON-friendly
fields so they can be shipped over logs/RPC or persisted with a snapshot.

Event names:
  - Transfer / Approval              token ledgers (asset, shares, split token)
  - Deposit / Withdraw               vault share entry points
  - SalaryReleased                   salary paid to a beneficiary
  - UpdateScheduled / UpdateFinished salary rate change lifecycle
  - IncomeClaimed                    income split payout
  - OwnershipTransferred             administrator change
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional


class EventType(str, Enum):
    TRANSFER = "Transfer"
    APPROVAL = "Approval"
    DEPOSIT = "Deposit"
    WITHDRAW = "Withdraw"
    SALARY_RELEASED = "SalaryReleased"
    UPDATE_SCHEDULED = "UpdateScheduled"
    UPDATE_FINISHED = "UpdateFinished"
    INCOME_CLAIMED = "IncomeClaimed"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"


@dataclass(frozen=True)
class LogEvent:
    seq: int
    name: EventType
    emitter: str
    args: Mapping[str, Any] = field(default_factory=dict)
    at: Optional[int] = None

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "name": self.name.value,
            "emitter": self.emitter,
            "args": dict(self.args),
            "at": self.at,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "LogEvent":
        return LogEvent(
            seq=int(d["seq"]),
            name=EventType(d["name"]),
            emitter=str(d["emitter"]),
            args=dict(d.get("args") or {}),
            at=int(d["at"]) if d.get("at") is not None else None,
        )


class EventLog:
    """Append-only, in-order record of events emitted by one ledger."""

    def __init__(self, emitter: str) -> None:
        self.emitter = emitter
        self._events: List[LogEvent] = []

    def emit(self, name: EventType, args: Mapping[str, Any], *, at: Optional[int] = None) -> LogEvent:
        ev = LogEvent(seq=len(self._events), name=name, emitter=self.emitter, args=dict(args), at=at)
        self._events.append(ev)
        return ev

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[LogEvent]:
        return iter(tuple(self._events))

    def named(self, name: EventType) -> List[LogEvent]:
        return [e for e in self._events if e.name == name]

    def last(self, name: Optional[EventType] = None) -> Optional[LogEvent]:
        for e in reversed(self._events):
            if name is None or e.name == name:
                return e
        return None

    def truncate(self, length: int) -> None:
        """Drop events past `length` (used when an operation is rolled back)."""
        del self._events[length:]

    def dump(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self._events]

    def load(self, data: List[Mapping[str, Any]]) -> None:
        self._events = [LogEvent.from_dict(d) for d in data]


__all__ = ["EventType", "LogEvent", "EventLog"]
