"""
Common base for in-process ledgers.

A ledger is an explicitly owned object (never module-global state) holding
its own balances/mappings, an :class:`~paystream.events.EventLog` and a
coarse ``threading.RLock``. Every mutating entry point runs inside
:meth:`LedgerBase._atomic`, which provides:

  • single-writer serialisation (the lock; views decorated with
    :func:`reader` take it too, so a reader never sees a half-applied or
    rolled-back operation),
  • an explicit non-reentrancy guard: a nested mutating call into the same
    ledger while one is in progress fails with ``InvalidState``,
  • all-or-nothing semantics: state (and that of collaborating ledgers passed
    in) is snapshotted via ``dump()`` and restored if anything escapes; events
    emitted during the failed call are dropped.

Ledgers built on another ledger (a vault or split token over its asset) share
that ledger's lock via :meth:`LedgerBase._share_lock`; one deployment is
serialised by a single lock.

Subclasses implement ``dump()`` (JSON-friendly dict) and ``_restore(data)``.
"""
from __future__ import annotations

import functools
import logging
from contextlib import ExitStack, contextmanager
from threading import RLock
from typing import Any, Callable, Dict, Iterator, List, Tuple, TypeVar

from . import metrics
from .errors import InvalidState, PaystreamError
from .events import EventLog

log = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def require_address(addr: str, what: str = "address") -> str:
    if not isinstance(addr, str) or not addr:
        raise InvalidState(f"{what} must be a non-empty string", details={what: repr(addr)})
    return addr


def reader(fn: F) -> F:
    """Run a ledger view under the ledger's lock."""

    @functools.wraps(fn)
    def wrapper(self: "LedgerBase", *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return fn(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class LedgerBase:
    def __init__(self, address: str) -> None:
        self.address = require_address(address)
        self.events = EventLog(address)
        self._lock = RLock()
        self._entered = False

    def _share_lock(self, other: Any) -> None:
        if isinstance(other, LedgerBase):
            self._lock = other._lock

    # --- persistence hooks ---

    def dump(self) -> Dict[str, Any]:
        raise NotImplementedError

    def _restore(self, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    # --- transaction scope ---

    @contextmanager
    def _atomic(self, op: str, *collaborators: Any) -> Iterator[None]:
        parties: List[LedgerBase] = [self]
        for c in collaborators:
            if isinstance(c, LedgerBase) and all(c is not p for p in parties):
                parties.append(c)

        with ExitStack() as stack:
            for p in parties:
                stack.enter_context(p._lock)
            if self._entered:
                raise InvalidState("reentrant call rejected", details={"ledger": self.address, "op": op})
            self._entered = True
            snaps: List[Tuple[LedgerBase, Dict[str, Any], int]] = [
                (p, p.dump(), len(p.events)) for p in parties
            ]
            try:
                yield
            except Exception as e:
                for p, snap, n_events in snaps:
                    p._restore(snap)
                    p.events.truncate(n_events)
                if isinstance(e, PaystreamError):
                    metrics.record_error(op, e.code)
                    log.debug("%s.%s rolled back: %s", self.address, op, e)
                raise
            finally:
                self._entered = False


__all__ = ["LedgerBase", "reader", "require_address"]
