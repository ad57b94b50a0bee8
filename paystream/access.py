"""
Single-authority access control.

A minimal owner model for ledgers with administrator-gated entry points:
- read the current owner (`owner`)
- check that a caller is the owner (`require_owner`)
- hand the role to another address (`transfer_ownership`)
- give it up for good (`renounce_ownership`)

Only the salary rate scheduler is owner-gated; releases, commits, deposits and
claims are permissionless.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .errors import InvalidState, Unauthorized
from .events import EventLog, EventType

log = logging.getLogger(__name__)


class Ownable:
    def __init__(self, owner: Optional[str], events: EventLog) -> None:
        self._owner = owner or None
        self._events = events

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    def require_owner(self, caller: str) -> None:
        if self._owner is None or caller != self._owner:
            raise Unauthorized(caller=caller)

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        """Owner-only; `new_owner` must be non-empty (use renounce to clear)."""
        self.require_owner(caller)
        if not new_owner:
            raise InvalidState("new owner must be non-empty")
        previous, self._owner = self._owner, new_owner
        self._events.emit(EventType.OWNERSHIP_TRANSFERRED, {"previous": previous, "new": new_owner})
        log.info("ownership of %s transferred %s -> %s", self._events.emitter, previous, new_owner)

    def renounce_ownership(self, caller: str) -> None:
        self.require_owner(caller)
        previous, self._owner = self._owner, None
        self._events.emit(EventType.OWNERSHIP_TRANSFERRED, {"previous": previous, "new": None})
        log.info("ownership of %s renounced by %s", self._events.emitter, previous)

    def dump(self) -> Dict[str, Any]:
        return {"owner": self._owner}

    def restore(self, data: Dict[str, Any]) -> None:
        self._owner = data.get("owner") or None


__all__ = ["Ownable"]
