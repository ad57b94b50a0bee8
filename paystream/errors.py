"""
Error types for the paystream ledgers.

Every error aborts the whole ledger operation that raised it; the ledgers
restore their pre-call state before the exception leaves the entry point, so
callers never observe a partial settlement or a partial transfer. There is no
retry logic here: callers re-invoke after fixing the condition (waiting until
an update is due, funding the vault, ...).

Errors are lightweight and serializable so they can be surfaced over logs or
an RPC layer unchanged.

Exports:
- PaystreamError (base)
- InvalidState, InvalidTarget
- NotYetDue, NothingPending, NoOp
- RangeError, ExceededMaximum
- TransferFailure
- Unauthorized
"""
from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional


class PaystreamError(Exception):
    """Base class for paystream domain errors."""

    code: str = "PAYSTREAM_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            except (TypeError, ValueError):
                packed = str(self.details)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class InvalidState(PaystreamError):
    """
    A precondition on entity state is violated: scheduling while an update is
    pending, re-entering a ledger mid-operation, ...
    """
    code = "PAYSTREAM_INVALID_STATE"


class InvalidTarget(InvalidState):
    """The operation was aimed at an address that cannot take part in it."""
    code = "PAYSTREAM_INVALID_TARGET"

    def __init__(
        self,
        message: str = "invalid target",
        *,
        target: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if target is not None:
            d.setdefault("target", target)
        super().__init__(message, details=d)


class NotYetDue(PaystreamError):
    """A time-gated operation was invoked before its scheduled time."""
    code = "PAYSTREAM_NOT_YET_DUE"

    def __init__(
        self,
        *,
        due_at: int,
        now: int,
        message: str = "not yet due",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"due_at": int(due_at), "now": int(now)})
        super().__init__(message, details=d)


class NothingPending(PaystreamError):
    """A commit was invoked with no scheduled change."""
    code = "PAYSTREAM_NOTHING_PENDING"


class NoOp(PaystreamError):
    """The requested change would leave the state as it is."""
    code = "PAYSTREAM_NOOP"


class RangeError(PaystreamError):
    """A computed value would leave its representable range."""
    code = "PAYSTREAM_RANGE"


class ExceededMaximum(RangeError):
    """A vault withdrawal/redemption asks for more than the owner may take."""
    code = "PAYSTREAM_EXCEEDED_MAX"

    def __init__(
        self,
        *,
        requested: int,
        maximum: int,
        message: str = "exceeds maximum",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d.update({"requested": int(requested), "maximum": int(maximum)})
        super().__init__(message, details=d)


class TransferFailure(PaystreamError):
    """The underlying asset transfer failed (insufficient funds or allowance)."""
    code = "PAYSTREAM_TRANSFER_FAILURE"

    def __init__(
        self,
        message: str = "transfer failed",
        *,
        sender: Optional[str] = None,
        to: Optional[str] = None,
        amount: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if sender is not None:
            d["from"] = sender
        if to is not None:
            d["to"] = to
        if amount is not None:
            d["amount"] = int(amount)
        super().__init__(message, details=d)


class Unauthorized(PaystreamError):
    """Caller is not the configured administrator."""
    code = "PAYSTREAM_UNAUTHORIZED"

    def __init__(
        self,
        *,
        caller: str,
        message: str = "caller is not the owner",
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        d["caller"] = caller
        super().__init__(message, details=d)


__all__ = [
    "PaystreamError",
    "InvalidState",
    "InvalidTarget",
    "NotYetDue",
    "NothingPending",
    "NoOp",
    "RangeError",
    "ExceededMaximum",
    "TransferFailure",
    "Unauthorized",
]
