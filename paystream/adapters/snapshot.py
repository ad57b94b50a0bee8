"""
JSON snapshots of a paystream deployment
========================================

A snapshot bundles the ``dump()`` of the asset ledger, and optionally of a
salary vault and an income split token, together with each ledger's event
log. Files are written atomically (temp file + ``os.replace``).

Layout::

    {
      "format": 1,
      "asset":  {"state": {...}, "events": [...]},
      "vault":  {"state": {...}, "events": [...]},          # optional
      "split":  {"state": {...}, "events": [...],           # optional
                 "investment": {"total": .., "weights": {..}}}
    }

When a split token is restored its investment weights come from, in order:
an explicit ``investment_source`` argument, the static weights recorded
alongside it, or the vault in the same snapshot.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..clock import Clock
from ..errors import InvalidState
from ..income import IncomeSplitToken, StaticInvestmentSource, TotalInvestmentSource, VaultInvestmentSource
from ..ledger import LedgerBase
from ..token.asset import InMemoryAsset
from ..vault import SalaryVault

log = logging.getLogger(__name__)

FORMAT_VERSION = 1


@dataclass
class Snapshot:
    asset: InMemoryAsset
    vault: Optional[SalaryVault] = None
    split: Optional[IncomeSplitToken] = None


def _entry(ledger: LedgerBase) -> Dict[str, Any]:
    with ledger._lock:
        return {"state": ledger.dump(), "events": ledger.events.dump()}


def encode(snapshot: Snapshot) -> Dict[str, Any]:
    out: Dict[str, Any] = {"format": FORMAT_VERSION, "asset": _entry(snapshot.asset)}
    if snapshot.vault is not None:
        out["vault"] = _entry(snapshot.vault)
    if snapshot.split is not None:
        out["split"] = _entry(snapshot.split)
        src = snapshot.split.investment_source
        if isinstance(src, StaticInvestmentSource):
            out["split"]["investment"] = src.dump()
    return out


def decode(
    data: Dict[str, Any],
    *,
    clock: Optional[Clock] = None,
    investment_source: Optional[TotalInvestmentSource] = None,
) -> Snapshot:
    if data.get("format") != FORMAT_VERSION:
        raise InvalidState("unsupported snapshot format", details={"format": data.get("format")})

    asset = InMemoryAsset.load(data["asset"]["state"])
    asset.events.load(data["asset"].get("events") or [])

    vault = None
    if "vault" in data:
        vault = SalaryVault.load(data["vault"]["state"], asset, clock=clock)
        vault.events.load(data["vault"].get("events") or [])

    split = None
    if "split" in data:
        src = investment_source
        inv = data["split"].get("investment")
        if src is None and inv is not None:
            src = StaticInvestmentSource(int(inv.get("total", 0)), inv.get("weights") or {})
        if src is None and vault is not None:
            src = VaultInvestmentSource(vault)
        if src is None:
            src = StaticInvestmentSource()
        split = IncomeSplitToken.load(data["split"]["state"], asset, src, clock=clock)
        split.events.load(data["split"].get("events") or [])

    return Snapshot(asset=asset, vault=vault, split=split)


def _atomic_write(path: str, data: bytes) -> None:
    d = os.path.dirname(os.path.abspath(path)) or "."
    tmp = os.path.join(d, "." + os.path.basename(path) + ".tmp")
    with open(tmp, "wb") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)


class FileSnapshotStore:
    """Persist a deployment snapshot in a single JSON file."""

    def __init__(self, path: str) -> None:
        self.path = os.path.abspath(path)
        self._lock = threading.RLock()

    def exists(self) -> bool:
        return os.path.exists(self.path)

    def save(self, snapshot: Snapshot) -> None:
        payload = json.dumps(encode(snapshot), indent=2, sort_keys=True).encode("utf-8")
        with self._lock:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            _atomic_write(self.path, payload)
        log.info("snapshot written to %s", self.path)

    def load(
        self,
        *,
        clock: Optional[Clock] = None,
        investment_source: Optional[TotalInvestmentSource] = None,
    ) -> Snapshot:
        with self._lock:
            with open(self.path, "rb") as f:
                data = json.loads(f.read().decode("utf-8"))
        return decode(data, clock=clock, investment_source=investment_source)


__all__ = ["FORMAT_VERSION", "Snapshot", "FileSnapshotStore", "encode", "decode"]
