"""
Adapters between paystream ledgers and the outside world.

Currently: JSON file snapshots (:mod:`paystream.adapters.snapshot`).
"""
from __future__ import annotations

from .snapshot import FileSnapshotStore, Snapshot, decode, encode

__all__ = ["FileSnapshotStore", "Snapshot", "decode", "encode"]
