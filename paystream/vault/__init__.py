"""
paystream.vault
===============

The salary vault: ERC-4626-style shares over pooled assets, priced net of
accrued-but-unpaid salary, plus the salary release and rate-change entry
points.
"""
from __future__ import annotations

from .ledger import SalaryVault
from .shares import ShareLedger

__all__ = ["SalaryVault", "ShareLedger"]
