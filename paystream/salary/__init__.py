"""
paystream.salary
================

Streaming salary accounting: the global accumulator, per-beneficiary records
and the rate-change scheduler. These are plain state holders with pure
accrual math; the vault ledger composes them, moves funds and emits events.
"""
from __future__ import annotations

from .accounts import AccountSalary, SalaryBook
from .accumulator import GlobalAccumulator
from .scheduler import PendingUpdate, RateChangeScheduler, monthly_to_sps, sps_to_monthly

__all__ = [
    "AccountSalary",
    "SalaryBook",
    "GlobalAccumulator",
    "PendingUpdate",
    "RateChangeScheduler",
    "monthly_to_sps",
    "sps_to_monthly",
]
