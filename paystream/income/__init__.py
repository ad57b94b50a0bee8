"""
paystream.income
================

Proportional income split token and its investment weight sources.
"""
from __future__ import annotations

from .investment import StaticInvestmentSource, TotalInvestmentSource, VaultInvestmentSource
from .split import IncomeSplitToken

__all__ = [
    "IncomeSplitToken",
    "StaticInvestmentSource",
    "TotalInvestmentSource",
    "VaultInvestmentSource",
]
