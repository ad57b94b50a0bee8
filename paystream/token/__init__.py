"""
paystream.token
===============

Fungible token ledgers: the base ledger shared by vault shares and the income
split token, and the underlying asset interface.
"""
from __future__ import annotations

from .asset import Asset, InMemoryAsset
from .fungible import U256_MAX_ALLOWANCE, FungibleLedger

__all__ = ["Asset", "InMemoryAsset", "FungibleLedger", "U256_MAX_ALLOWANCE"]
