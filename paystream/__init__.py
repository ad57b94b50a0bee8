"""
paystream: streaming compensation & proportional income split ledgers.

Two cooperating ledgers form the core:

- ``paystream.vault.SalaryVault``: pays per-second salary streams out of pooled
  deposits. Vault shares represent the deposited assets *net of* salary that
  has accrued but not yet been paid.
- ``paystream.income.IncomeSplitToken``: a fixed-supply token that distributes
  everything it receives pro rata to holders, routing the investment
  address's slice to investors by external investment weight.

Public surface (lazily loaded):
- config, errors, events, metrics, clock, access
- math, salary, vault, income, token, adapters, cli
"""
from __future__ import annotations

import importlib
from typing import List

from .version import __version__

__all__: List[str] = [
    "__version__",
    "access",
    "adapters",
    "cli",
    "clock",
    "config",
    "errors",
    "events",
    "income",
    "math",
    "metrics",
    "salary",
    "token",
    "vault",
]

_lazy_modules = set(__all__) - {"__version__"}


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules)
