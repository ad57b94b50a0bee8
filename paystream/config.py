"""
paystream.config: deployment parameters for the ledgers.

Covers:
- Rate-change scheduling: waiting period before a scheduled salary change may
  be committed, and the month length used to turn monthly salaries into
  per-second rates.
- Vault share metadata.

Environment overrides (all optional; defaults suit a dev deployment):

  PAYSTREAM_WAITING_PERIOD_SECONDS=0
  PAYSTREAM_SECONDS_PER_MONTH=2592000
  PAYSTREAM_SHARE_NAME="Salary Vault Share"
  PAYSTREAM_SHARE_SYMBOL=svSHARE
  PAYSTREAM_CHAIN_ID=1337

The dev default waiting period is zero so tests can commit immediately;
production deployments should set a non-trivial value.

A JSON or YAML file can be supplied via `PAYSTREAM_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""
from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

SECONDS_PER_MONTH = 30 * 24 * 60 * 60  # 2_592_000


# -------------------------- Data classes --------------------------


@dataclass
class ScheduleConfig:
    """Salary rate-change scheduling."""
    waiting_period_seconds: int = 0
    seconds_per_month: int = SECONDS_PER_MONTH

    def validate(self) -> None:
        if self.waiting_period_seconds < 0:
            raise ValueError("waiting_period_seconds must be non-negative.")
        if self.seconds_per_month <= 0:
            raise ValueError("seconds_per_month must be positive.")


@dataclass
class VaultConfig:
    """Vault share token metadata."""
    share_name: str = "Salary Vault Share"
    share_symbol: str = "svSHARE"

    def validate(self) -> None:
        if not self.share_name or not self.share_symbol:
            raise ValueError("share_name and share_symbol must be non-empty.")


@dataclass
class PaystreamConfig:
    """Top-level configuration container."""
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    vault: VaultConfig = field(default_factory=VaultConfig)
    chain_id: Optional[int] = None

    def validate(self) -> None:
        self.schedule.validate()
        self.vault.validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except ValueError as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


def _getenv_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None or v == "" else v


def from_env(base: Optional[PaystreamConfig] = None, prefix: str = "PAYSTREAM_") -> PaystreamConfig:
    """
    Build a PaystreamConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or PaystreamConfig()

    chain_id = os.getenv(f"{prefix}CHAIN_ID")
    new_cfg = PaystreamConfig(
        schedule=ScheduleConfig(
            waiting_period_seconds=_getenv_int(
                f"{prefix}WAITING_PERIOD_SECONDS", cfg.schedule.waiting_period_seconds
            ),
            seconds_per_month=_getenv_int(f"{prefix}SECONDS_PER_MONTH", cfg.schedule.seconds_per_month),
        ),
        vault=VaultConfig(
            share_name=_getenv_str(f"{prefix}SHARE_NAME", cfg.vault.share_name),
            share_symbol=_getenv_str(f"{prefix}SHARE_SYMBOL", cfg.vault.share_symbol),
        ),
        chain_id=int(chain_id) if chain_id not in (None, "") else cfg.chain_id,
    )
    new_cfg.validate()
    return new_cfg


def from_file(path: str | os.PathLike[str]) -> PaystreamConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")

    schedule = data.get("schedule", {})
    vault = data.get("vault", {})
    defaults = PaystreamConfig()

    cfg = PaystreamConfig(
        schedule=ScheduleConfig(
            waiting_period_seconds=int(
                schedule.get("waiting_period_seconds", defaults.schedule.waiting_period_seconds)
            ),
            seconds_per_month=int(schedule.get("seconds_per_month", defaults.schedule.seconds_per_month)),
        ),
        vault=VaultConfig(
            share_name=str(vault.get("share_name", defaults.vault.share_name)),
            share_symbol=str(vault.get("share_symbol", defaults.vault.share_symbol)),
        ),
        chain_id=data.get("chain_id", defaults.chain_id),
    )
    cfg.validate()
    return cfg


def load() -> PaystreamConfig:
    """
    Load configuration using the following precedence:
      1) File at $PAYSTREAM_CONFIG_FILE (JSON/YAML)
      2) Environment variables (PAYSTREAM_*), applied on top of defaults or file values
    """
    file_path = os.getenv("PAYSTREAM_CONFIG_FILE")
    base = from_file(file_path) if file_path else PaystreamConfig()
    return from_env(base=base)


def pretty(cfg: Optional[PaystreamConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    return json.dumps((cfg or load()).to_dict(), indent=2, sort_keys=True)


__all__ = [
    "SECONDS_PER_MONTH",
    "ScheduleConfig",
    "VaultConfig",
    "PaystreamConfig",
    "from_env",
    "from_file",
    "load",
    "pretty",
]
