"""
paystream.cli.inspect
---------------------

Read-only views over a paystream snapshot file (see
:mod:`paystream.adapters.snapshot`):

- the vault's salary liability and share accounting at a point in time,
- one account's salary, vault position and income split claims.

Nothing is written back; ``--at`` evaluates the views at a chosen timestamp
without settling anything.

Examples
--------
# Vault overview one hour after the snapshot's last checkpoint
python -m paystream.cli.inspect vault state.json --at 1700003600

# One account, JSON
python -m paystream.cli.inspect account state.json alice --at 1700003600 --json

# Effective configuration (file + PAYSTREAM_* env)
python -m paystream.cli.inspect config
"""
from __future__ import annotations

import json
import shutil
import time
from typing import Any, Dict, List, Optional, Tuple

import typer

from .. import config as config_mod
from ..adapters.snapshot import FileSnapshotStore, Snapshot
from ..clock import ManualClock
from ..errors import PaystreamError

app = typer.Typer(
    name="paystream-inspect",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect salary vault and income split snapshots.",
)

# -------------------- utils --------------------


def _width(default: int = 100) -> int:
    try:
        return shutil.get_terminal_size((default, 20)).columns
    except OSError:
        return default


def _pad(s: str, n: int) -> str:
    if len(s) <= n:
        return s + " " * (n - len(s))
    if n <= 4:
        return s[:n]
    return s[: n - 1] + "…"


def _load_or_exit(path: str) -> Snapshot:
    store = FileSnapshotStore(path)
    if not store.exists():
        typer.secho(f"Snapshot not found: {path}", fg=typer.colors.RED)
        raise typer.Exit(2)
    try:
        return store.load()
    except (PaystreamError, KeyError, ValueError) as e:
        typer.secho(f"Could not read snapshot {path}: {e}", fg=typer.colors.RED)
        raise typer.Exit(2)


def _resolve_at(snap: Snapshot, at: Optional[int]) -> int:
    if at is not None:
        return at
    floor = snap.vault.accumulator.last_release_at if snap.vault is not None else 0
    return max(int(time.time()), floor)


def _pin(snap: Snapshot, at: int) -> None:
    # views that read the clock (vault-backed investment weights) see `at` too
    clock = ManualClock(at)
    if snap.vault is not None:
        snap.vault.clock = clock
    if snap.split is not None:
        snap.split.clock = clock


# -------------------- views --------------------


def vault_view(snap: Snapshot, at: int) -> Dict[str, Any]:
    vault = snap.vault
    if vault is None:
        raise typer.BadParameter("snapshot has no vault")
    accounts: List[Dict[str, Any]] = []
    known = {addr for addr, _ in vault.salaries.items()} | set(vault.scheduler.pending_accounts())
    for addr in sorted(known):
        rec = vault.salaries.peek(addr)
        accounts.append(
            {
                "account": addr,
                "sps": rec.current_sps,
                "monthly": vault.salary_of(addr),
                "releasable": vault.releasable(addr, at),
                "pending_update": (vault.pending_update(addr).to_dict() if vault.pending_update(addr) else None),
            }
        )
    return {
        "address": vault.address,
        "at": at,
        "owner": vault.owner,
        "total_sps": vault.total_sps,
        "total_accumulated_salary": vault.total_accumulated_salary(at),
        "total_pending_salary": vault.total_pending_salary(at),
        "total_released": vault.total_released,
        "balance": vault.asset.balance_of(vault.address),
        "total_assets": vault.total_assets(at),
        "total_supply": vault.total_supply(),
        "accounts": accounts,
    }


def account_view(snap: Snapshot, address: str, at: int) -> Dict[str, Any]:
    out: Dict[str, Any] = {"account": address, "at": at, "asset_balance": snap.asset.balance_of(address)}
    vault = snap.vault
    if vault is not None:
        upd = vault.pending_update(address)
        out["salary"] = {
            "sps": vault.current_sps(address),
            "monthly": vault.salary_of(address),
            "releasable": vault.releasable(address, at),
            "pending_release": vault.pending_release(address),
            "pending_update": upd.to_dict() if upd else None,
        }
        out["vault"] = {
            "shares": vault.balance_of(address),
            "assets": vault.convert_to_assets(vault.balance_of(address), at),
            "total_deposit": vault.total_deposit(address),
            "investment": vault.investment_of_v2(address, at),
        }
    split = snap.split
    if split is not None:
        out["split"] = {
            "balance": split.balance_of(address),
            "claimable": 0 if address == split.investment_address else split.claimable(address),
            "claimable_on_investment": split.claimable_on_investment(address),
            "claimed_from_investment": split.claimed_from_investment(address),
        }
    return out


# -------------------- printing --------------------


def _print_pairs(rows: List[Tuple[str, Any]]) -> None:
    name_w = max(len(k) for k, _ in rows) + 2
    for k, v in rows:
        typer.echo(_pad(k, name_w) + str("-" if v is None else v))


def _print_vault(view: Dict[str, Any]) -> None:
    typer.secho(f"Vault {view['address']} @ {view['at']}", bold=True)
    _print_pairs([(k, view[k]) for k in (
        "owner",
        "total_sps",
        "total_accumulated_salary",
        "total_pending_salary",
        "total_released",
        "balance",
        "total_assets",
        "total_supply",
    )])
    typer.echo("")
    if not view["accounts"]:
        typer.echo("No salaried accounts.")
        return
    width = _width()
    acct_w = max(12, min(42, width - 50))
    cols = [("ACCOUNT", acct_w), ("SPS", 12), ("MONTHLY", 16), ("RELEASABLE", 16)]
    typer.secho(" ".join(_pad(n, w) for n, w in cols), bold=True)
    for a in view["accounts"]:
        vals = [a["account"], str(a["sps"]), str(a["monthly"]), str(a["releasable"])]
        line = " ".join(_pad(v, w) for v, (_, w) in zip(vals, cols))
        if a["pending_update"]:
            line += f"  (update → {a['pending_update']['expected_sps']} sps at {a['pending_update']['update_time']})"
        typer.echo(line)


def _print_account(view: Dict[str, Any]) -> None:
    typer.secho(f"Account {view['account']} @ {view['at']}", bold=True)
    _print_pairs([("asset_balance", view["asset_balance"])])
    for section in ("salary", "vault", "split"):
        if section not in view:
            continue
        typer.echo("")
        typer.secho(section.capitalize() + ":", bold=True)
        rows = view[section]
        upd = rows.get("pending_update") if section == "salary" else None
        _print_pairs([(k, v) for k, v in rows.items() if k != "pending_update"])
        if upd:
            typer.echo(f"pending update → {upd['expected_sps']} sps at {upd['update_time']}")


# -------------------- commands --------------------


@app.command("vault")
def cmd_vault(
    snapshot: str = typer.Argument(..., help="Snapshot JSON file."),
    at: Optional[int] = typer.Option(None, "--at", min=0, help="Evaluate at this UNIX time (default: now)."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    snap = _load_or_exit(snapshot)
    when = _resolve_at(snap, at)
    _pin(snap, when)
    try:
        view = vault_view(snap, when)
    except PaystreamError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)
    if json_out:
        typer.echo(json.dumps(view, indent=2, sort_keys=True))
        return
    _print_vault(view)


@app.command("account")
def cmd_account(
    snapshot: str = typer.Argument(..., help="Snapshot JSON file."),
    address: str = typer.Argument(..., help="Account address."),
    at: Optional[int] = typer.Option(None, "--at", min=0, help="Evaluate at this UNIX time (default: now)."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    snap = _load_or_exit(snapshot)
    when = _resolve_at(snap, at)
    _pin(snap, when)
    try:
        view = account_view(snap, address, when)
    except PaystreamError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)
    if json_out:
        typer.echo(json.dumps(view, indent=2, sort_keys=True))
        return
    _print_account(view)


@app.command("config")
def cmd_config() -> None:
    """Print the effective configuration ($PAYSTREAM_CONFIG_FILE, then PAYSTREAM_* env)."""
    try:
        typer.echo(config_mod.pretty())
    except (OSError, ValueError) as e:
        typer.secho(f"Invalid configuration: {e}", fg=typer.colors.RED)
        raise typer.Exit(2)


def get_app() -> typer.Typer:
    return app


if __name__ == "__main__":
    app()
