"""
Prometheus metrics for the paystream ledgers.

We expose counters, gauges and a histogram covering:
- salary: amounts released, rate updates scheduled/committed, total rate and
  pending liability snapshots
- vault: deposits and withdrawals (asset amounts)
- income: amounts claimed, split by direct vs investment channel
- errors: rejected operations by error code

Amounts are recorded in base units (integers as floats). Exposition helpers
at the bottom serve the dedicated registry from any ASGI server.
"""
from __future__ import annotations

from typing import Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, generate_latest)

# Dedicated registry so embedding apps can choose to merge or expose it directly.
REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   ledger: emitter address of the ledger
#   channel: "direct" | "investment"
#   op: entry point name ("release", "deposit", ...)
# ────────────────────────────────────────────────────────────────────────────────

SALARY_RELEASED = Counter(
    "paystream_salary_released_units_total",
    "Total salary released to beneficiaries, in asset base units.",
    labelnames=("ledger",),
    registry=REGISTRY,
)

SALARY_RELEASES = Counter(
    "paystream_salary_releases_total",
    "Number of release calls executed.",
    labelnames=("ledger",),
    registry=REGISTRY,
)

UPDATES_SCHEDULED = Counter(
    "paystream_rate_updates_scheduled_total",
    "Salary rate changes scheduled.",
    labelnames=("ledger",),
    registry=REGISTRY,
)

UPDATES_COMMITTED = Counter(
    "paystream_rate_updates_committed_total",
    "Salary rate changes committed.",
    labelnames=("ledger",),
    registry=REGISTRY,
)

VAULT_DEPOSITED = Counter(
    "paystream_vault_deposited_units_total",
    "Gross assets deposited into the vault.",
    labelnames=("ledger",),
    registry=REGISTRY,
)

VAULT_WITHDRAWN = Counter(
    "paystream_vault_withdrawn_units_total",
    "Assets withdrawn from the vault.",
    labelnames=("ledger",),
    registry=REGISTRY,
)

INCOME_CLAIMED = Counter(
    "paystream_income_claimed_units_total",
    "Income paid out by split tokens, by channel.",
    labelnames=("ledger", "channel"),
    registry=REGISTRY,
)

ERRORS = Counter(
    "paystream_rejected_operations_total",
    "Operations rejected (and rolled back) by error code.",
    labelnames=("op", "code"),
    registry=REGISTRY,
)

TOTAL_SPS = Gauge(
    "paystream_total_sps",
    "Aggregate committed salary rate (units per second).",
    labelnames=("ledger",),
    registry=REGISTRY,
)

PENDING_SALARY = Gauge(
    "paystream_pending_salary_units",
    "Accrued-but-unpaid salary at the last settlement.",
    labelnames=("ledger",),
    registry=REGISTRY,
)

RELEASE_AMOUNT = Histogram(
    "paystream_release_amount_units",
    "Distribution of individual release amounts (base units).",
    buckets=(0, 1, 10, 100, 1e3, 1e4, 1e5, 1e6, 1e9, 1e12, 1e15, 1e18, 1e21),
    registry=REGISTRY,
)

# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_release(ledger: str, amount: int) -> None:
    SALARY_RELEASES.labels(ledger=ledger).inc()
    if amount > 0:
        SALARY_RELEASED.labels(ledger=ledger).inc(float(amount))
    RELEASE_AMOUNT.observe(float(amount))


def record_update_scheduled(ledger: str) -> None:
    UPDATES_SCHEDULED.labels(ledger=ledger).inc()


def record_update_committed(ledger: str, total_sps: int) -> None:
    UPDATES_COMMITTED.labels(ledger=ledger).inc()
    TOTAL_SPS.labels(ledger=ledger).set(float(total_sps))


def record_settlement(ledger: str, total_sps: int, pending_salary: int) -> None:
    TOTAL_SPS.labels(ledger=ledger).set(float(total_sps))
    PENDING_SALARY.labels(ledger=ledger).set(float(pending_salary))


def record_deposit(ledger: str, assets: int) -> None:
    if assets > 0:
        VAULT_DEPOSITED.labels(ledger=ledger).inc(float(assets))


def record_withdraw(ledger: str, assets: int) -> None:
    if assets > 0:
        VAULT_WITHDRAWN.labels(ledger=ledger).inc(float(assets))


def record_claim(ledger: str, direct: int, from_investment: int) -> None:
    if direct > 0:
        INCOME_CLAIMED.labels(ledger=ledger, channel="direct").inc(float(direct))
    if from_investment > 0:
        INCOME_CLAIMED.labels(ledger=ledger, channel="investment").inc(float(from_investment))


def record_error(op: str, code: str) -> None:
    ERRORS.labels(op=op, code=code).inc()


# ────────────────────────────────────────────────────────────────────────────────
# Exposition
# ────────────────────────────────────────────────────────────────────────────────


def render(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Text exposition of the registry."""
    return generate_latest(registry or REGISTRY)


def make_prometheus_asgi_app(registry: Optional[CollectorRegistry] = None):
    """
    Return a minimal ASGI app that serves Prometheus metrics at '/'.
    No external web framework required.
    """
    reg = registry or REGISTRY

    async def app(scope, receive, send):  # type: ignore[override]
        if scope["type"] != "http" or (scope.get("path") or "/") != "/":
            await send({"type": "http.response.start", "status": 404, "headers": []})
            await send({"type": "http.response.body", "body": b"Not Found"})
            return
        payload = generate_latest(reg)
        headers = [
            (b"content-type", CONTENT_TYPE_LATEST.encode("ascii")),
            (b"cache-control", b"no-cache, no-store, must-revalidate"),
        ]
        await send({"type": "http.response.start", "status": 200, "headers": headers})
        await send({"type": "http.response.body", "body": payload})

    return app


__all__ = [
    "REGISTRY",
    "SALARY_RELEASED",
    "SALARY_RELEASES",
    "UPDATES_SCHEDULED",
    "UPDATES_COMMITTED",
    "VAULT_DEPOSITED",
    "VAULT_WITHDRAWN",
    "INCOME_CLAIMED",
    "ERRORS",
    "TOTAL_SPS",
    "PENDING_SALARY",
    "RELEASE_AMOUNT",
    "record_release",
    "record_update_scheduled",
    "record_update_committed",
    "record_settlement",
    "record_deposit",
    "record_withdraw",
    "record_claim",
    "record_error",
    "render",
    "make_prometheus_asgi_app",
]
