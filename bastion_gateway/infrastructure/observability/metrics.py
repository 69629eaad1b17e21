"""Prometheus metrics for monitoring ledger operations, balances and catalog fetches"""

from decimal import Decimal
from typing import Optional
from prometheus_client import Counter, Histogram, Gauge

# Operation metrics
operation_counter = Counter(
    "bastion_operation_total",
    "Total ledger operations processed",
    ["operation", "outcome"],  # applied | insufficient_funds | invalid_parameters
)

operation_latency_histogram = Histogram(
    "bastion_operation_duration_seconds",
    "Time from submission to applied/rejected, including simulated delay",
    ["operation"],
    buckets=[0.01, 0.1, 0.5, 1.0, 1.5, 2.0, 2.5, 5.0],
)

pending_conflict_counter = Counter(
    "bastion_operation_pending_conflicts_total",
    "Requests refused because the operation slot was still pending",
    ["slot"],
)

# Account state
wallet_balance_gauge = Gauge(
    "bastion_wallet_balance",
    "Current spendable wallet balance",
)

staked_amount_gauge = Gauge(
    "bastion_staked_amount",
    "Current staked balance",
)

# Catalog API metrics
catalog_fetch_failures_counter = Counter(
    "catalog_fetch_failures_total",
    "Failed catalog API calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_operation(operation: str, error: Optional[str], duration_seconds: float) -> None:
    """Record operation outcome and latency"""
    outcome = error or "applied"
    operation_counter.labels(operation=operation, outcome=outcome).inc()
    operation_latency_histogram.labels(operation=operation).observe(duration_seconds)


def record_balances(wallet_balance: Decimal, staked_amount: Decimal) -> None:
    wallet_balance_gauge.set(float(wallet_balance))
    staked_amount_gauge.set(float(staked_amount))
