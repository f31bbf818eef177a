"""Prometheus metrics for ledger activity, advance decisions, and HTTP latency"""

from prometheus_client import Counter, Histogram

# Ledger metrics
ledger_operations_counter = Counter(
    "cayden_ledger_operations_total",
    "Ledger transactions by operation and outcome",
    ["operation", "outcome"],  # outcome: committed | rolled_back
)

ledger_operation_latency_histogram = Histogram(
    "cayden_ledger_operation_seconds",
    "Time spent inside a ledger transaction",
    ["operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

# Advance metrics
advance_request_counter = Counter(
    "cayden_advance_requests_total",
    "ExtraCash advance requests",
    ["outcome"],  # funded | approved | declined
)

advance_amount_bucket_counter = Counter(
    "cayden_advance_amount_bucket",
    "Advances issued by amount bucket",
    ["bucket"],  # $25-$100, $100-$250, $250-$400, $400+
)

eligibility_score_histogram = Histogram(
    "cayden_eligibility_score",
    "Computed advance eligibility scores",
    buckets=[10, 20, 31, 40, 51, 60, 71, 80, 86, 100],
)

# Best-effort side effects
side_effect_failure_counter = Counter(
    "cayden_side_effect_failures_total",
    "Audit/notification writes that failed and were skipped",
    ["kind"],
)

round_up_skipped_counter = Counter(
    "cayden_round_up_skipped_total",
    "Round-up legs skipped after the purchase committed",
    ["reason"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_ledger_operation(operation: str, committed: bool, duration_seconds: float) -> None:
    outcome = "committed" if committed else "rolled_back"
    ledger_operations_counter.labels(operation=operation, outcome=outcome).inc()
    ledger_operation_latency_histogram.labels(operation=operation).observe(duration_seconds)


def record_advance_request(status: str, amount_cents: int) -> None:
    """Record advance outcome and bucket the amount for distribution analysis"""
    advance_request_counter.labels(outcome=status).inc()

    if amount_cents <= 10_000:
        bucket = "$25-$100"
    elif amount_cents <= 25_000:
        bucket = "$100-$250"
    elif amount_cents <= 40_000:
        bucket = "$250-$400"
    else:
        bucket = "$400+"

    advance_amount_bucket_counter.labels(bucket=bucket).inc()


def record_advance_declined() -> None:
    advance_request_counter.labels(outcome="declined").inc()
