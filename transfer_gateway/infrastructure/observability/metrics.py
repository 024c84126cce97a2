"""Prometheus metrics for monitoring transfers, scheduler runs and notifications"""

from prometheus_client import Counter, Histogram

# Transfer metrics
transfer_counter = Counter(
    "transfer_gateway_transfers_total",
    "Transfers attempted by the execution engine",
    ["mode", "outcome"],  # mode: one_shot | rate_payment | recurring; outcome: paired | single | rejected
)

transfer_amount_histogram = Histogram(
    "transfer_gateway_transfer_amount_cents",
    "Amounts moved by successful transfers",
    buckets=[1_000, 10_000, 50_000, 100_000, 500_000, 1_000_000, 5_000_000],
)

# Scheduler metrics
scheduler_outcome_counter = Counter(
    "transfer_gateway_scheduler_definitions_total",
    "Due recurring definitions processed by the scheduler",
    ["outcome"],  # realised | notified | removed | failed
)

scheduler_run_histogram = Histogram(
    "transfer_gateway_scheduler_run_seconds",
    "Duration of a full scheduler run",
    buckets=[0.1, 0.5, 1.0, 5.0, 30.0, 120.0, 600.0],
)

# Notification metrics
notification_failure_counter = Counter(
    "notification_failures_total",
    "Notifications that could not be delivered after all retries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transfer(mode: str, amount_cents: int, paired: bool) -> None:
    """Record a successful transfer"""
    transfer_counter.labels(mode=mode, outcome="paired" if paired else "single").inc()
    transfer_amount_histogram.observe(amount_cents)


def record_rejected_transfer(mode: str) -> None:
    transfer_counter.labels(mode=mode, outcome="rejected").inc()
