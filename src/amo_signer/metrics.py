"""
Prometheus metrics for signing operations.

Provides instrumentation for:
- Sign operation outcomes
- API request counts by method and status class
- Status check decisions made by the poller
- Signed file downloads
- Poll duration histogram
"""

from prometheus_client import Counter, Histogram

sign_operations_total = Counter(
    "amo_sign_operations_total",
    "Total number of sign operations by outcome",
    ["outcome"],  # outcome: success, failure, already_exists, error
)

api_requests_total = Counter(
    "amo_api_requests_total",
    "Total number of signing API requests",
    ["method", "status_class"],  # status_class: 2xx, 4xx, 5xx, error
)

status_checks_total = Counter(
    "amo_status_checks_total",
    "Total number of signing status checks by decision",
    ["decision"],  # decision: continue, success, failure
)

signed_files_downloaded_total = Counter(
    "amo_signed_files_downloaded_total",
    "Total number of signed file downloads",
    ["status"],  # status: success, error
)

poll_duration_seconds = Histogram(
    "amo_poll_duration_seconds",
    "Time spent waiting for a signing job to reach a terminal state",
    buckets=(1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0, 900.0, 1800.0),
)


def status_class(status_code: int) -> str:
    """Bucket an HTTP status into its class label (e.g. 404 -> '4xx')."""
    return f"{status_code // 100}xx"


def record_api_request(method: str, status_code: int) -> None:
    """Record a completed API request."""
    api_requests_total.labels(
        method=method.upper(), status_class=status_class(status_code)
    ).inc()


def record_api_error(method: str) -> None:
    """Record an API request that failed below the HTTP layer."""
    api_requests_total.labels(method=method.upper(), status_class="error").inc()


def record_status_check(decision: str) -> None:
    """Record one evaluated status payload."""
    status_checks_total.labels(decision=decision).inc()


def record_download(success: bool) -> None:
    """Record one signed file download attempt."""
    signed_files_downloaded_total.labels(
        status="success" if success else "error"
    ).inc()


def record_sign_outcome(outcome: str) -> None:
    """Record the outcome of a sign operation."""
    sign_operations_total.labels(outcome=outcome).inc()


def observe_poll_duration(seconds: float) -> None:
    """Record how long a poll took to resolve."""
    poll_duration_seconds.observe(seconds)
