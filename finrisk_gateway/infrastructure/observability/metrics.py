"""Prometheus metrics for monitoring risk mix, underwriting outcomes, and provider health"""

from prometheus_client import Counter, Histogram

# Scoring metrics
scoring_counter = Counter(
    "finrisk_scoring_total",
    "Scoring passes by resulting risk category",
    ["category"],  # LOW | MEDIUM | HIGH | VERY_HIGH
)

offer_amount_bucket_counter = Counter(
    "finrisk_offer_amount_bucket",
    "Loan offers issued by principal bucket",
    ["bucket"],  # 0, 0-50k, 50k-200k, 200k+
)

# Underwriting metrics
decision_counter = Counter(
    "finrisk_decision_total",
    "Underwriting decisions recorded",
    ["outcome"],  # APPROVED | REJECTED
)

policy_violation_counter = Counter(
    "finrisk_policy_violation_total",
    "Transitions blocked by a precondition",
    ["reason"],  # empty_justification | video_kyc_incomplete | pan_not_verified | invalid_transition
)

verification_event_counter = Counter(
    "finrisk_verification_events_total",
    "Verification events appended to the audit log",
    ["action"],
)

# External collaborators
external_call_failures_counter = Counter(
    "finrisk_external_call_failures_total",
    "Failed calls to external collaborators",
    ["service"],  # statement_analyzer | kyc | liveness
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_scoring(category: str, offer_amount: int) -> None:
    """Record risk category and offer size distribution for one scoring pass"""
    scoring_counter.labels(category=category).inc()

    if offer_amount == 0:
        bucket = "0"
    elif offer_amount <= 50_000:
        bucket = "0-50k"
    elif offer_amount <= 200_000:
        bucket = "50k-200k"
    else:
        bucket = "200k+"

    offer_amount_bucket_counter.labels(bucket=bucket).inc()
