"""Prometheus metrics for monitoring payout outcomes, fees and gateway timeouts"""

from prometheus_client import Counter, Histogram

# Payout metrics
payout_counter = Counter(
    "payout_requests_total",
    "Payout creation attempts by outcome",
    ["outcome"],  # created | duplicate | insufficient_balance | rate_limit_exceeded | ...
)

fees_collected_counter = Counter(
    "payout_fees_collected_sats_total",
    "Service fees charged on committed payouts",
)

gateway_timeout_counter = Counter(
    "payout_gateway_timeouts_total",
    "Simulated gateway timeouts",
    ["rolled_back"],  # true | false
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payout(outcome: str, fee: int = 0) -> None:
    """Record a payout outcome and the fee it collected"""
    payout_counter.labels(outcome=outcome).inc()
    if outcome == "created" and fee > 0:
        fees_collected_counter.inc(fee)


def record_gateway_timeout(rolled_back: bool) -> None:
    gateway_timeout_counter.labels(rolled_back=str(rolled_back).lower()).inc()
