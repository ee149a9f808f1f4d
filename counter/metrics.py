"""Prometheus metrics for the request counter.

Each metric registers itself in prometheus_client's global REGISTRY on
construction; start_http_server() serves them all on /metrics.
"""

from prometheus_client import Counter, Gauge

requests_total = Counter(
    "rc_requests_total",
    "Requests recorded through /count",
)
not_found_total = Counter(
    "rc_not_found_total",
    "Requests to any path other than /count",
)
persistence_errors_total = Counter(
    "rc_persistence_errors_total",
    "Snapshot dumps that failed",
)

# Evaluated at scrape time, so the value is always post-eviction.
window_requests = Gauge(
    "rc_window_requests",
    "Requests inside the sliding window",
)


def bind_store(store) -> None:
    """Point the window gauge at *store*."""
    window_requests.set_function(store.count)
