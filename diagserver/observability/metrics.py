from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest


LABELS = ("code", "method")

# Sub-millisecond buckets first, then the library defaults (minus +Inf, re-added by Histogram).
DURATION_BUCKETS: tuple[float, ...] = (0.000001, 0.001, 0.003) + tuple(
    b for b in Histogram.DEFAULT_BUCKETS if b != float("inf")
)
RESPONSE_SIZE_BUCKETS: tuple[float, ...] = tuple(float(b) for b in range(0, 21, 2))


class HttpMetrics:
    """Request collectors bound to one registry (resets on restart).

    Increments rely on prometheus_client's own locking, so handlers running in
    the threadpool can observe concurrently.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.http_requests = Counter(
            "http_requests_total",
            "How many HTTP requests processed, partitioned by status code and HTTP method.",
            registry=self.registry,
        )
        self.request_count = Counter(
            "http_request_count_total",
            "Counter of HTTP requests made.",
            LABELS,
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "A histogram of latencies for requests.",
            LABELS,
            buckets=DURATION_BUCKETS,
            registry=self.registry,
        )
        self.response_size = Histogram(
            "http_response_size_bytes",
            "A histogram of response sizes for requests.",
            LABELS,
            buckets=RESPONSE_SIZE_BUCKETS,
            registry=self.registry,
        )

    def observe(self, *, code: int, method: str, elapsed_s: float, size: int) -> None:
        labels = {"code": str(code), "method": method.lower()}
        self.http_requests.inc()
        self.request_count.labels(**labels).inc()
        self.request_duration.labels(**labels).observe(elapsed_s)
        self.response_size.labels(**labels).observe(size)

    def render(self) -> tuple[bytes, str]:
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
