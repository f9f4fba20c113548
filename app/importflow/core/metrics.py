from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.importflow.core.config import settings


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    def __init__(self) -> None:
        self.enabled = bool(settings.METRICS_ENABLED)
        self._registry = None
        self._http_requests_total = None
        self._http_request_duration_ms = None
        self._lock_wait_timeout_total = None
        self._status_transitions_total = None
        self._archived_shipments_total = None
        self._digest_dispatch_total = None
        self._telemetry_events_total = None
        if self.enabled:
            self._initialize_registry()

    def _initialize_registry(self) -> None:
        self._registry = CollectorRegistry()
        self._http_requests_total = Counter(
            "http_requests_total",
            "HTTP requests by route/method/status.",
            ["route", "method", "status"],
            registry=self._registry,
        )
        self._http_request_duration_ms = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            ["route", "method", "status"],
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
            registry=self._registry,
        )
        self._lock_wait_timeout_total = Counter(
            "lock_wait_timeout_total",
            "Lock wait timeout occurrences.",
            registry=self._registry,
        )
        self._status_transitions_total = Counter(
            "shipment_status_transitions_total",
            "Committed shipment status transitions by target status.",
            ["target_status"],
            registry=self._registry,
        )
        self._archived_shipments_total = Counter(
            "archived_shipments_total",
            "Shipments copied into archive records, by archive type.",
            ["archive_type"],
            registry=self._registry,
        )
        self._digest_dispatch_total = Counter(
            "digest_dispatch_total",
            "Digest dispatch attempts by period and outcome.",
            ["period", "outcome"],
            registry=self._registry,
        )
        self._telemetry_events_total = Counter(
            "telemetry_events_total",
            "Telemetry events recorded by name.",
            ["name"],
            registry=self._registry,
        )

    def reset(self) -> None:
        if not self.enabled:
            return
        self._initialize_registry()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        labels = {"route": route, "method": method, "status": str(status_code)}
        self._http_requests_total.labels(**labels).inc()
        self._http_request_duration_ms.labels(**labels).observe(latency_ms)

    def increment_lock_wait_timeout(self) -> None:
        if not self.enabled:
            return
        self._lock_wait_timeout_total.inc()

    def increment_transition(self, target_status: str) -> None:
        if not self.enabled:
            return
        self._status_transitions_total.labels(target_status=target_status).inc()

    def increment_archived(self, archive_type: str, count: int) -> None:
        if not self.enabled:
            return
        self._archived_shipments_total.labels(archive_type=archive_type).inc(count)

    def increment_digest(self, period: str, outcome: str) -> None:
        if not self.enabled:
            return
        self._digest_dispatch_total.labels(period=period, outcome=outcome).inc()

    def increment_telemetry_event(self, name: str) -> None:
        if not self.enabled:
            return
        self._telemetry_events_total.labels(name=name).inc()

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
