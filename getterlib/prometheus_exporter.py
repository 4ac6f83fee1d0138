import logging
import threading
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, start_http_server

from .metrics import Metrics


logger = logging.getLogger(__name__)


class PrometheusExporter:
    def __init__(self, metrics: Metrics, port: int = 8000, registry: CollectorRegistry = REGISTRY) -> None:
        self.metrics = metrics
        self.port = port
        self.registry = registry
        self._server_thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        self.fetches_total = Counter('getter_fetches_total', 'Total number of fetches attempted', registry=registry)
        self.bytes_total = Counter('getter_bytes_total', 'Total number of bytes fetched', registry=registry)
        self.errors_total = Counter('getter_errors_total', 'Total number of failed fetches', registry=registry)
        self.fetches_per_second = Gauge('getter_fetches_per_second', 'Current fetch rate in fetches per second', registry=registry)
        self.avg_fetch_duration_seconds = Gauge(
            'getter_avg_fetch_duration_seconds', 'Average fetch duration in seconds', registry=registry
        )

        self._last_fetches = 0
        self._last_bytes = 0
        self._last_errors = 0

    def start(self) -> None:
        start_http_server(self.port, registry=self.registry)
        logger.info("Prometheus metrics server started on port %d", self.port)

        self._server_thread = threading.Thread(
            target=self._update_metrics_loop,
            name="prometheus-updater",
            daemon=True
        )
        self._server_thread.start()

    def _update_metrics_loop(self) -> None:
        while not self._stop_event.is_set():
            self.update()
            self._stop_event.wait(5.0)

    def update(self) -> None:
        totals, elapsed = self.metrics.snapshot()

        fetches_delta = totals.fetches - self._last_fetches
        bytes_delta = totals.bytes - self._last_bytes
        errors_delta = totals.errors - self._last_errors

        if fetches_delta > 0:
            self.fetches_total.inc(fetches_delta)
        if bytes_delta > 0:
            self.bytes_total.inc(bytes_delta)
        if errors_delta > 0:
            self.errors_total.inc(errors_delta)

        if elapsed > 0:
            self.fetches_per_second.set(totals.fetches / elapsed)

        if totals.fetches > 0:
            avg_fetch_ms = totals.fetch_ms_sum / totals.fetches
            self.avg_fetch_duration_seconds.set(avg_fetch_ms / 1000.0)

        self._last_fetches = totals.fetches
        self._last_bytes = totals.bytes
        self._last_errors = totals.errors

    def stop(self) -> None:
        self._stop_event.set()
        if self._server_thread:
            self._server_thread.join(timeout=2.0)
        # Publish whatever was recorded since the last tick.
        self.update()
