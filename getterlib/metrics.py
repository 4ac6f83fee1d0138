import threading
import time
from dataclasses import dataclass


@dataclass
class Totals:
    fetches: int = 0
    bytes: int = 0
    errors: int = 0
    fetch_ms_sum: float = 0.0


class Metrics:
    """Thread-safe fetch counters shared by every Getter built from one registry."""

    def __init__(self):
        self._totals = Totals()
        self._lock = threading.Lock()
        self._start = time.time()

    def record_fetch(self, ok: bool, bytes_read: int, fetch_ms: float) -> None:
        with self._lock:
            self._totals.fetches += 1
            self._totals.bytes += max(0, bytes_read)
            if not ok:
                self._totals.errors += 1
            self._totals.fetch_ms_sum += fetch_ms

    def snapshot(self) -> tuple[Totals, float]:
        with self._lock:
            t = Totals(
                fetches=self._totals.fetches,
                bytes=self._totals.bytes,
                errors=self._totals.errors,
                fetch_ms_sum=self._totals.fetch_ms_sum,
            )
        elapsed = max(1e-6, time.time() - self._start)
        return t, elapsed


class FetchTimer:
    """Context manager that records one fetch into ``metrics`` (if any) on exit."""

    def __init__(self, metrics: "Metrics | None"):
        self.metrics = metrics
        self.bytes_read = 0
        self._t0 = 0.0

    def __enter__(self) -> "FetchTimer":
        self._t0 = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.metrics is None:
            return
        dt_ms = (time.perf_counter() - self._t0) * 1000.0
        self.metrics.record_fetch(exc_type is None, self.bytes_read, dt_ms)
