"""
Load run monitoring.

Collects per-table outcomes from concurrent workers together with wall time,
row throughput and the peak resident memory of the loading process.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import psutil

from ..models import LoadResult


@dataclass
class LoadMetrics:
    """Container for load run metrics."""
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    tables_loaded: int = 0
    tables_failed: int = 0
    rows_loaded: int = 0
    peak_memory_mb: float = 0.0


class LoadMonitor:
    """Thread-safe metrics collector for one load run."""

    def __init__(self, sample_interval: float = 0.5):
        self.logger = logging.getLogger(__name__)
        self.sample_interval = sample_interval
        self._metrics = LoadMetrics()
        self._lock = threading.Lock()
        self._stop_flag = threading.Event()
        self._sampler: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start timing and memory sampling."""
        self._metrics = LoadMetrics(start_time=time.time())
        self._stop_flag.clear()
        self._sampler = threading.Thread(target=self._sample_memory, name="load-monitor", daemon=True)
        self._sampler.start()

    def stop(self) -> Dict[str, Any]:
        """Stop sampling and return the run summary."""
        self._stop_flag.set()
        if self._sampler and self._sampler.is_alive():
            self._sampler.join(timeout=1.0)
        self._metrics.end_time = time.time()
        return self.summary()

    def record(self, result: LoadResult) -> None:
        """Record one table outcome; safe to call from worker threads."""
        with self._lock:
            if result.success:
                self._metrics.tables_loaded += 1
                self._metrics.rows_loaded += result.rows_actual or 0
            else:
                self._metrics.tables_failed += 1

    def summary(self) -> Dict[str, Any]:
        m = self._metrics
        end = m.end_time or time.time()
        elapsed = end - m.start_time if m.start_time else 0.0
        return {
            'elapsed_seconds': elapsed,
            'tables_loaded': m.tables_loaded,
            'tables_failed': m.tables_failed,
            'rows_loaded': m.rows_loaded,
            'rows_per_second': m.rows_loaded / elapsed if elapsed > 0 else 0.0,
            'peak_memory_mb': m.peak_memory_mb,
        }

    def log_summary(self) -> None:
        s = self.summary()
        self.logger.info(
            f"Load run: {s['tables_loaded']} tables loaded, {s['tables_failed']} failed, "
            f"{s['rows_loaded']:,} rows in {s['elapsed_seconds']:.1f}s "
            f"({s['rows_per_second']:.0f} rows/s, peak memory {s['peak_memory_mb']:.1f} MB)"
        )

    def _sample_memory(self) -> None:
        process = psutil.Process()
        while not self._stop_flag.is_set():
            try:
                memory_mb = process.memory_info().rss / 1024 / 1024
            except psutil.Error as e:
                self.logger.warning(f"Error sampling memory: {e}")
                break
            if memory_mb > self._metrics.peak_memory_mb:
                self._metrics.peak_memory_mb = memory_mb
            self._stop_flag.wait(self.sample_interval)
