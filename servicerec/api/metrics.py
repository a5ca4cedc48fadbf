"""Metrics service for tracking API performance.

Singleton service to track pipeline runs served by the API and their latency.
"""

import threading
from typing import Dict


class MetricsService:
    """Singleton service for tracking API metrics.

    Thread-safe counters and latency tracking for pipeline runs.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize metrics counters."""
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._counts: Dict[str, int] = {}
        self._clients_served = 0
        self._total_latency_ms = 0.0
        self._max_latency_ms = 0.0
        self._initialized = True

    def record_run(self, kind: str, latency_ms: float, num_clients: int) -> None:
        """Record one pipeline run.

        Args:
            kind: Endpoint family, e.g. "recommend" or "segments"
            latency_ms: Latency in milliseconds
            num_clients: Number of clients in the request matrix
        """
        with self._lock:
            self._counts[kind] = self._counts.get(kind, 0) + 1
            self._clients_served += num_clients
            self._total_latency_ms += latency_ms
            self._max_latency_ms = max(self._max_latency_ms, latency_ms)

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary with run_count, runs_by_kind, clients_served,
            average_latency_ms and max_latency_ms.
        """
        with self._lock:
            run_count = sum(self._counts.values())
            avg_latency = self._total_latency_ms / run_count if run_count > 0 else 0.0

            return {
                "run_count": run_count,
                "runs_by_kind": dict(self._counts),
                "clients_served": self._clients_served,
                "average_latency_ms": round(avg_latency, 2),
                "max_latency_ms": round(self._max_latency_ms, 2),
            }

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._counts = {}
            self._clients_served = 0
            self._total_latency_ms = 0.0
            self._max_latency_ms = 0.0


# Global singleton instance
metrics_service = MetricsService()
