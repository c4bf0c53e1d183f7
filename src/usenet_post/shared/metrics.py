"""Timing metrics for posting jobs."""

import time
from typing import Dict, Any
from collections import defaultdict


class MetricsCollector:
    """
    Collects phase timings and sizes across posting jobs.
    Implements IMetricsCollector protocol.
    """

    def __init__(self):
        self._timers: Dict[str, float] = {}
        self._metrics: Dict[str, list] = defaultdict(list)

    def start_timer(self, name: str) -> None:
        self._timers[name] = time.monotonic()

    def stop_timer(self, name: str) -> float:
        """
        Stop a named timer, record it as ``<name>_duration`` and return it.

        Raises:
            KeyError: If timer was not started
        """
        if name not in self._timers:
            raise KeyError(f"Timer '{name}' was not started")

        elapsed = time.monotonic() - self._timers.pop(name)
        self.record_metric(f"{name}_duration", elapsed)
        return elapsed

    def record_metric(self, name: str, value: float) -> None:
        self._metrics[name].append(value)

    def get_metric(self, name: str) -> list:
        return self._metrics.get(name, [])

    def get_summary(self) -> Dict[str, Any]:
        """Count, total and last value per metric, plus the timers still running."""
        return {
            "metrics": {
                name: {"count": len(values), "total": sum(values), "last": values[-1]}
                for name, values in self._metrics.items() if values
            },
            "running": sorted(self._timers),
        }
