"""Lightweight in-process metrics for development and tests.

Components record counters and timings for the preview/export paths.

Usage:
    from resize_studio.engine.metrics import metrics
    metrics.inc("preview.issued")
    metrics.record("export.duration", 0.42)
    snapshot = metrics.snapshot()
"""

from __future__ import annotations

from collections import defaultdict
from threading import RLock
from typing import Any


class _Metrics:
    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._timings: dict[str, list[float]] = defaultdict(list)
        self._lock = RLock()

    def inc(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[key] += int(amount)

    def record(self, key: str, seconds: float) -> None:
        """Record an externally measured duration (network replies finish on a signal)."""
        with self._lock:
            self._timings[key].append(float(seconds))

    def counter(self, key: str) -> int:
        with self._lock:
            return int(self._counters.get(key, 0))

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": dict(self._counters),
                "timings": {k: list(v) for k, v in self._timings.items()},
            }

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._timings.clear()


metrics = _Metrics()
