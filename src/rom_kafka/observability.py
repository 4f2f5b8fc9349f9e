"""Lightweight observability utilities: structured logging and in-memory metrics.

- StructuredLogger: emits JSON dicts via the standard logging module.
- MetricsCollector: in-memory counters and timers with a Prometheus-like text export.

Both are shared module-level singletons used by the gateway, datasets and
commands.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import Counter, defaultdict
from typing import Any, Dict


class StructuredLogger:
    def __init__(self, name: str = "rom_kafka"):
        self._logger = logging.getLogger(name)
        if not self._logger.handlers:
            h = logging.StreamHandler()
            fmt = logging.Formatter("%(message)s")
            h.setFormatter(fmt)
            self._logger.addHandler(h)
        self._logger.setLevel(logging.INFO)

    def _emit(self, level: int, event: str, **kwargs: Any) -> None:
        payload = {"ts": time.time(), "event": event, **kwargs}
        try:
            self._logger.log(level, json.dumps(payload))
        except (TypeError, ValueError):
            # partitioners and clients are not JSON serialisable
            self._logger.log(level, json.dumps(payload, default=repr))

    def debug(self, event: str, **kwargs: Any) -> None:
        self._emit(logging.DEBUG, event, **kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._emit(logging.INFO, event, **kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._emit(logging.WARNING, event, **kwargs)


# module-level default logger
logger = StructuredLogger()


class _Timer:
    __slots__ = ("count", "total", "worst")

    def __init__(self) -> None:
        self.count = 0
        self.total = 0.0
        self.worst = 0.0

    def observe(self, seconds: float) -> None:
        self.count += 1
        self.total += seconds
        self.worst = max(self.worst, seconds)


class MetricsCollector:
    """Publish-path counters and timers.

    Timers keep running aggregates (count, sum, max) instead of every sample,
    so a long-lived producer does not grow memory per publish call.
    """

    def __init__(self) -> None:
        self._counters: Counter = Counter()
        self._timers: Dict[str, _Timer] = defaultdict(_Timer)
        self._lock = threading.Lock()

    def inc(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[name] += amount

    def timing(self, name: str, seconds: float) -> None:
        with self._lock:
            self._timers[name].observe(seconds)

    def get(self, name: str) -> int:
        with self._lock:
            return self._counters[name]

    def export_prometheus(self) -> str:
        """Render counters, then timers as ``_count``, ``_sum`` and ``_max``."""
        with self._lock:
            lines = [f"{name} {value}" for name, value in sorted(self._counters.items())]
            for name, t in sorted(self._timers.items()):
                lines += [
                    f"{name}_count {t.count}",
                    f"{name}_sum {t.total:.6f}",
                    f"{name}_max {t.worst:.6f}",
                ]
        return "\n".join(lines)


# module-level default metrics collector
metrics = MetricsCollector()
