from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Dict


@dataclass
class EventStats:
    published_total: int = 0
    delivered_total: int = 0
    handler_errors_total: int = 0
    canceled_total: int = 0
    subscribers: int = 0
    delivered_by_priority: Dict[str, int] = field(default_factory=dict)


class StatsCounter:
    """Per-event counters; one instance per event, updated from any thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stats = EventStats()

    def snapshot(self) -> EventStats:
        with self._lock:
            return replace(self._stats, delivered_by_priority=dict(self._stats.delivered_by_priority))

    def inc_published(self) -> None:
        with self._lock:
            self._stats.published_total += 1

    def inc_delivered(self, priority: str) -> None:
        with self._lock:
            self._stats.delivered_total += 1
            per = self._stats.delivered_by_priority
            per[priority] = per.get(priority, 0) + 1

    def inc_handler_error(self) -> None:
        with self._lock:
            self._stats.handler_errors_total += 1

    def inc_canceled(self) -> None:
        with self._lock:
            self._stats.canceled_total += 1

    def set_subscribers(self, n: int) -> None:
        with self._lock:
            self._stats.subscribers = int(n)
