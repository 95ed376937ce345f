"""
POS Inventory Engine — Event Listeners
========================================
Inventory reacts to its own change stream (read-only).

Listeners:
- AlertListener → bounded buffer of alert-worthy events for a UI panel
- LogListener   → writes every event to the pos.inventory logger

Both are plain callables, registered on the EventBus by the
composition root. Neither mutates the event or raises for
events it does not care about.
"""

from __future__ import annotations

import logging
from collections import deque
from threading import Lock
from typing import Deque, List, Tuple

from core.errors import ErrorKind, PosError
from engines.inventory.events import InventoryChangeEvent, InventoryEventKind

logger = logging.getLogger("pos.inventory")

DEFAULT_ALERT_CAPACITY = 50

_WARNING_KINDS = frozenset({
    InventoryEventKind.STOCK_OUT,
    InventoryEventKind.BATCH_EXPIRED,
})

_NOTICE_KINDS = frozenset({
    InventoryEventKind.STOCK_LOW,
    InventoryEventKind.BATCH_NEAR_EXPIRY,
})


class AlertListener:
    """
    Keeps the most recent alert events, oldest evicted first.

    The buffer is shared between the publishing thread and whoever
    reads alerts, so every access goes through one lock.
    """

    listener_name = "Inventory Alert Listener"

    def __init__(self, capacity: int = DEFAULT_ALERT_CAPACITY):
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Alert capacity must be a positive integer, got {capacity!r}.",
            )
        self._capacity = capacity
        self._alerts: Deque[InventoryChangeEvent] = deque(maxlen=capacity)
        self._lock = Lock()

    def __call__(self, event: InventoryChangeEvent) -> None:
        if not getattr(event, "is_alert", False):
            return
        with self._lock:
            self._alerts.append(event)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def alerts(self) -> Tuple[InventoryChangeEvent, ...]:
        """Buffered alerts, oldest first."""
        with self._lock:
            return tuple(self._alerts)

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._alerts)

    def clear(self) -> None:
        with self._lock:
            self._alerts.clear()

    def latest(self, n: int) -> List[str]:
        """Descriptions of the n most recent alerts; the most recent is last."""
        if n <= 0:
            return []
        with self._lock:
            recent = list(self._alerts)[-n:]
        return [event.description for event in recent]


class LogListener:
    """Logs each event; outages and expiries at WARNING."""

    listener_name = "Inventory Log Listener"

    def __call__(self, event: InventoryChangeEvent) -> None:
        line = f"[{event.timestamp.isoformat()}] {event.kind.value}: {event.description}"
        if event.kind in _WARNING_KINDS:
            logger.warning(line)
        elif event.kind in _NOTICE_KINDS:
            logger.info(f"ALERT: {line}")
        else:
            logger.info(line)
