"""
POS Event Bus — Publish/Subscribe Facade
==========================================
Stock-mutating code publishes; logging and alerting code listens.

The bus does not retain events. Listeners that want history
(e.g. an alert buffer) keep their own copies.
"""

from __future__ import annotations

import logging
from typing import Any, Tuple

from core.events.dispatcher import dispatch
from core.events.registry import Listener, ListenerRegistry

logger = logging.getLogger("pos.events")


class EventBus:
    """
    Explicit listener registry plus synchronous publish.

    Thread-safety: register/unregister may run on any thread while
    another thread publishes. A publish delivers to the listeners
    registered when it started. No ordering guarantee exists between
    concurrent publishes.
    """

    def __init__(self, registry: ListenerRegistry | None = None):
        self._registry = registry or ListenerRegistry()

    def register(self, listener: Listener) -> bool:
        return self._registry.register(listener)

    def unregister(self, listener: Listener) -> bool:
        return self._registry.unregister(listener)

    def publish(self, event: Any) -> dict:
        """Deliver to every registered listener, in registration order."""
        if event is None:
            logger.debug("Ignoring publish of None event")
            return dispatch(None, ())
        return dispatch(event, self._registry.snapshot())

    def is_registered(self, listener: Listener) -> bool:
        return self._registry.contains(listener)

    @property
    def listeners(self) -> Tuple[Listener, ...]:
        return self._registry.snapshot()

    @property
    def listener_count(self) -> int:
        return len(self._registry)
