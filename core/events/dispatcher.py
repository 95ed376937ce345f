"""
POS Event Bus — Dispatcher
============================
Delivers one event to a snapshot of listeners.

Dispatch behavior:
1. Take the listener snapshot (registration order)
2. Call each listener synchronously on the calling thread
3. Catch listener exceptions per listener
4. Log failure
5. Continue to next listener

Listener failure must NOT:
- Break delivery to the remaining listeners
- Propagate to the publisher

There is no timeout and no cancellation. A publisher that needs
asynchrony runs publish() on its own worker.
"""

import logging
from typing import Any, Iterable

from core.events.registry import Listener, listener_name

logger = logging.getLogger("pos.events")


def _event_label(event: Any) -> str:
    kind = getattr(event, "kind", None)
    if kind is None:
        return type(event).__name__
    return getattr(kind, "value", str(kind))


def dispatch(event: Any, listeners: Iterable[Listener]) -> dict:
    """
    Deliver an event to every listener in the given snapshot.

    Returns:
        dict with dispatch results:
        {
            'event_kind': str,
            'listeners_notified': int,
            'listeners_failed': int,
            'failures': list[dict]
        }

    This function NEVER raises exceptions from listeners.
    """
    event_kind = _event_label(event)
    listeners = tuple(listeners)

    result = {
        "event_kind": event_kind,
        "listeners_notified": 0,
        "listeners_failed": 0,
        "failures": [],
    }

    if not listeners:
        logger.debug(f"No listeners for event '{event_kind}'")
        return result

    logger.debug(f"Notifying {len(listeners)} listeners of event: {event_kind}")

    for listener in listeners:
        name = listener_name(listener)
        try:
            listener(event)
            result["listeners_notified"] += 1
        except Exception as exc:
            result["listeners_failed"] += 1
            result["failures"].append({
                "listener": name,
                "error": str(exc),
                "error_type": type(exc).__name__,
            })
            logger.error(
                f"Listener failed: {name} for {event_kind}: {exc}",
                exc_info=True,
            )
            # Continue to next listener; never break dispatch

    return result
