"""
POS Event Bus — Listener Registry
====================================
Controls which listeners hear published events.

Rules:
- Listeners are plain callables: listener(event) -> None
- Registration is idempotent by identity (a second register is a no-op)
- Bound methods count as the same listener when owner and function match
- Copy-on-write: writers swap in a new tuple under a lock,
  readers take the current tuple without locking
- In-memory only (no DB, no files)
"""

from __future__ import annotations

import inspect
import logging
from threading import Lock
from typing import Any, Callable, Tuple

from core.errors import ErrorKind, PosError

logger = logging.getLogger("pos.events")

Listener = Callable[[Any], None]


def listener_name(listener: Listener) -> str:
    """Human-readable name for logs and dispatch reports."""
    name = getattr(listener, "listener_name", None)
    if isinstance(name, str) and name:
        return name
    qualname = getattr(listener, "__qualname__", None)
    if qualname:
        return qualname
    return type(listener).__name__


def _same_listener(a: Listener, b: Listener) -> bool:
    if a is b:
        return True
    if inspect.ismethod(a) and inspect.ismethod(b):
        return a.__self__ is b.__self__ and a.__func__ is b.__func__
    return False


class ListenerRegistry:
    """
    Copy-on-write list of listeners, in registration order.

    snapshot() never blocks on writers and never observes a
    half-applied register/unregister.
    """

    def __init__(self):
        self._listeners: Tuple[Listener, ...] = ()
        self._lock = Lock()

    def register(self, listener: Listener) -> bool:
        """
        Add a listener. Returns False if it was already registered.

        Raises:
            PosError(INVALID_ARGUMENT): listener is not callable
        """
        if not callable(listener):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Listener must be callable, got {type(listener).__name__}.",
                code="LISTENER_NOT_CALLABLE",
            )

        with self._lock:
            current = self._listeners
            if any(_same_listener(existing, listener) for existing in current):
                return False
            self._listeners = current + (listener,)

        logger.info(f"Listener registered: {listener_name(listener)}")
        return True

    def unregister(self, listener: Listener) -> bool:
        """Remove a listener. Returns False if it was not registered."""
        with self._lock:
            current = self._listeners
            remaining = tuple(
                existing for existing in current
                if not _same_listener(existing, listener)
            )
            if len(remaining) == len(current):
                return False
            self._listeners = remaining

        logger.info(f"Listener removed: {listener_name(listener)}")
        return True

    def snapshot(self) -> Tuple[Listener, ...]:
        """Current listeners. The tuple is immutable; no lock needed."""
        return self._listeners

    def contains(self, listener: Listener) -> bool:
        return any(_same_listener(existing, listener) for existing in self._listeners)

    def __len__(self) -> int:
        return len(self._listeners)
