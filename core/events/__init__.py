"""
POS Event Bus — Public API
============================
Inventory-state changes are published here and heard by listeners.
"""

from core.events.bus import EventBus
from core.events.dispatcher import dispatch
from core.events.registry import Listener, ListenerRegistry, listener_name

__all__ = [
    "EventBus",
    "Listener",
    "ListenerRegistry",
    "dispatch",
    "listener_name",
]
