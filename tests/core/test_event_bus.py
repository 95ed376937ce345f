"""
Tests for core.events — listener registry, dispatcher, EventBus.
"""

import logging
import threading
from dataclasses import dataclass

import pytest

from core.errors import ErrorKind, PosError
from core.events import EventBus, ListenerRegistry, dispatch, listener_name


@dataclass(frozen=True)
class _Ping:
    kind: str = "PING"


class _Recorder:
    def __init__(self):
        self.seen = []

    def on_event(self, event):
        self.seen.append(event)


# ══════════════════════════════════════════════════════════════
# REGISTRY
# ══════════════════════════════════════════════════════════════

class TestListenerRegistry:
    def test_register_is_idempotent(self):
        registry = ListenerRegistry()
        handler = lambda e: None  # noqa: E731
        assert registry.register(handler) is True
        assert registry.register(handler) is False
        assert len(registry) == 1

    def test_bound_methods_count_as_same_listener(self):
        registry = ListenerRegistry()
        rec = _Recorder()
        registry.register(rec.on_event)
        assert registry.register(rec.on_event) is False
        assert registry.contains(rec.on_event)

    def test_distinct_owners_are_distinct_listeners(self):
        registry = ListenerRegistry()
        registry.register(_Recorder().on_event)
        registry.register(_Recorder().on_event)
        assert len(registry) == 2

    def test_non_callable_rejected(self):
        with pytest.raises(PosError) as exc:
            ListenerRegistry().register("not callable")
        assert exc.value.kind == ErrorKind.INVALID_ARGUMENT
        assert exc.value.code == "LISTENER_NOT_CALLABLE"

    def test_unregister(self):
        registry = ListenerRegistry()
        rec = _Recorder()
        registry.register(rec.on_event)
        assert registry.unregister(rec.on_event) is True
        assert registry.unregister(rec.on_event) is False
        assert len(registry) == 0

    def test_snapshot_unaffected_by_later_writes(self):
        registry = ListenerRegistry()
        first = lambda e: None  # noqa: E731
        registry.register(first)
        snap = registry.snapshot()
        registry.register(lambda e: None)
        assert snap == (first,)
        assert len(registry) == 2


class TestListenerName:
    def test_explicit_attribute_wins(self):
        class Named:
            listener_name = "Till Display"

            def __call__(self, event):
                pass

        assert listener_name(Named()) == "Till Display"

    def test_falls_back_to_qualname(self):
        def on_stock(event):
            pass

        assert listener_name(on_stock).endswith("on_stock")


# ══════════════════════════════════════════════════════════════
# DISPATCH
# ══════════════════════════════════════════════════════════════

class TestDispatch:
    def test_reports_counts(self):
        result = dispatch(_Ping(), [lambda e: None, lambda e: None])
        assert result["event_kind"] == "PING"
        assert result["listeners_notified"] == 2
        assert result["listeners_failed"] == 0
        assert result["failures"] == []

    def test_no_listeners(self):
        result = dispatch(_Ping(), [])
        assert result["listeners_notified"] == 0

    def test_failure_recorded_and_logged(self, caplog):
        def broken(event):
            raise RuntimeError("printer offline")

        with caplog.at_level(logging.ERROR, logger="pos.events"):
            result = dispatch(_Ping(), [broken])

        assert result["listeners_failed"] == 1
        failure = result["failures"][0]
        assert failure["error"] == "printer offline"
        assert failure["error_type"] == "RuntimeError"
        assert failure["listener"].endswith("broken")
        assert "printer offline" in caplog.text

    def test_event_without_kind_uses_type_name(self):
        assert dispatch(object(), [])["event_kind"] == "object"


# ══════════════════════════════════════════════════════════════
# EVENT BUS
# ══════════════════════════════════════════════════════════════

class TestEventBus:
    def test_delivers_in_registration_order(self):
        bus = EventBus()
        order = []
        bus.register(lambda e: order.append("first"))
        bus.register(lambda e: order.append("second"))
        bus.register(lambda e: order.append("third"))
        bus.publish(_Ping())
        assert order == ["first", "second", "third"]

    def test_double_registration_delivers_once(self):
        bus = EventBus()
        rec = _Recorder()
        bus.register(rec.on_event)
        bus.register(rec.on_event)
        bus.publish(_Ping())
        assert len(rec.seen) == 1
        assert bus.listener_count == 1

    def test_unregister_stops_delivery(self):
        bus = EventBus()
        rec = _Recorder()
        bus.register(rec.on_event)
        bus.publish(_Ping())
        bus.unregister(rec.on_event)
        bus.publish(_Ping())
        assert len(rec.seen) == 1
        assert not bus.is_registered(rec.on_event)

    def test_failing_listener_does_not_block_later_ones(self):
        bus = EventBus()
        rec = _Recorder()

        def broken(event):
            raise ValueError("boom")

        bus.register(broken)
        bus.register(rec.on_event)
        result = bus.publish(_Ping())

        assert len(rec.seen) == 1
        assert result["listeners_notified"] == 1
        assert result["listeners_failed"] == 1

    def test_none_event_ignored(self):
        bus = EventBus()
        rec = _Recorder()
        bus.register(rec.on_event)
        result = bus.publish(None)
        assert rec.seen == []
        assert result["listeners_notified"] == 0

    def test_listeners_snapshot(self):
        bus = EventBus()
        rec = _Recorder()
        bus.register(rec.on_event)
        assert bus.listeners == (rec.on_event,)

    def test_listener_registering_during_publish_sees_next_event(self):
        bus = EventBus()
        late = _Recorder()

        def registrar(event):
            bus.register(late.on_event)

        bus.register(registrar)
        bus.publish(_Ping())
        assert late.seen == []
        bus.publish(_Ping())
        assert len(late.seen) == 1

    def test_concurrent_registration_while_publishing(self):
        bus = EventBus()
        recorders = [_Recorder() for _ in range(50)]
        stop = threading.Event()

        def publisher():
            while not stop.is_set():
                bus.publish(_Ping())

        thread = threading.Thread(target=publisher)
        thread.start()
        try:
            for rec in recorders:
                bus.register(rec.on_event)
        finally:
            stop.set()
            thread.join()

        assert bus.listener_count == 50
        bus.publish(_Ping())
        assert all(len(rec.seen) >= 1 for rec in recorders)
