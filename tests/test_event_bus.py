"""
Tests for the event bus.
"""
from forge_tycoon.events import (
    CoalLow,
    CoalUpdated,
    EventBus,
    Notification,
    NotificationLevel,
)


class TestSubscribe:
    """Tests for subscribing and publishing."""

    def test_handlers_run_in_registration_order(self, bus):
        """Handlers see the event in the order they subscribed."""
        calls = []
        bus.subscribe(CoalLow, lambda e: calls.append(("first", e.level)))
        bus.subscribe(CoalLow, lambda e: calls.append(("second", e.level)))

        assert bus.publish(CoalLow(level=19.5))
        assert calls == [("first", 19.5), ("second", 19.5)]

    def test_publish_without_listeners(self, bus):
        """Publishing to nobody reports False."""
        assert not bus.publish(CoalLow(level=10))

    def test_dispatch_is_by_event_class(self, bus):
        """A handler only receives its own event type."""
        received = []
        bus.subscribe(CoalUpdated, received.append)

        bus.publish(CoalLow(level=10))
        assert received == []

        bus.publish(CoalUpdated(level=10))
        assert len(received) == 1

    def test_payload_is_delivered_as_is(self, bus):
        """Handlers get the same payload object that was published."""
        received = []
        bus.subscribe(CoalLow, received.append)
        event = CoalLow(level=5)

        bus.publish(event)
        assert received[0] is event

    def test_unsubscribe_callable(self, bus):
        """The callable returned by subscribe removes the handler."""
        received = []
        unsubscribe = bus.subscribe(CoalLow, received.append)
        unsubscribe()

        assert not bus.publish(CoalLow(level=1))
        assert received == []
        assert bus.listener_count(CoalLow) == 0

    def test_unsubscribe_unknown_handler(self, bus):
        """Removing a handler that was never added is a no-op."""
        assert not bus.unsubscribe(CoalLow, print)

    def test_once(self, bus):
        """A once-handler fires a single time."""
        received = []
        bus.once(CoalLow, received.append)

        bus.publish(CoalLow(level=1))
        bus.publish(CoalLow(level=2))
        assert [e.level for e in received] == [1]


class TestHandlerFailures:
    """Tests for isolation of failing handlers."""

    def test_raising_handler_does_not_stop_others(self, bus, caplog):
        """A handler exception is logged and later handlers still run."""
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(CoalLow, broken)
        bus.subscribe(CoalLow, received.append)

        assert bus.publish(CoalLow(level=3))
        assert len(received) == 1
        assert "coal:low" in caplog.text

    def test_handler_may_unsubscribe_during_publish(self, bus):
        """Handlers can remove themselves while the bus is dispatching."""
        received = []
        unsubscribe = None

        def first(event):
            unsubscribe()

        unsubscribe = bus.subscribe(CoalLow, first)
        bus.subscribe(CoalLow, received.append)

        bus.publish(CoalLow(level=3))
        assert len(received) == 1
        assert bus.listener_count(CoalLow) == 1


class TestHousekeeping:
    """Tests for notify, reset and introspection."""

    def test_notify_publishes_notification(self, bus):
        """notify() wraps the message in a Notification event."""
        received = []
        bus.subscribe(Notification, received.append)

        bus.notify(NotificationLevel.WARNING, "Careful")
        assert received[0].level == NotificationLevel.WARNING
        assert received[0].message == "Careful"

    def test_event_names(self, bus):
        """event_names lists the tags of subscribed events."""
        bus.subscribe(CoalLow, print)
        bus.subscribe(Notification, print)
        assert sorted(bus.event_names()) == ["coal:low", "notification"]

    def test_unsubscribe_all_and_reset(self):
        """Subscriptions can be dropped per type or all at once."""
        bus = EventBus()
        bus.subscribe(CoalLow, print)
        bus.subscribe(CoalUpdated, print)

        bus.unsubscribe_all(CoalLow)
        assert bus.listener_count(CoalLow) == 0
        assert bus.listener_count(CoalUpdated) == 1

        bus.reset()
        assert bus.event_names() == []
