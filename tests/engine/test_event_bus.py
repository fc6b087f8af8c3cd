"""
In-process event bus
"""
from datetime import datetime

from reservation_engine.services.event_bus import Event, EventBus, event_bus


def make_event(event_type="test", **data):
    return Event(event_type=event_type, timestamp=datetime.now(), data=data, source="tests")


def test_event_creation():
    event = make_event(key="value")
    assert event.event_type == "test"
    assert event.data == {"key": "value"}
    assert len(event.event_id) > 0


def test_event_ids_are_unique():
    assert make_event().event_id != make_event().event_id


def test_event_bus_singleton():
    assert EventBus() is EventBus()
    assert event_bus is EventBus()


def test_subscribe_and_publish():
    received = []
    event_bus.subscribe("test", received.append)
    event = make_event()
    event_bus.publish(event)
    assert received == [event]


def test_subscribe_twice_delivers_once():
    received = []
    event_bus.subscribe("test", received.append)
    event_bus.subscribe("test", received.append)
    event_bus.publish(make_event())
    assert len(received) == 1


def test_unsubscribe():
    received = []

    def handler(event):
        received.append(event)

    event_bus.subscribe("test", handler)
    event_bus.unsubscribe("test", handler)
    event_bus.publish(make_event())
    assert received == []


def test_handler_error_does_not_stop_others():
    received = []

    def broken(event):
        raise RuntimeError("boom")

    event_bus.subscribe("test", broken)
    event_bus.subscribe("test", received.append)
    event_bus.publish(make_event())
    assert len(received) == 1


def test_other_event_types_not_delivered():
    received = []
    event_bus.subscribe("other", received.append)
    event_bus.publish(make_event())
    assert received == []


def test_history_newest_first_and_filtered():
    for event_type, n in (("a", 1), ("b", 2), ("a", 3)):
        event_bus.publish(make_event(event_type, n=n))

    assert [e.data["n"] for e in event_bus.get_history()] == [3, 2, 1]
    assert [e.data["n"] for e in event_bus.get_history("a")] == [3, 1]
    assert len(event_bus.get_history(limit=1)) == 1


def test_clear_history():
    event_bus.publish(make_event())
    event_bus.clear_history()
    assert event_bus.get_history() == []
