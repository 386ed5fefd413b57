from __future__ import annotations

from filesource.internal.events import EventBus


def test_event_bus_keeps_only_latest_events() -> None:
    bus = EventBus(max_events=3)
    for position in range(1, 6):
        bus.emit("task.poll.completed", position=position)

    recent = bus.recent(10)
    assert [event.payload["position"] for event in recent] == [3, 4, 5]
    assert bus.recent(1)[0].topic == "task.poll.completed"
    assert bus.recent(0) == []
