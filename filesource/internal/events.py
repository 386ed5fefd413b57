"""Bounded record of task/worker lifecycle events."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from filesource.models import utc_now


@dataclass(slots=True)
class InternalEvent:
    topic: str
    ts: datetime
    payload: dict[str, Any] = field(default_factory=dict)


class EventBus:
    def __init__(self, *, max_events: int = 1000) -> None:
        self._events: list[InternalEvent] = []
        self.max_events = max_events

    def emit(self, topic: str, **payload: Any) -> InternalEvent:
        event = InternalEvent(topic=topic, ts=utc_now(), payload=payload)
        self._events.append(event)
        if len(self._events) > self.max_events:
            del self._events[: len(self._events) - self.max_events]
        return event

    def recent(self, limit: int = 100) -> list[InternalEvent]:
        if limit <= 0:
            return []
        return self._events[-limit:]
