from __future__ import annotations

from dataclasses import dataclass, field

from filesource.connectors.base import EmittedRecord


@dataclass(slots=True)
class MemorySink:
    delivered: list[EmittedRecord] = field(default_factory=list)
    pending: list[EmittedRecord] = field(default_factory=list)
    closed: bool = False

    def send(self, records: list[EmittedRecord]) -> None:
        self.pending.extend(records)

    def flush(self) -> None:
        self.delivered.extend(self.pending)
        self.pending.clear()

    def close(self) -> None:
        self.closed = True

    def by_topic(self, topic: str) -> list[EmittedRecord]:
        return [record for record in self.delivered if record.topic == topic]
