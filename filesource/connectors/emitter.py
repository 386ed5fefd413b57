from __future__ import annotations

from filesource.connectors.base import EmittedRecord, TailState


class RecordEmitter:
    def emit(self, state: TailState, line: str) -> EmittedRecord:
        # The offset stored with a record is the count of lines delivered,
        # i.e. the next line to read after a restart.
        state.position += 1
        return EmittedRecord(
            source=state.source,
            position=state.position,
            topic=state.topic,
            payload=line,
        )

    def emit_batch(self, state: TailState, lines: list[str]) -> list[EmittedRecord]:
        return [self.emit(state, line) for line in lines]
