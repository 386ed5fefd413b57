from __future__ import annotations

from typing import Protocol

from filesource.connectors.base import EmittedRecord


class RecordSink(Protocol):
    def send(self, records: list[EmittedRecord]) -> None: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...
