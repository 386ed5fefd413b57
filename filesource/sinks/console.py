"""Sink that prints each record as one JSON line, for local runs."""

from __future__ import annotations

import json
import sys
from typing import TextIO

from filesource.connectors.base import EmittedRecord


class ConsoleSink:
    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout

    def send(self, records: list[EmittedRecord]) -> None:
        for record in records:
            self.stream.write(json.dumps(record.to_dict(), ensure_ascii=False) + "\n")

    def flush(self) -> None:
        self.stream.flush()

    def close(self) -> None:
        self.flush()
