from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from filesource.constants import FILENAME_FIELD, POSITION_FIELD


@dataclass(frozen=True, slots=True)
class SourceIdentity:
    path: str

    @property
    def partition(self) -> dict[str, str]:
        return {FILENAME_FIELD: self.path}


@dataclass(slots=True)
class TailState:
    """In-memory cache of the stored position plus the resolved topic."""

    source: SourceIdentity
    topic: str
    position: int = 0


@dataclass(frozen=True, slots=True)
class EmittedRecord:
    source: SourceIdentity
    position: int
    topic: str
    payload: str

    @property
    def source_partition(self) -> dict[str, str]:
        return self.source.partition

    @property
    def source_offset(self) -> dict[str, int]:
        return {POSITION_FIELD: self.position}

    def to_dict(self) -> dict[str, Any]:
        return {
            "topic": self.topic,
            "partition": self.source_partition,
            "offset": self.source_offset,
            "payload": self.payload,
        }


class OffsetReader(Protocol):
    def offset(self, partition: Mapping[str, str]) -> Mapping[str, Any] | None: ...
