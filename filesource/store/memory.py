from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from filesource.store.base import check_not_regressing, partition_key


@dataclass(slots=True)
class InMemoryPositionStore:
    offsets: dict[str, dict[str, Any]] = field(default_factory=dict)

    def offset(self, partition: Mapping[str, str]) -> Mapping[str, Any] | None:
        stored = self.offsets.get(partition_key(partition))
        return dict(stored) if stored is not None else None

    def commit(self, partition: Mapping[str, str], offset: Mapping[str, Any]) -> None:
        key = partition_key(partition)
        check_not_regressing(partition, self.offsets.get(key), offset)
        self.offsets[key] = dict(offset)

    def close(self) -> None:
        return
