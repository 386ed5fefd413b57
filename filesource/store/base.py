from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Protocol

from filesource.constants import POSITION_FIELD
from filesource.errors import StoreLookupError


class PositionStore(Protocol):
    def offset(self, partition: Mapping[str, str]) -> Mapping[str, Any] | None: ...

    def commit(self, partition: Mapping[str, str], offset: Mapping[str, Any]) -> None: ...

    def close(self) -> None: ...


def partition_key(partition: Mapping[str, str]) -> str:
    return json.dumps(dict(partition), sort_keys=True, separators=(",", ":"))


def check_not_regressing(
    partition: Mapping[str, str],
    stored: Mapping[str, Any] | None,
    offset: Mapping[str, Any],
) -> None:
    if stored is None:
        return
    before = stored.get(POSITION_FIELD)
    after = offset.get(POSITION_FIELD)
    if isinstance(before, int) and isinstance(after, int) and after < before:
        raise StoreLookupError(
            f"Refusing to move position for {dict(partition)} back from {before} to {after}"
        )
