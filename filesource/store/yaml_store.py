"""Durable position store backed by a YAML file.

Layout::

    offsets:
      '{"filename":"/tmp/kafka.txt"}':
        partition: {filename: /tmp/kafka.txt}
        offset: {position: 42}

Every commit rewrites the file through a temp file and ``os.replace`` so a
crash mid-write leaves the previous contents intact.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from filesource.errors import StoreLookupError
from filesource.store.base import check_not_regressing, partition_key
from filesource.utils.logging import debug_event, get_logger

logger = get_logger("filesource.store.yaml")


class YamlPositionStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._entries: dict[str, dict[str, Any]] | None = None

    def offset(self, partition: Mapping[str, str]) -> Mapping[str, Any] | None:
        entry = self._load().get(partition_key(partition))
        if entry is None:
            return None
        offset = entry.get("offset")
        if offset is not None and not isinstance(offset, dict):
            raise StoreLookupError(
                f"Malformed offset entry for {dict(partition)} in {self.path}: {offset!r}"
            )
        return dict(offset) if offset is not None else {}

    def commit(self, partition: Mapping[str, str], offset: Mapping[str, Any]) -> None:
        entries = self._load()
        key = partition_key(partition)
        current = entries.get(key)
        check_not_regressing(partition, current.get("offset") if current else None, offset)
        updated = {**entries, key: {"partition": dict(partition), "offset": dict(offset)}}
        self._write(updated)
        self._entries = updated
        debug_event(logger, "offset_committed", path=str(self.path), key=key, offset=dict(offset))

    def close(self) -> None:
        self._entries = None

    def _load(self) -> dict[str, dict[str, Any]]:
        if self._entries is not None:
            return self._entries
        if not self.path.exists():
            self._entries = {}
            return self._entries
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise StoreLookupError(f"Failed to read offsets from {self.path}: {exc}") from exc

        offsets = raw.get("offsets", {}) if isinstance(raw, dict) else None
        if not isinstance(offsets, dict) or not all(
            isinstance(entry, dict) for entry in offsets.values()
        ):
            raise StoreLookupError(f"Malformed offsets file {self.path}")
        self._entries = {str(key): dict(entry) for key, entry in offsets.items()}
        return self._entries

    def _write(self, entries: dict[str, dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                yaml.safe_dump({"offsets": entries}, fh, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
