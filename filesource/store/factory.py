from __future__ import annotations

from pathlib import Path

from filesource.config import OffsetStoreConfig
from filesource.errors import ConfigurationError
from filesource.store.base import PositionStore
from filesource.store.memory import InMemoryPositionStore
from filesource.store.yaml_store import YamlPositionStore


def build_position_store(config: OffsetStoreConfig) -> PositionStore:
    backend = config.backend.lower()

    if backend == "yaml":
        return YamlPositionStore(Path(config.path).expanduser())
    if backend == "memory":
        return InMemoryPositionStore()

    raise ConfigurationError(f"Unsupported offset store backend: {config.backend}")
