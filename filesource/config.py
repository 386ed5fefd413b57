from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from filesource.constants import (
    DEFAULT_BOOTSTRAP_SERVERS,
    DEFAULT_FILE,
    DEFAULT_LOG_LEVEL,
    DEFAULT_OFFSETS_PATH,
    DEFAULT_POLL_WAIT_SECONDS,
    DEFAULT_TOPIC,
    OPTION_FILE,
    OPTION_TOPIC,
)
from filesource.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class ConfigOption:
    name: str
    default: str
    importance: str
    doc: str


CONFIG_OPTIONS: tuple[ConfigOption, ...] = (
    ConfigOption(
        name=OPTION_FILE,
        default=DEFAULT_FILE,
        importance="high",
        doc="Path of the file to tail",
    ),
    ConfigOption(
        name=OPTION_TOPIC,
        default=DEFAULT_TOPIC,
        importance="high",
        doc="Topic that receives one record per line",
    ),
)


@dataclass(frozen=True, slots=True)
class FileSourceConfig:
    path: str = DEFAULT_FILE
    topic: str = DEFAULT_TOPIC


def resolve_config(props: Mapping[str, Any] | None) -> FileSourceConfig:
    """Resolve connector options against their defaults.

    Unknown keys are ignored. A provided value must be a non-empty string.
    """
    props = props or {}
    values: dict[str, str] = {}
    for option in CONFIG_OPTIONS:
        raw = props.get(option.name, option.default)
        if not isinstance(raw, str):
            raise ConfigurationError(
                f"Invalid value {raw!r} for option '{option.name}': expected a string"
            )
        if not raw.strip():
            raise ConfigurationError(f"Option '{option.name}' must not be empty")
        values[option.name] = raw
    return FileSourceConfig(path=values[OPTION_FILE], topic=values[OPTION_TOPIC])


@dataclass(slots=True)
class ConnectorConfig:
    name: str = "single-file-source"
    max_tasks: int = 1
    options: dict[str, str] = field(
        default_factory=lambda: {OPTION_FILE: DEFAULT_FILE, OPTION_TOPIC: DEFAULT_TOPIC}
    )


@dataclass(slots=True)
class WorkerConfig:
    poll_wait_seconds: float = DEFAULT_POLL_WAIT_SECONDS
    max_polls: int | None = None


@dataclass(slots=True)
class OffsetStoreConfig:
    backend: str = "yaml"
    path: str = DEFAULT_OFFSETS_PATH


@dataclass(slots=True)
class SinkConfig:
    backend: str = "kafka"
    bootstrap_servers: str = DEFAULT_BOOTSTRAP_SERVERS
    client_id: str = "filesource"
    acks: str = "all"


@dataclass(slots=True)
class LoggingConfig:
    level: str = DEFAULT_LOG_LEVEL


@dataclass(slots=True)
class AppConfig:
    connector: ConnectorConfig = field(default_factory=ConnectorConfig)
    worker: WorkerConfig = field(default_factory=WorkerConfig)
    offset_store: OffsetStoreConfig = field(default_factory=OffsetStoreConfig)
    sink: SinkConfig = field(default_factory=SinkConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @staticmethod
    def default() -> AppConfig:
        return AppConfig()


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Config section '{name}' must be a mapping, got {value!r}")
    return value


def _as_number(kind: type, raw: dict[str, Any], dotted: str, default: Any) -> Any:
    value = raw.get(dotted.rsplit(".", 1)[-1], default)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid value {value!r} for '{dotted}'")
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid value {value!r} for '{dotted}': {exc}") from exc


def load_config(path: str | Path | None) -> AppConfig:
    if path is None:
        return AppConfig.default()

    config_path = Path(path)
    if not config_path.exists():
        return AppConfig.default()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    connector_raw = _section(raw, "connector")
    worker_raw = _section(raw, "worker")
    store_raw = _section(raw, "offset_store")
    sink_raw = _section(raw, "sink")
    logging_raw = _section(raw, "logging")

    defaults = AppConfig.default()

    return AppConfig(
        connector=ConnectorConfig(
            name=str(connector_raw.get("name", defaults.connector.name)),
            max_tasks=_as_number(int, connector_raw, "connector.max_tasks", 1),
            options=dict(_section(connector_raw, "options") or defaults.connector.options),
        ),
        worker=WorkerConfig(
            poll_wait_seconds=_as_number(
                float, worker_raw, "worker.poll_wait_seconds", DEFAULT_POLL_WAIT_SECONDS
            ),
            max_polls=_as_number(int, worker_raw, "worker.max_polls", None),
        ),
        offset_store=OffsetStoreConfig(
            backend=str(store_raw.get("backend", "yaml")),
            path=str(store_raw.get("path", DEFAULT_OFFSETS_PATH)),
        ),
        sink=SinkConfig(
            backend=str(sink_raw.get("backend", "kafka")),
            bootstrap_servers=str(sink_raw.get("bootstrap_servers", DEFAULT_BOOTSTRAP_SERVERS)),
            client_id=str(sink_raw.get("client_id", "filesource")),
            acks=str(sink_raw.get("acks", "all")),
        ),
        logging=LoggingConfig(level=str(logging_raw.get("level", DEFAULT_LOG_LEVEL))),
    )


def dump_default_config(path: str | Path) -> None:
    cfg = AppConfig.default()
    payload: dict[str, Any] = {
        "connector": {
            "name": cfg.connector.name,
            "max_tasks": cfg.connector.max_tasks,
            "options": dict(cfg.connector.options),
        },
        "worker": {
            "poll_wait_seconds": cfg.worker.poll_wait_seconds,
            "max_polls": cfg.worker.max_polls,
        },
        "offset_store": {"backend": cfg.offset_store.backend, "path": cfg.offset_store.path},
        "sink": {
            "backend": cfg.sink.backend,
            "bootstrap_servers": cfg.sink.bootstrap_servers,
            "client_id": cfg.sink.client_id,
            "acks": cfg.sink.acks,
        },
        "logging": {"level": cfg.logging.level},
    }
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(payload, fh, sort_keys=False)
