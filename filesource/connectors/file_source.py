"""Single-file source connector and its task.

The task remembers how many lines of the file it has handed to the host.
On start it reads the last committed count from the position store, so a
restarted task neither re-delivers nor skips lines. Committing the count
after delivery is the host's job; the task never writes to the store.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import Any

from filesource.config import CONFIG_OPTIONS, ConfigOption, resolve_config
from filesource.connectors.base import (
    EmittedRecord,
    OffsetReader,
    SourceIdentity,
    TailState,
)
from filesource.connectors.emitter import RecordEmitter
from filesource.connectors.tailer import FileTailer
from filesource.constants import (
    DEFAULT_POLL_WAIT_SECONDS,
    POSITION_FIELD,
    TASK_FAILED,
    TASK_NOT_STARTED,
    TASK_POLLING,
    TASK_READY,
    TASK_STOPPED,
    VERSION,
)
from filesource.errors import (
    ConfigurationError,
    ConnectorError,
    SourceReadError,
    StoreLookupError,
    TaskStateError,
)
from filesource.utils.logging import debug_event, get_logger


class FileSourceTask:
    def __init__(
        self,
        position_store: OffsetReader,
        *,
        poll_wait_seconds: float = DEFAULT_POLL_WAIT_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        tailer: FileTailer | None = None,
        emitter: RecordEmitter | None = None,
    ) -> None:
        self.position_store = position_store
        self.poll_wait_seconds = poll_wait_seconds
        self._sleep = sleep
        self.tailer = tailer or FileTailer()
        self.emitter = emitter or RecordEmitter()
        self.state: TailState | None = None
        self._status = TASK_NOT_STARTED
        self.logger = get_logger("filesource.task")

    def version(self) -> str:
        return VERSION

    @property
    def status(self) -> str:
        return self._status

    @property
    def source(self) -> SourceIdentity | None:
        return self.state.source if self.state is not None else None

    @property
    def position(self) -> int | None:
        return self.state.position if self.state is not None else None

    def start(self, props: Mapping[str, Any]) -> None:
        if self._status != TASK_NOT_STARTED:
            raise TaskStateError(f"start() called while task is {self._status}")
        try:
            config = resolve_config(props)
            source = SourceIdentity(path=config.path)
            position = _lookup_position(self.position_store, source)
        except ConnectorError:
            self._status = TASK_FAILED
            raise

        self.state = TailState(source=source, topic=config.topic, position=position)
        self._status = TASK_READY
        self.logger.info(
            "Started file source task (file=%s, topic=%s, position=%s)",
            source.path,
            config.topic,
            position,
        )

    def poll(self) -> list[EmittedRecord]:
        if self._status != TASK_READY or self.state is None:
            raise TaskStateError(f"poll() called while task is {self._status}")

        self._status = TASK_POLLING
        state = self.state
        try:
            self._sleep(self.poll_wait_seconds)
            lines = self.tailer.read_from(state.source.path, state.position)
        except SourceReadError as exc:
            self._status = TASK_FAILED
            self.logger.error("Poll failed for file=%s: %s", state.source.path, exc)
            raise

        batch = self.emitter.emit_batch(state, lines)
        self._status = TASK_READY
        debug_event(
            self.logger,
            "task_polled",
            partition=state.source.partition,
            topic=state.topic,
            poll_wait=self.poll_wait_seconds,
            records=len(batch),
            position=state.position,
        )
        return batch

    def stop(self) -> None:
        if self._status != TASK_STOPPED:
            self.logger.info("Stopping file source task (position=%s)", self.position)
        self._status = TASK_STOPPED


def _lookup_position(store: OffsetReader, source: SourceIdentity) -> int:
    try:
        offset = store.offset(source.partition)
    except Exception as exc:
        raise StoreLookupError(
            f"Position lookup failed for {source.partition}: {exc}"
        ) from exc

    if offset is None:
        return 0
    if not isinstance(offset, Mapping):
        raise StoreLookupError(f"Malformed stored offset for {source.partition}: {offset!r}")

    value = offset.get(POSITION_FIELD)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise StoreLookupError(
            f"Malformed stored position for {source.partition}: {value!r}"
        )
    return value


class FileSourceConnector:
    """Validates options and hands out task configs for one file."""

    def __init__(self) -> None:
        self._props: dict[str, Any] | None = None
        self.logger = get_logger("filesource.connector")

    def version(self) -> str:
        return VERSION

    def task_class(self) -> type[FileSourceTask]:
        return FileSourceTask

    def config_options(self) -> tuple[ConfigOption, ...]:
        return CONFIG_OPTIONS

    def start(self, props: Mapping[str, Any]) -> None:
        resolve_config(props)
        self._props = dict(props)

    def task_configs(self, max_tasks: int) -> list[dict[str, Any]]:
        if self._props is None:
            raise TaskStateError("task_configs() called before start()")
        if max_tasks < 1:
            raise ConfigurationError(f"max_tasks must be at least 1, got {max_tasks}")
        if max_tasks > 1:
            # Every extra task would tail the same file from the same position.
            self.logger.warning(
                "Requested %s tasks but a single file supports only one; starting 1",
                max_tasks,
            )
        return [dict(self._props)]

    def stop(self) -> None:
        self._props = None
