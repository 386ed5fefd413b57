from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from filesource.connectors.file_source import FileSourceTask
from filesource.errors import (
    ConfigurationError,
    SourceReadError,
    StoreLookupError,
    TaskStateError,
)
from filesource.store.memory import InMemoryPositionStore


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class BrokenStore:
    def offset(self, partition: Mapping[str, str]) -> Mapping[str, Any] | None:
        raise ConnectionError("offset topic unavailable")


class StaticStore:
    def __init__(self, value: Any) -> None:
        self.value = value

    def offset(self, partition: Mapping[str, str]) -> Any:
        return self.value


def _task(store, sleep: RecordingSleep | None = None) -> FileSourceTask:
    return FileSourceTask(store, poll_wait_seconds=0.25, sleep=sleep or RecordingSleep())


def _commit(store: InMemoryPositionStore, batch) -> None:
    if batch:
        store.commit(batch[-1].source_partition, batch[-1].source_offset)


def test_fresh_task_emits_every_line_with_positions(tmp_path: Path) -> None:
    source = tmp_path / "kafka.txt"
    source.write_text("a\nb\nc\n", encoding="utf-8")
    store = InMemoryPositionStore()

    task = _task(store)
    task.start({"file": str(source), "topic": "test"})
    batch = task.poll()

    assert [(r.position, r.payload) for r in batch] == [(1, "a"), (2, "b"), (3, "c")]
    assert all(r.topic == "test" for r in batch)
    assert all(r.source_partition == {"filename": str(source)} for r in batch)
    assert task.position == 3


def test_restart_resumes_after_stored_position(tmp_path: Path) -> None:
    source = tmp_path / "kafka.txt"
    source.write_text("a\nb\nc\n", encoding="utf-8")
    store = InMemoryPositionStore()
    props = {"file": str(source), "topic": "test"}

    first = _task(store)
    first.start(props)
    _commit(store, first.poll())
    first.stop()
    assert store.offset({"filename": str(source)}) == {"position": 3}

    with source.open("a", encoding="utf-8") as fh:
        fh.write("d\n")

    second = _task(store)
    second.start(props)
    batch = second.poll()
    assert [(r.position, r.payload) for r in batch] == [(4, "d")]


def test_unchanged_file_yields_empty_batch(tmp_path: Path) -> None:
    source = tmp_path / "kafka.txt"
    source.write_text("a\nb\n", encoding="utf-8")
    task = _task(InMemoryPositionStore())
    task.start({"file": str(source)})

    assert len(task.poll()) == 2
    assert task.poll() == []
    assert task.position == 2


def test_appended_lines_continue_numbering(tmp_path: Path) -> None:
    source = tmp_path / "kafka.txt"
    source.write_text("1\n2\n3\n", encoding="utf-8")
    task = _task(InMemoryPositionStore())
    task.start({"file": str(source)})
    task.poll()

    with source.open("a", encoding="utf-8") as fh:
        fh.write("4\n5\n")

    batch = task.poll()
    assert [r.position for r in batch] == [4, 5]
    assert [r.payload for r in batch] == ["4", "5"]


def test_restart_delivers_same_records_as_continuous_run(tmp_path: Path) -> None:
    source = tmp_path / "kafka.txt"
    source.write_text("a\nb\n", encoding="utf-8")
    props = {"file": str(source)}

    continuous = _task(InMemoryPositionStore())
    continuous.start(props)
    expected = continuous.poll()

    store = InMemoryPositionStore()
    delivered = []
    for _ in range(2):
        task = _task(store)
        task.start(props)
        batch = task.poll()
        _commit(store, batch)
        delivered.extend(batch)
        task.stop()
    with source.open("a", encoding="utf-8") as fh:
        fh.write("c\n")
    expected.extend(continuous.poll())
    task = _task(store)
    task.start(props)
    delivered.extend(task.poll())

    assert [(r.position, r.payload) for r in delivered] == [
        (r.position, r.payload) for r in expected
    ]


def test_position_never_decreases_across_polls(tmp_path: Path) -> None:
    source = tmp_path / "kafka.txt"
    source.write_text("a\n", encoding="utf-8")
    task = _task(InMemoryPositionStore())
    task.start({"file": str(source)})

    seen = []
    for extra in ["b\n", "", "c\nd\n", ""]:
        with source.open("a", encoding="utf-8") as fh:
            fh.write(extra)
        task.poll()
        seen.append(task.position)

    assert seen == sorted(seen)
    assert seen[-1] == 4


def test_poll_waits_before_reading(tmp_path: Path) -> None:
    source = tmp_path / "kafka.txt"
    source.write_text("a\n", encoding="utf-8")
    sleep = RecordingSleep()
    task = _task(InMemoryPositionStore(), sleep)
    task.start({"file": str(source)})

    task.poll()
    task.poll()

    assert sleep.calls == [0.25, 0.25]


@pytest.mark.parametrize("stored", [None, {}, {"position": None}])
def test_missing_position_starts_from_zero(tmp_path: Path, stored: Any) -> None:
    source = tmp_path / "kafka.txt"
    source.write_text("a\n", encoding="utf-8")
    task = _task(StaticStore(stored))
    task.start({"file": str(source)})

    assert task.position == 0
    assert task.status == "ready"


@pytest.mark.parametrize("stored", [{"position": -1}, {"position": "3"}, {"position": True}, [3]])
def test_malformed_stored_position_fails_start(stored: Any) -> None:
    task = _task(StaticStore(stored))

    with pytest.raises(StoreLookupError):
        task.start({})
    assert task.status == "failed"


def test_store_failure_is_fatal_to_start() -> None:
    task = _task(BrokenStore())

    with pytest.raises(StoreLookupError) as excinfo:
        task.start({})
    assert isinstance(excinfo.value.__cause__, ConnectionError)

    with pytest.raises(TaskStateError):
        task.poll()


def test_invalid_config_is_fatal_to_start() -> None:
    task = _task(InMemoryPositionStore())

    with pytest.raises(ConfigurationError):
        task.start({"topic": 5})
    assert task.status == "failed"


def test_poll_before_start_is_rejected() -> None:
    with pytest.raises(TaskStateError):
        _task(InMemoryPositionStore()).poll()


def test_missing_file_fails_poll_and_task(tmp_path: Path) -> None:
    task = _task(InMemoryPositionStore())
    task.start({"file": str(tmp_path / "missing.txt")})

    with pytest.raises(SourceReadError) as excinfo:
        task.poll()
    assert isinstance(excinfo.value.__cause__, OSError)
    assert task.status == "failed"
    assert task.position == 0

    with pytest.raises(TaskStateError):
        task.poll()


def test_stop_is_idempotent_and_blocks_polling(tmp_path: Path) -> None:
    source = tmp_path / "kafka.txt"
    source.write_text("a\n", encoding="utf-8")
    task = _task(InMemoryPositionStore())
    task.start({"file": str(source)})

    task.stop()
    task.stop()

    assert task.status == "stopped"
    with pytest.raises(TaskStateError):
        task.poll()
    with pytest.raises(TaskStateError):
        task.start({"file": str(source)})
