from __future__ import annotations

import argparse
import signal
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from filesource.api_objects.types import TaskRunSummary, WorkerRunSummary
from filesource.config import AppConfig, dump_default_config, load_config
from filesource.connectors.file_source import FileSourceConnector, FileSourceTask
from filesource.constants import (
    DEFAULT_FILE,
    DEFAULT_TOPIC,
    OPTION_FILE,
    OPTION_TOPIC,
    TASK_FAILED,
    TASK_NOT_STARTED,
    TASK_READY,
)
from filesource.errors import ConnectorError
from filesource.internal.events import EventBus, InternalEvent
from filesource.models import utc_now
from filesource.sinks.base import RecordSink
from filesource.sinks.factory import build_sink
from filesource.store.base import PositionStore
from filesource.store.factory import build_position_store
from filesource.utils.display.terminal import (
    print_internal_events,
    print_run_summary,
    print_run_summary_json,
)
from filesource.utils.logging import debug_event, get_logger, setup_logging


@dataclass(slots=True)
class RunningTask:
    task_id: str
    task: FileSourceTask
    props: dict[str, Any]
    summary: TaskRunSummary


class Worker:
    """Host loop: start tasks, poll them, deliver batches, commit positions.

    A position is committed only after the sink has flushed the batch that
    carries it. Any failure ends the affected task; recovery is a restart of
    the worker, which resumes from the last committed position.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        store: PositionStore | None = None,
        sink: RecordSink | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.connector = FileSourceConnector()
        self.store = store if store is not None else build_position_store(config.offset_store)
        self.sink = sink if sink is not None else build_sink(config.sink)
        self._sleep = sleep
        self.tasks: list[RunningTask] = []
        self.event_bus = EventBus()
        self.running = True
        self.logger = get_logger("filesource.worker")

    def stop(self, *_args: object) -> None:
        self.running = False
        self.event_bus.emit("run.stop_requested")

    def run(self, once: bool = False) -> WorkerRunSummary:
        started = utc_now()
        name = self.config.connector.name
        self.event_bus.emit("run.started", once=once, connector=name)
        self.logger.info("Starting worker (connector=%s, once=%s)", name, once)

        cycles = 0
        max_polls = self.config.worker.max_polls
        try:
            self._start_tasks()
            while self.running:
                live = [item for item in self.tasks if item.task.status == TASK_READY]
                if not live:
                    self.logger.warning("No running tasks left; stopping worker")
                    break

                for item in live:
                    self._poll_task(item)
                cycles += 1

                if once:
                    break
                if max_polls is not None and cycles >= max_polls:
                    break
        finally:
            self._shutdown()

        summary = WorkerRunSummary(
            started_at=started,
            ended_at=utc_now(),
            once=once,
            task_summaries=[item.summary for item in self.tasks],
        )
        self.event_bus.emit("run.completed", summary=summary.to_dict())
        self.logger.info(
            "Worker finished: polls=%s delivered=%s failed_tasks=%s",
            summary.total_polls,
            summary.total_records_delivered,
            summary.failed_tasks,
        )
        return summary

    def recent_events(self, limit: int = 100) -> list[InternalEvent]:
        return self.event_bus.recent(limit)

    def _start_tasks(self) -> None:
        connector_cfg = self.config.connector
        try:
            self.connector.start(connector_cfg.options)
            task_configs = self.connector.task_configs(connector_cfg.max_tasks)
        except ConnectorError as exc:
            failed = self._register(f"{connector_cfg.name}-0", dict(connector_cfg.options))
            self._fail(failed, exc)
            return

        for index, props in enumerate(task_configs):
            item = self._register(f"{connector_cfg.name}-{index}", props)
            try:
                item.task.start(props)
            except ConnectorError as exc:
                self._fail(item, exc)
                continue
            item.summary.status = item.task.status
            item.summary.start_position = item.task.position
            self.event_bus.emit(
                "task.started",
                task_id=item.task_id,
                file=item.summary.file,
                position=item.task.position,
            )

    def _register(self, task_id: str, props: dict[str, Any]) -> RunningTask:
        task = FileSourceTask(
            self.store,
            poll_wait_seconds=self.config.worker.poll_wait_seconds,
            sleep=self._sleep,
        )
        summary = TaskRunSummary(
            task_id=task_id,
            file=str(props.get(OPTION_FILE, DEFAULT_FILE)),
            topic=str(props.get(OPTION_TOPIC, DEFAULT_TOPIC)),
            status=TASK_NOT_STARTED,
        )
        item = RunningTask(task_id=task_id, task=task, props=props, summary=summary)
        self.tasks.append(item)
        return item

    def _poll_task(self, item: RunningTask) -> None:
        try:
            batch = item.task.poll()
            item.summary.polls += 1
            if batch:
                self.sink.send(batch)
                self.sink.flush()
                last = batch[-1]
                self.store.commit(last.source_partition, last.source_offset)
                item.summary.records_delivered += len(batch)
                item.summary.committed_position = last.position
                self.logger.info(
                    "Delivered %s records from %s (position=%s)",
                    len(batch),
                    last.source.path,
                    last.position,
                )
            self.event_bus.emit(
                "task.poll.completed",
                task_id=item.task_id,
                records=len(batch),
                position=item.task.position,
            )
            debug_event(
                self.logger,
                "task_poll_completed",
                task_id=item.task_id,
                records=len(batch),
                position=item.task.position,
            )
        except Exception as exc:
            self._fail(item, exc)

    def _fail(self, item: RunningTask, exc: Exception) -> None:
        item.summary.status = TASK_FAILED
        item.summary.error_message = str(exc)
        self.event_bus.emit("task.failed", task_id=item.task_id, error=str(exc))
        self.logger.exception("Task failure for task=%s", item.task_id, exc_info=exc)
        item.task.stop()

    def _shutdown(self) -> None:
        for item in self.tasks:
            item.task.stop()
            if item.summary.status != TASK_FAILED:
                item.summary.status = item.task.status
        try:
            self.connector.stop()
            self.sink.close()
        finally:
            self.store.close()


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Tail a file into a Kafka topic")
    parser.add_argument("--config", default="filesource.yaml", help="Path to YAML config")
    parser.add_argument("--init-config", action="store_true", help="Write default config and exit")
    parser.add_argument("--once", action="store_true", help="Run one poll cycle and exit")
    parser.add_argument("--log-level", help="Override log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--json-summary", action="store_true", help="Print run summary as JSON")
    parser.add_argument("--events-limit", type=int, default=0, help="Print recent internal events")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    if args.init_config:
        dump_default_config(args.config)
        print(f"Wrote default config to {args.config}")
        return 0

    try:
        config = load_config(args.config)
        setup_logging(level=args.log_level or config.logging.level)
        worker = Worker(config)
    except ConnectorError as exc:
        get_logger("filesource.worker").error("Worker failed to start: %s", exc)
        return 1

    signal.signal(signal.SIGINT, worker.stop)
    signal.signal(signal.SIGTERM, worker.stop)

    summary = worker.run(once=args.once)

    if args.json_summary:
        print_run_summary_json(summary)
    else:
        print_run_summary(summary)
    if args.events_limit > 0:
        print_internal_events(worker.recent_events(args.events_limit))

    return 0 if summary.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
