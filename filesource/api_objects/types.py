"""Type-safe summaries of a worker run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from filesource.constants import TASK_FAILED


@dataclass(slots=True)
class TaskRunSummary:
    """Counters for one task over a worker run."""

    task_id: str
    file: str
    topic: str
    status: str
    polls: int = 0
    records_delivered: int = 0
    start_position: int | None = None
    committed_position: int | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class WorkerRunSummary:
    started_at: datetime
    ended_at: datetime
    once: bool
    task_summaries: list[TaskRunSummary] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        return max(0.0, (self.ended_at - self.started_at).total_seconds())

    @property
    def total_polls(self) -> int:
        return sum(item.polls for item in self.task_summaries)

    @property
    def total_records_delivered(self) -> int:
        return sum(item.records_delivered for item in self.task_summaries)

    @property
    def failed_tasks(self) -> int:
        return sum(1 for item in self.task_summaries if item.status == TASK_FAILED)

    @property
    def ok(self) -> bool:
        return self.failed_tasks == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "once": self.once,
            "duration_seconds": self.duration_seconds,
            "totals": {
                "polls": self.total_polls,
                "records_delivered": self.total_records_delivered,
                "failed_tasks": self.failed_tasks,
            },
            "tasks": [item.to_dict() for item in self.task_summaries],
        }
