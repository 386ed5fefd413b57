"""Typed API objects used across internal service boundaries."""

from filesource.api_objects.types import TaskRunSummary, WorkerRunSummary

__all__ = ["TaskRunSummary", "WorkerRunSummary"]
