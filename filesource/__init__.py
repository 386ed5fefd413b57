"""Tail one append-only file into a topic, one record per line."""

from filesource.api_objects import TaskRunSummary, WorkerRunSummary
from filesource.config import AppConfig, FileSourceConfig, load_config, resolve_config
from filesource.connectors import (
    EmittedRecord,
    FileSourceConnector,
    FileSourceTask,
    SourceIdentity,
)
from filesource.constants import APP_NAME, VERSION

__all__ = [
    "APP_NAME",
    "AppConfig",
    "EmittedRecord",
    "FileSourceConfig",
    "FileSourceConnector",
    "FileSourceTask",
    "SourceIdentity",
    "TaskRunSummary",
    "WorkerRunSummary",
    "__version__",
    "load_config",
    "resolve_config",
]
__version__ = VERSION
