"""Single-file source connector, its task and the pieces it is built from."""

from filesource.connectors.base import EmittedRecord, SourceIdentity, TailState
from filesource.connectors.emitter import RecordEmitter
from filesource.connectors.file_source import FileSourceConnector, FileSourceTask
from filesource.connectors.tailer import FileTailer

__all__ = [
    "EmittedRecord",
    "FileSourceConnector",
    "FileSourceTask",
    "FileTailer",
    "RecordEmitter",
    "SourceIdentity",
    "TailState",
]
