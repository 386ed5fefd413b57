"""Package-wide constants and defaults."""

from __future__ import annotations

APP_NAME = "filesource"
VERSION = "0.1.0"

ENV_LOG_LEVEL = "FILESOURCE_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "INFO"

# Connector options and their defaults.
OPTION_FILE = "file"
OPTION_TOPIC = "topic"
DEFAULT_FILE = "/tmp/kafka.txt"
DEFAULT_TOPIC = "test"

# Partition and offset field names shared with the offset store.
FILENAME_FIELD = "filename"
POSITION_FIELD = "position"

DEFAULT_POLL_WAIT_SECONDS = 1.0
DEFAULT_OFFSETS_PATH = ".filesource_offsets.yaml"
DEFAULT_BOOTSTRAP_SERVERS = "localhost:9092"

TASK_NOT_STARTED = "not-started"
TASK_READY = "ready"
TASK_POLLING = "polling"
TASK_STOPPED = "stopped"
TASK_FAILED = "failed"
