from __future__ import annotations

from filesource.config import SinkConfig
from filesource.errors import ConfigurationError
from filesource.sinks.base import RecordSink
from filesource.sinks.console import ConsoleSink
from filesource.sinks.memory import MemorySink


def build_sink(config: SinkConfig) -> RecordSink:
    backend = config.backend.lower()

    if backend == "kafka":
        from filesource.sinks.kafka_sink import KafkaSink

        return KafkaSink(config)
    if backend == "console":
        return ConsoleSink()
    if backend == "memory":
        return MemorySink()

    raise ConfigurationError(f"Unsupported sink backend: {config.backend}")
