from __future__ import annotations

import io
import json
from typing import Any

import pytest
from kafka.errors import KafkaTimeoutError

from filesource.config import SinkConfig
from filesource.connectors.base import EmittedRecord, SourceIdentity
from filesource.errors import ConfigurationError, DeliveryError
from filesource.sinks.console import ConsoleSink
from filesource.sinks.factory import build_sink
from filesource.sinks.kafka_sink import KafkaSink
from filesource.sinks.memory import MemorySink


class FakeFuture:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    def get(self, timeout: float | None = None) -> None:
        if self.error is not None:
            raise self.error


class FakeProducer:
    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.sent: list[dict[str, Any]] = []
        self.flushed = 0
        self.closed = False
        self.fail_with: Exception | None = None

    def send(self, topic: str, *, key: Any, value: Any, headers: list) -> FakeFuture:
        self.sent.append(
            {
                "topic": topic,
                "key": self.kwargs["key_serializer"](key),
                "value": self.kwargs["value_serializer"](value),
                "headers": headers,
            }
        )
        return FakeFuture(self.fail_with)

    def flush(self, timeout: float | None = None) -> None:
        self.flushed += 1

    def close(self, timeout: float | None = None) -> None:
        self.closed = True


def _records() -> list[EmittedRecord]:
    source = SourceIdentity(path="/tmp/kafka.txt")
    return [
        EmittedRecord(source=source, position=1, topic="test", payload="a"),
        EmittedRecord(source=source, position=2, topic="test", payload="ü"),
    ]


def _kafka_sink(**config: Any) -> tuple[KafkaSink, FakeProducer]:
    holder: dict[str, FakeProducer] = {}

    def factory(**kwargs: Any) -> FakeProducer:
        holder["producer"] = FakeProducer(**kwargs)
        return holder["producer"]

    sink = KafkaSink(SinkConfig(**config), producer_factory=factory)
    return sink, holder["producer"]


def test_kafka_sink_sends_key_value_and_headers() -> None:
    sink, producer = _kafka_sink(bootstrap_servers="b1:9092, b2:9092", acks="1")

    sink.send(_records())
    sink.flush()
    sink.close()

    assert producer.kwargs["bootstrap_servers"] == ["b1:9092", "b2:9092"]
    assert producer.kwargs["acks"] == 1
    assert [msg["value"] for msg in producer.sent] == [b"a", "ü".encode("utf-8")]
    assert producer.sent[0]["key"] == b"/tmp/kafka.txt"
    assert producer.sent[1]["headers"] == [
        ("filename", b"/tmp/kafka.txt"),
        ("position", b"2"),
    ]
    assert producer.flushed == 1
    assert producer.closed


def test_kafka_sink_unacknowledged_send_raises_delivery_error() -> None:
    sink, producer = _kafka_sink()
    assert producer.kwargs["acks"] == "all"
    producer.fail_with = KafkaTimeoutError("no ack")

    sink.send(_records())
    with pytest.raises(DeliveryError):
        sink.flush()


def test_console_sink_writes_json_lines() -> None:
    stream = io.StringIO()
    sink = ConsoleSink(stream)

    sink.send(_records())
    sink.flush()

    rows = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert rows[0] == {
        "topic": "test",
        "partition": {"filename": "/tmp/kafka.txt"},
        "offset": {"position": 1},
        "payload": "a",
    }
    assert rows[1]["payload"] == "ü"


def test_memory_sink_delivers_on_flush() -> None:
    sink = MemorySink()
    sink.send(_records())
    assert sink.delivered == []

    sink.flush()
    assert [r.payload for r in sink.by_topic("test")] == ["a", "ü"]


def test_build_sink_rejects_unknown_backend() -> None:
    assert isinstance(build_sink(SinkConfig(backend="memory")), MemorySink)
    assert isinstance(build_sink(SinkConfig(backend="console")), ConsoleSink)
    with pytest.raises(ConfigurationError):
        build_sink(SinkConfig(backend="pulsar"))
