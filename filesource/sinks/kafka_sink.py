"""Kafka delivery for emitted records, built on kafka-python."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from kafka import KafkaProducer
from kafka.errors import KafkaError

from filesource.config import SinkConfig
from filesource.connectors.base import EmittedRecord
from filesource.constants import FILENAME_FIELD, POSITION_FIELD
from filesource.errors import DeliveryError
from filesource.utils.logging import debug_event, get_logger

logger = get_logger("filesource.sinks.kafka")

DEFAULT_DELIVERY_TIMEOUT_SECONDS = 30.0


def _encode(value: str | None) -> bytes | None:
    return value.encode("utf-8") if value is not None else None


def _coerce_acks(raw: str) -> int | str:
    normalized = str(raw).strip().lower()
    if normalized.lstrip("-").isdigit():
        return int(normalized)
    return normalized


class KafkaSink:
    """Send each record to its topic; ``flush`` waits for broker acks.

    The record key is the source path and the value is the raw line, both
    UTF-8. Partition and offset fields travel as headers.
    """

    def __init__(
        self,
        config: SinkConfig,
        *,
        producer_factory: Callable[..., Any] = KafkaProducer,
        delivery_timeout_seconds: float = DEFAULT_DELIVERY_TIMEOUT_SECONDS,
    ) -> None:
        servers = [item.strip() for item in config.bootstrap_servers.split(",") if item.strip()]
        self.delivery_timeout_seconds = delivery_timeout_seconds
        self._pending: list[Any] = []
        try:
            self._producer = producer_factory(
                bootstrap_servers=servers,
                client_id=config.client_id,
                acks=_coerce_acks(config.acks),
                key_serializer=_encode,
                value_serializer=_encode,
            )
        except KafkaError as exc:
            raise DeliveryError(f"Failed to connect to Kafka at {servers}: {exc}") from exc

    def send(self, records: list[EmittedRecord]) -> None:
        for record in records:
            headers = [
                (FILENAME_FIELD, record.source.path.encode("utf-8")),
                (POSITION_FIELD, str(record.position).encode("ascii")),
            ]
            try:
                future = self._producer.send(
                    record.topic,
                    key=record.source.path,
                    value=record.payload,
                    headers=headers,
                )
            except KafkaError as exc:
                raise DeliveryError(f"Failed to send record to {record.topic}: {exc}") from exc
            self._pending.append(future)

    def flush(self) -> None:
        pending, self._pending = self._pending, []
        try:
            self._producer.flush(timeout=self.delivery_timeout_seconds)
            for future in pending:
                future.get(timeout=self.delivery_timeout_seconds)
        except KafkaError as exc:
            raise DeliveryError(f"Kafka did not acknowledge batch: {exc}") from exc
        debug_event(logger, "batch_acknowledged", records=len(pending))

    def close(self) -> None:
        self._producer.close(timeout=self.delivery_timeout_seconds)
