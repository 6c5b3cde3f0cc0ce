"""Kafka mirror of execution details for downstream consumers."""

import logging

from confluent_kafka import Producer

from notify_shared.config import KafkaConfig

from message_dispatcher.schemas import ExecutionDetailEntry

logger = logging.getLogger(__name__)


class KafkaExecutionDetailPublisher:
    """Publishes execution details to the execution-details topic.

    Keyed by job id so a job's timeline stays ordered within a partition.
    """

    def __init__(self, config: KafkaConfig) -> None:
        self._topic = config.execution_details_topic
        self._producer = Producer({
            "bootstrap.servers": config.bootstrap_servers,
            "acks": "all",
            "enable.idempotence": True,
            "linger.ms": 5,
        })

    def record(self, entry: ExecutionDetailEntry) -> None:
        self._producer.produce(
            topic=self._topic,
            key=str(entry.job_id).encode("utf-8"),
            value=entry.model_dump_json().encode("utf-8"),
            on_delivery=self._on_delivery,
        )
        self._producer.poll(0)

    def flush(self, timeout: float = 10.0) -> int:
        """Flush queued details. Returns the number still unflushed."""
        return self._producer.flush(timeout=timeout)

    def close(self) -> None:
        remaining = self.flush()
        if remaining > 0:
            logger.warning(
                "Publisher closed with unflushed execution details",
                extra={"remaining": remaining},
            )

    @staticmethod
    def _on_delivery(err: object, msg: object) -> None:
        if err is not None:
            logger.error("Kafka delivery of execution detail failed: %s", err)
