"""Celery task for message dispatch."""

import logging
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from notify_shared.db.repositories import (
    IntegrationRepository,
    NotificationRepository,
    SubscriberRepository,
)

from message_dispatcher.audit import ExecutionAuditRecorder
from message_dispatcher.celery import app
from message_dispatcher.config import DispatchConfig
from message_dispatcher.orchestrator import SendMessage
from message_dispatcher.ports import ExecutionDetailSink
from message_dispatcher.providers import ProviderFactory
from message_dispatcher.publisher import KafkaExecutionDetailPublisher
from message_dispatcher.schemas import SendMessageCommand
from message_dispatcher.stores import DatabaseExecutionDetailSink, SqlMessageStore

logger = logging.getLogger(__name__)


@app.task(name="message_dispatcher.tasks.send_message")
def send_message(command: dict[str, Any]) -> dict[str, Any]:
    """Dispatch one message and return ``{status, detail, message_id}``.

    There is no automatic retry here: a failed delivery returns normally
    with ``status == "failed"`` for the job layer to act on. Only a broken
    command (missing subscriber, template or notification) or an
    infrastructure error raises.
    """
    session_factory: sessionmaker[Session] = app.conf._session_factory
    provider_factory: ProviderFactory = app.conf._provider_factory
    publisher: KafkaExecutionDetailPublisher | None = app.conf._detail_publisher
    dispatch_config: DispatchConfig = app.conf._dispatch_config

    parsed = SendMessageCommand.model_validate(command)

    with session_factory() as session:
        sinks: list[ExecutionDetailSink] = [DatabaseExecutionDetailSink(session)]
        if publisher is not None:
            sinks.append(publisher)

        orchestrator = SendMessage(
            subscribers=SubscriberRepository(session),
            notifications=NotificationRepository(session),
            integrations=IntegrationRepository(session),
            messages=SqlMessageStore(session),
            recorder=ExecutionAuditRecorder(sinks),
            provider_factory=provider_factory,
            provider_timeout=dispatch_config.provider_timeout_seconds,
            store_content=dispatch_config.store_content,
        )
        result = orchestrator.execute(parsed)

    summary = result.summary()
    logger.info(
        "Dispatch finished",
        extra={"job_id": str(parsed.job_id), **summary},
    )
    return summary
