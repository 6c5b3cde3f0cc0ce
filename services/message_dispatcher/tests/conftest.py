"""Test fixtures for message_dispatcher tests."""

import uuid
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import MagicMock

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from notify_shared.db import Base
from notify_shared.db.models import Integration, Notification, Subscriber
from notify_shared.db.repositories import (
    IntegrationRepository,
    NotificationRepository,
    SubscriberRepository,
)
from notify_shared.enums import ChannelType

from message_dispatcher.audit import ExecutionAuditRecorder
from message_dispatcher.orchestrator import SendMessage
from message_dispatcher.providers import ProviderFactory
from message_dispatcher.providers.base import ProviderHandler
from message_dispatcher.schemas import SendMessageCommand, SendOutcome
from message_dispatcher.stores import DatabaseExecutionDetailSink, SqlMessageStore


@pytest.fixture(scope="session")
def db_engine() -> Engine:
    """Create a single in-memory SQLite engine for the test session."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def db_session(db_engine: Engine) -> Generator[Session, None, None]:
    """Transactional session that rolls back after each test.

    Commits issued by the stores stay inside the outer connection
    transaction, so nothing leaks between tests.
    """
    connection = db_engine.connect()
    transaction = connection.begin()
    session = Session(bind=connection)

    yield session

    session.close()
    if transaction.is_active:
        transaction.rollback()
    connection.close()


@pytest.fixture()
def session_factory(db_session: Session) -> MagicMock:
    """Session factory whose context manager yields the test session."""
    factory = MagicMock(spec=sessionmaker)
    ctx = MagicMock()
    ctx.__enter__ = MagicMock(return_value=db_session)
    ctx.__exit__ = MagicMock(return_value=False)
    factory.return_value = ctx
    return factory


@pytest.fixture()
def environment_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def organization_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture()
def subscriber(
    db_session: Session, environment_id: uuid.UUID, organization_id: uuid.UUID
) -> Subscriber:
    subscriber = Subscriber(
        environment_id=environment_id,
        organization_id=organization_id,
        external_id="user-42",
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        phone="+15550001111",
        channel_addresses={
            "chat": "https://hooks.slack.com/services/T000/B000/XXXX",
            "push": "device-token-1",
        },
    )
    db_session.add(subscriber)
    db_session.flush()
    return subscriber


@pytest.fixture()
def notification(
    db_session: Session,
    environment_id: uuid.UUID,
    organization_id: uuid.UUID,
    subscriber: Subscriber,
) -> Notification:
    notification = Notification(
        environment_id=environment_id,
        organization_id=organization_id,
        subscriber_id=subscriber.id,
        template_id=uuid.uuid4(),
        transaction_id="txn-1",
    )
    db_session.add(notification)
    db_session.flush()
    return notification


@pytest.fixture()
def integration(
    db_session: Session, environment_id: uuid.UUID, organization_id: uuid.UUID
) -> Integration:
    """Active basic-webhooks integration on the webhook channel."""
    integration = Integration(
        environment_id=environment_id,
        organization_id=organization_id,
        provider_id="basic-webhooks",
        channel=ChannelType.WEBHOOK,
        credentials={"api_key": "key", "secret_key": "secret", "from": "Acme"},
    )
    db_session.add(integration)
    db_session.flush()
    return integration


@pytest.fixture()
def mock_handler() -> MagicMock:
    handler = MagicMock(spec=ProviderHandler)
    handler.send.return_value = SendOutcome(id="abc123", date="2026-10-18T10:00:00Z")
    return handler


@pytest.fixture()
def mock_provider_factory(mock_handler: MagicMock) -> MagicMock:
    factory = MagicMock(spec=ProviderFactory)
    factory.get_handler.return_value = mock_handler
    return factory


@pytest.fixture()
def recorder(db_session: Session) -> ExecutionAuditRecorder:
    return ExecutionAuditRecorder([DatabaseExecutionDetailSink(db_session)])


@pytest.fixture()
def make_orchestrator(
    db_session: Session,
    recorder: ExecutionAuditRecorder,
    mock_provider_factory: MagicMock,
) -> Callable[..., SendMessage]:
    def _make(**overrides: Any) -> SendMessage:
        kwargs: dict[str, Any] = {
            "subscribers": SubscriberRepository(db_session),
            "notifications": NotificationRepository(db_session),
            "integrations": IntegrationRepository(db_session),
            "messages": SqlMessageStore(db_session),
            "recorder": recorder,
            "provider_factory": mock_provider_factory,
            "provider_timeout": 5.0,
        }
        kwargs.update(overrides)
        return SendMessage(**kwargs)

    return _make


@pytest.fixture()
def orchestrator(make_orchestrator: Callable[..., SendMessage]) -> SendMessage:
    return make_orchestrator()


@pytest.fixture()
def make_command(
    environment_id: uuid.UUID,
    organization_id: uuid.UUID,
    subscriber: Subscriber,
    notification: Notification,
) -> Callable[..., SendMessageCommand]:
    """Build a webhook-channel command; keyword arguments override fields."""

    def _make(**overrides: Any) -> SendMessageCommand:
        data: dict[str, Any] = {
            "subscriber_id": subscriber.id,
            "environment_id": environment_id,
            "organization_id": organization_id,
            "notification_id": notification.id,
            "transaction_id": "txn-1",
            "job_id": uuid.uuid4(),
            "channel": ChannelType.WEBHOOK,
            "step": {
                "id": "step-1",
                "template": {
                    "id": "tpl-1",
                    "content": "Hello {{ subscriber.first_name }}, your code is {{ code }}",
                },
            },
            "payload": {"code": "1234"},
        }
        data.update(overrides)
        return SendMessageCommand.model_validate(data)

    return _make
