"""Tests for SQLAlchemy ORM models."""

import uuid

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notify_shared.db.models import ExecutionDetail, Integration, Message, Subscriber
from notify_shared.enums import ChannelType, MessageStatus


def _make_message(**overrides: object) -> Message:
    defaults: dict = {
        "notification_id": uuid.uuid4(),
        "environment_id": uuid.uuid4(),
        "organization_id": uuid.uuid4(),
        "subscriber_id": uuid.uuid4(),
        "job_id": uuid.uuid4(),
        "transaction_id": "txn-1",
        "channel": ChannelType.SMS,
    }
    defaults.update(overrides)
    return Message(**defaults)


class TestMessageModel:
    def test_create_with_defaults(self, db_session: Session) -> None:
        message = _make_message()
        db_session.add(message)
        db_session.flush()

        assert message.id is not None
        assert message.status == MessageStatus.PENDING
        assert message.payload == {}
        assert message.overrides == {}
        assert message.identifier is None
        assert message.content is None

    def test_job_id_is_unique_per_environment(self, db_session: Session) -> None:
        job_id = uuid.uuid4()
        environment_id = uuid.uuid4()
        db_session.add(_make_message(job_id=job_id, environment_id=environment_id))
        db_session.flush()

        db_session.add(_make_message(job_id=job_id, environment_id=environment_id))
        with pytest.raises(IntegrityError):
            db_session.flush()

    def test_same_job_id_in_other_environment(self, db_session: Session) -> None:
        job_id = uuid.uuid4()
        first = _make_message(job_id=job_id)
        second = _make_message(job_id=job_id)
        db_session.add_all([first, second])
        db_session.flush()

        assert first.id != second.id


class TestSubscriberModel:
    def test_template_context(self, db_session: Session) -> None:
        subscriber = Subscriber(
            environment_id=uuid.uuid4(),
            organization_id=uuid.uuid4(),
            external_id="user-42",
            first_name="Ada",
            phone="+15550001111",
        )
        db_session.add(subscriber)
        db_session.flush()

        context = subscriber.to_template_context()
        assert context["subscriber_id"] == "user-42"
        assert context["first_name"] == "Ada"
        assert context["phone"] == "+15550001111"
        assert context["email"] is None
        assert context["id"] == str(subscriber.id)
        assert subscriber.channel_addresses == {}


class TestIntegrationModel:
    def test_defaults_to_active(self, db_session: Session) -> None:
        integration = Integration(
            environment_id=uuid.uuid4(),
            organization_id=uuid.uuid4(),
            provider_id="basic-webhooks",
            channel=ChannelType.WEBHOOK,
            credentials={"from": "Acme"},
        )
        db_session.add(integration)
        db_session.flush()

        assert integration.active is True
        assert integration.credentials == {"from": "Acme"}


class TestExecutionDetailModel:
    def test_ids_increase_with_insertion(self, db_session: Session) -> None:
        common = {
            "job_id": uuid.uuid4(),
            "notification_id": uuid.uuid4(),
            "environment_id": uuid.uuid4(),
            "organization_id": uuid.uuid4(),
            "subscriber_id": uuid.uuid4(),
            "transaction_id": "txn-1",
            "channel": ChannelType.SMS,
            "source": "internal",
        }
        first = ExecutionDetail(detail="message_created", status="pending", **common)
        second = ExecutionDetail(detail="message_sent", status="success", **common)
        db_session.add(first)
        db_session.flush()
        db_session.add(second)
        db_session.flush()

        assert first.id < second.id
        assert first.is_test is False
        assert first.is_retry is False
