"""Data access repositories with constructor-injected sessions.

Repositories only flush; transaction boundaries belong to the caller.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from notify_shared.db.models import (
    ExecutionDetail,
    Integration,
    Message,
    Notification,
    Subscriber,
)


class SubscriberRepository:
    """Data access for the subscribers table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, subscriber_id: UUID, environment_id: UUID) -> Subscriber | None:
        """Fetch a subscriber scoped to its environment."""
        stmt = select(Subscriber).where(
            Subscriber.id == subscriber_id,
            Subscriber.environment_id == environment_id,
        )
        return self._session.scalars(stmt).first()


class NotificationRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, notification_id: UUID) -> Notification | None:
        return self._session.get(Notification, notification_id)


class IntegrationRepository:
    """Data access for provider integrations."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_active(
        self, organization_id: UUID, environment_id: UUID, channel: str
    ) -> Integration | None:
        """Return the single active integration for a channel.

        When several are active the most recently created one wins.
        """
        stmt = (
            select(Integration)
            .where(
                Integration.organization_id == organization_id,
                Integration.environment_id == environment_id,
                Integration.channel == channel,
                Integration.active.is_(True),
            )
            .order_by(Integration.created_at.desc())
            .limit(1)
        )
        return self._session.scalars(stmt).first()


class MessageRepository:
    """Data access for the messages table."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, message: Message) -> Message:
        """Add a new message and flush to populate defaults."""
        self._session.add(message)
        self._session.flush()
        return message

    def get_by_id(self, message_id: UUID) -> Message | None:
        return self._session.get(Message, message_id)

    def get_by_job_id(self, environment_id: UUID, job_id: UUID) -> Message | None:
        """Look up the message created for a job (idempotency key)."""
        stmt = select(Message).where(
            Message.environment_id == environment_id,
            Message.job_id == job_id,
        )
        return self._session.scalars(stmt).first()

    def update(
        self, environment_id: UUID, message_id: UUID, **fields: Any
    ) -> Message | None:
        """Set arbitrary columns on a message.

        Returns the updated message, or None if it does not exist in the
        given environment.
        """
        message = self.get_by_id(message_id)
        if message is None or message.environment_id != environment_id:
            return None

        for name, value in fields.items():
            if not hasattr(Message, name):
                raise AttributeError(f"Message has no column {name!r}")
            setattr(message, name, value)

        self._session.flush()
        return message

    def update_status(
        self,
        environment_id: UUID,
        message_id: UUID,
        status: str,
        *,
        error_id: str | None = None,
        error_text: str | None = None,
    ) -> Message | None:
        """Update a message status with an optional error code and reason."""
        return self.update(
            environment_id,
            message_id,
            status=status,
            error_id=error_id,
            error_text=error_text,
        )


class ExecutionDetailRepository:
    """Append-only access to execution details."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, detail: ExecutionDetail) -> ExecutionDetail:
        self._session.add(detail)
        self._session.flush()
        return detail

    def list_by_job_id(self, job_id: UUID) -> list[ExecutionDetail]:
        """Return a job's details in insertion order."""
        stmt = (
            select(ExecutionDetail)
            .where(ExecutionDetail.job_id == job_id)
            .order_by(ExecutionDetail.id.asc())
        )
        return list(self._session.scalars(stmt).all())

    def list_by_message_id(self, message_id: UUID) -> list[ExecutionDetail]:
        stmt = (
            select(ExecutionDetail)
            .where(ExecutionDetail.message_id == message_id)
            .order_by(ExecutionDetail.id.asc())
        )
        return list(self._session.scalars(stmt).all())
