"""Collaborator interfaces the orchestrator depends on.

The SQLAlchemy repositories in ``notify_shared.db`` and the stores in
``message_dispatcher.stores`` satisfy these structurally.
"""

from typing import Any, Protocol
from uuid import UUID

from notify_shared.db.models import Integration, Message, Notification, Subscriber

from message_dispatcher.schemas import ExecutionDetailEntry, MessageDraft


class SubscriberLookup(Protocol):
    def get(self, subscriber_id: UUID, environment_id: UUID) -> Subscriber | None: ...


class NotificationLookup(Protocol):
    def get_by_id(self, notification_id: UUID) -> Notification | None: ...


class IntegrationLookup(Protocol):
    def find_active(
        self, organization_id: UUID, environment_id: UUID, channel: str
    ) -> Integration | None: ...


class MessageStore(Protocol):
    def create(self, draft: MessageDraft) -> Message: ...

    def get_by_job(self, environment_id: UUID, job_id: UUID) -> Message | None: ...

    def update(self, environment_id: UUID, message_id: UUID, **fields: Any) -> None: ...

    def update_status(
        self,
        environment_id: UUID,
        message_id: UUID,
        status: str,
        *,
        error_id: str | None = None,
        error_text: str | None = None,
    ) -> None: ...


class ExecutionDetailSink(Protocol):
    def record(self, entry: ExecutionDetailEntry) -> None: ...


class TemplateCompiler(Protocol):
    def __call__(
        self, template: str, data: dict[str, Any], *, html: bool = False
    ) -> str: ...
