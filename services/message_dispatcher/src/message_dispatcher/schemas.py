"""Pydantic models exchanged between the worker, the orchestrator and providers."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat

from notify_shared.enums import (
    ChannelType,
    DetailCode,
    ExecutionDetailSource,
    ExecutionDetailStatus,
)


class MessageTemplate(BaseModel):
    id: str | None = None
    content: str | None = None
    subject: str | None = None


class NotificationStep(BaseModel):
    id: str | None = None
    template: MessageTemplate | None = None


class SendMessageCommand(BaseModel):
    """One fully resolved message-send request handed over by the job layer."""

    model_config = ConfigDict(frozen=True)

    subscriber_id: UUID
    environment_id: UUID
    organization_id: UUID
    notification_id: UUID
    transaction_id: str = Field(max_length=64)
    job_id: UUID
    channel: ChannelType
    step: NotificationStep
    payload: dict[str, Any] = Field(default_factory=dict)
    events: list[dict[str, Any]] = Field(default_factory=list)
    # Per-provider overrides keyed by provider id.
    overrides: dict[str, dict[str, Any]] = Field(default_factory=dict)
    identifier: str | None = Field(default=None, max_length=128)
    timeout_seconds: PositiveFloat | None = None
    is_test: bool = False


class SendRequest(BaseModel):
    """What a provider handler needs to deliver one message."""

    model_config = ConfigDict(frozen=True)

    recipient_address: str
    sender_address: str | None = None
    content: str
    subject: str | None = None
    correlation_id: str


class SendOutcome(BaseModel):
    """Normalized provider response: ``{"id": ..., "date": ...}``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    external_message_id: str | None = Field(default=None, alias="id")
    provider_timestamp: str | None = Field(default=None, alias="date")

    def to_raw(self) -> str:
        return self.model_dump_json(by_alias=True)


class MessageDraft(BaseModel):
    """Fields of a message row before it is persisted."""

    notification_id: UUID
    environment_id: UUID
    organization_id: UUID
    subscriber_id: UUID
    template_id: UUID | None = None
    message_template_id: str | None = None
    job_id: UUID
    transaction_id: str
    channel: ChannelType
    provider_id: str | None = None
    destination: str | None = None
    subject: str | None = None
    content: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    overrides: dict[str, Any] = Field(default_factory=dict)
    template_identifier: str | None = None


class ExecutionDetailEntry(BaseModel):
    """One immutable audit record of a dispatch decision or outcome."""

    model_config = ConfigDict(frozen=True)

    job_id: UUID
    message_id: UUID | None = None
    notification_id: UUID
    environment_id: UUID
    organization_id: UUID
    subscriber_id: UUID
    transaction_id: str
    provider_id: str | None = None
    channel: ChannelType
    detail: DetailCode
    source: ExecutionDetailSource = ExecutionDetailSource.INTERNAL
    status: ExecutionDetailStatus
    is_test: bool
    is_retry: bool
    raw: str | None = None

    @classmethod
    def for_command(
        cls, command: SendMessageCommand, **fields: Any
    ) -> "ExecutionDetailEntry":
        """Build an entry carrying the job context of *command*."""
        context: dict[str, Any] = {
            "job_id": command.job_id,
            "notification_id": command.notification_id,
            "environment_id": command.environment_id,
            "organization_id": command.organization_id,
            "subscriber_id": command.subscriber_id,
            "transaction_id": command.transaction_id,
            "channel": command.channel,
            "is_test": command.is_test,
            "is_retry": False,
        }
        context.update(fields)
        return cls(**context)
