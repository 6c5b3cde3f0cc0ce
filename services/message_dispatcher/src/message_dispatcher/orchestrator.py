"""Delivery orchestrator: runs one dispatch attempt for one message.

Resolves the subscriber and integration, renders content, persists the
message, checks preconditions and hands the message to a provider handler.
Every path that is not a broken inbound command ends in exactly one
terminal execution detail.
"""

import json
import logging
from concurrent import futures
from dataclasses import dataclass
from typing import Any, cast
from uuid import UUID

from notify_shared.db.models import Integration, Message, Subscriber
from notify_shared.enums import (
    SENDER_REQUIRED_CHANNELS,
    ChannelType,
    DetailCode,
    ExecutionDetailSource,
    ExecutionDetailStatus,
    MessageStatus,
)

from message_dispatcher.audit import ExecutionAuditRecorder
from message_dispatcher.errors import (
    NotificationNotFoundError,
    ProviderError,
    ProviderTimeoutError,
    SubscriberNotFoundError,
    TemplateCompileError,
    TemplateMissingError,
)
from message_dispatcher.ports import (
    IntegrationLookup,
    MessageStore,
    NotificationLookup,
    SubscriberLookup,
    TemplateCompiler,
)
from message_dispatcher.providers import ProviderFactory, ProviderHandler
from message_dispatcher.renderer import render_template
from message_dispatcher.schemas import (
    ExecutionDetailEntry,
    MessageDraft,
    MessageTemplate,
    SendMessageCommand,
    SendOutcome,
    SendRequest,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Outcome of a dispatch attempt as seen by the caller."""

    status: ExecutionDetailStatus
    detail: DetailCode
    message_id: UUID | None = None
    details: tuple[ExecutionDetailEntry, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.status == ExecutionDetailStatus.SUCCESS

    def summary(self) -> dict[str, Any]:
        return {
            "status": str(self.status),
            "detail": str(self.detail),
            "message_id": str(self.message_id) if self.message_id else None,
        }


@dataclass(frozen=True, slots=True)
class PreconditionFailure:
    detail: DetailCode
    error_id: str
    reason: str


def resolve_destination(
    channel: str, payload: dict[str, Any], subscriber: Subscriber
) -> str | None:
    """Pick the recipient address for *channel*; the trigger payload wins."""
    if channel in (ChannelType.SMS, ChannelType.WEBHOOK):
        return payload.get("phone") or subscriber.phone
    if channel == ChannelType.EMAIL:
        return payload.get("email") or subscriber.email
    return (subscriber.channel_addresses or {}).get(channel) or None


def check_preconditions(
    channel: str, destination: str | None, integration: Integration | None
) -> PreconditionFailure | None:
    """Return the first reason the message cannot be dispatched, if any."""
    if not destination:
        return PreconditionFailure(
            DetailCode.SUBSCRIBER_NO_CHANNEL_DETAILS,
            "no_subscriber_address",
            f"Subscriber does not have an active {channel} address",
        )
    if integration is None:
        return PreconditionFailure(
            DetailCode.SUBSCRIBER_NO_ACTIVE_INTEGRATION,
            "missing_integration_error",
            f"Subscriber does not have an active {channel} integration",
        )
    if channel in SENDER_REQUIRED_CHANNELS and not (integration.credentials or {}).get(
        "from"
    ):
        return PreconditionFailure(
            DetailCode.SUBSCRIBER_NO_ACTIVE_CHANNEL,
            "no_integration_sender",
            "Integration does not have a sender ('from') configured",
        )
    return None


def build_template_data(
    command: SendMessageCommand, subscriber: Subscriber
) -> dict[str, Any]:
    """Merge the trigger payload with digest metadata and the subscriber."""
    return {
        **command.payload,
        "step": {
            "digest": bool(command.events),
            "events": list(command.events),
            "total_count": len(command.events),
        },
        "subscriber": subscriber.to_template_context(),
    }


def send_with_deadline(
    handler: ProviderHandler,
    request: SendRequest,
    timeout: float,
    provider_id: str,
) -> SendOutcome:
    """Run ``handler.send`` and stop waiting after *timeout* seconds.

    The call runs on a worker thread so the bound holds for handlers that
    ignore their timeout argument. A call still running at the deadline is
    abandoned, not interrupted.
    """
    executor = futures.ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="provider-send"
    )
    future = executor.submit(handler.send, request, timeout)
    try:
        return future.result(timeout=timeout)
    except futures.TimeoutError as exc:
        if not future.done():
            raise ProviderTimeoutError(
                f"{provider_id} did not respond within {timeout}s"
            ) from exc
        raise
    finally:
        executor.shutdown(wait=False)


def serialize_error(exc: BaseException) -> str:
    if isinstance(exc, ProviderError):
        data = exc.to_dict()
    else:
        data = {"name": type(exc).__name__, "message": str(exc)}
    return json.dumps(data, default=str)


class _AuditTrail:
    """Execution details recorded during one attempt, in order."""

    def __init__(
        self, recorder: ExecutionAuditRecorder, command: SendMessageCommand
    ) -> None:
        self._recorder = recorder
        self._command = command
        self.entries: list[ExecutionDetailEntry] = []
        self.message_id: UUID | None = None
        self.provider_id: str | None = None
        self.is_retry = False

    def add(
        self,
        detail: DetailCode,
        status: ExecutionDetailStatus,
        *,
        source: ExecutionDetailSource = ExecutionDetailSource.INTERNAL,
        raw: str | None = None,
    ) -> None:
        entry = ExecutionDetailEntry.for_command(
            self._command,
            message_id=self.message_id,
            provider_id=self.provider_id,
            detail=detail,
            source=source,
            status=status,
            is_retry=self.is_retry,
            raw=raw,
        )
        self._recorder.record(entry)
        self.entries.append(entry)

    def finish(
        self,
        detail: DetailCode,
        status: ExecutionDetailStatus,
        *,
        source: ExecutionDetailSource = ExecutionDetailSource.INTERNAL,
        raw: str | None = None,
    ) -> DispatchResult:
        self.add(detail, status, source=source, raw=raw)
        return DispatchResult(
            status=status,
            detail=detail,
            message_id=self.message_id,
            details=tuple(self.entries),
        )


class SendMessage:
    """Dispatches one resolved message through the active integration."""

    def __init__(
        self,
        *,
        subscribers: SubscriberLookup,
        notifications: NotificationLookup,
        integrations: IntegrationLookup,
        messages: MessageStore,
        recorder: ExecutionAuditRecorder,
        provider_factory: ProviderFactory,
        compile_template: TemplateCompiler = render_template,
        provider_timeout: float = 30.0,
        store_content: bool = True,
    ) -> None:
        self._subscribers = subscribers
        self._notifications = notifications
        self._integrations = integrations
        self._messages = messages
        self._recorder = recorder
        self._provider_factory = provider_factory
        self._compile_template = compile_template
        self._provider_timeout = provider_timeout
        self._store_content = store_content

    def execute(self, command: SendMessageCommand) -> DispatchResult:
        """Run the dispatch attempt described by *command*.

        Raises CommandContractError subclasses when the subscriber, the step
        template or the notification is missing. Delivery problems never
        raise; they are returned as a failed DispatchResult and recorded as
        execution details.
        """
        log_ctx: dict[str, Any] = {
            "job_id": str(command.job_id),
            "transaction_id": command.transaction_id,
            "subscriber_id": str(command.subscriber_id),
            "channel": command.channel,
        }

        subscriber = self._subscribers.get(
            command.subscriber_id, command.environment_id
        )
        if subscriber is None:
            raise SubscriberNotFoundError(
                f"Subscriber {command.subscriber_id} not found in "
                f"environment {command.environment_id}"
            )

        trail = _AuditTrail(self._recorder, command)

        integration = self._integrations.find_active(
            command.organization_id, command.environment_id, command.channel
        )
        if integration is None:
            logger.warning("No active integration for channel", extra=log_ctx)
            return trail.finish(
                DetailCode.SUBSCRIBER_NO_ACTIVE_INTEGRATION,
                ExecutionDetailStatus.FAILED,
            )
        trail.provider_id = integration.provider_id
        log_ctx["provider_id"] = integration.provider_id

        template = command.step.template
        if template is None or not template.content:
            raise TemplateMissingError(
                f"{command.channel} step template is missing"
            )

        notification = self._notifications.get_by_id(command.notification_id)
        if notification is None:
            raise NotificationNotFoundError(
                f"Notification {command.notification_id} not found"
            )

        try:
            content, subject = self._render(command, template, subscriber)
        except TemplateCompileError as exc:
            logger.warning(
                "Template rendering failed",
                extra={**log_ctx, "error": str(exc)},
            )
            return trail.finish(
                DetailCode.MESSAGE_CONTENT_NOT_GENERATED,
                ExecutionDetailStatus.FAILED,
                raw=json.dumps({"error": str(exc)}),
            )

        destination = resolve_destination(command.channel, command.payload, subscriber)

        message = self._messages.get_by_job(command.environment_id, command.job_id)
        if message is None:
            draft = self._build_draft(
                command, notification.template_id, template, integration,
                destination, content, subject,
            )
            message = self._messages.create(draft)
            trail.message_id = message.id
            trail.add(
                DetailCode.MESSAGE_CREATED,
                ExecutionDetailStatus.PENDING,
                raw=json.dumps(draft.payload, default=str) if self._store_content else None,
            )
        else:
            trail.message_id = message.id
            trail.is_retry = True
            logger.info(
                "Reusing message from an earlier run of this job",
                extra={**log_ctx, "message_id": str(message.id)},
            )
            if message.status == MessageStatus.SENT:
                return trail.finish(
                    DetailCode.MESSAGE_ALREADY_SENT,
                    ExecutionDetailStatus.SUCCESS,
                )
            if (message.destination, message.provider_id) != (
                destination,
                integration.provider_id,
            ):
                self._messages.update(
                    command.environment_id,
                    message.id,
                    destination=destination,
                    provider_id=integration.provider_id,
                )
        log_ctx["message_id"] = str(message.id)

        failure = check_preconditions(command.channel, destination, integration)
        if failure is not None:
            logger.warning(
                "Message not dispatched",
                extra={**log_ctx, "detail": failure.detail, "reason": failure.reason},
            )
            result = trail.finish(failure.detail, ExecutionDetailStatus.FAILED)
            self._messages.update_status(
                command.environment_id,
                message.id,
                MessageStatus.WARNING,
                error_id=failure.error_id,
                error_text=failure.reason,
            )
            return result

        # check_preconditions rejects a missing destination.
        return self._dispatch(
            trail, command, integration, message, cast(str, destination),
            content, subject, log_ctx,
        )

    def _render(
        self,
        command: SendMessageCommand,
        template: MessageTemplate,
        subscriber: Subscriber,
    ) -> tuple[str, str | None]:
        data = build_template_data(command, subscriber)
        html = command.channel == ChannelType.EMAIL
        content = self._compile_template(template.content or "", data, html=html)
        if not content.strip():
            raise TemplateCompileError("Rendered content is empty")
        subject = None
        if template.subject:
            subject = self._compile_template(template.subject, data, html=False)
        return content, subject

    def _build_draft(
        self,
        command: SendMessageCommand,
        template_id: UUID | None,
        template: MessageTemplate,
        integration: Integration,
        destination: str | None,
        content: str,
        subject: str | None,
    ) -> MessageDraft:
        payload = {k: v for k, v in command.payload.items() if k != "attachments"}
        return MessageDraft(
            notification_id=command.notification_id,
            environment_id=command.environment_id,
            organization_id=command.organization_id,
            subscriber_id=command.subscriber_id,
            template_id=template_id,
            message_template_id=template.id,
            job_id=command.job_id,
            transaction_id=command.transaction_id,
            channel=command.channel,
            provider_id=integration.provider_id,
            destination=destination,
            subject=subject if self._store_content else None,
            content=content if self._store_content else None,
            payload=payload,
            overrides=command.overrides.get(integration.provider_id, {}),
            template_identifier=command.identifier,
        )

    def _dispatch(
        self,
        trail: _AuditTrail,
        command: SendMessageCommand,
        integration: Integration,
        message: Message,
        destination: str,
        content: str,
        subject: str | None,
        log_ctx: dict[str, Any],
    ) -> DispatchResult:
        sender = (integration.credentials or {}).get("from")
        request = SendRequest(
            recipient_address=destination,
            sender_address=str(sender) if sender else None,
            content=content,
            subject=subject,
            correlation_id=str(message.id),
        )
        timeout = command.timeout_seconds or self._provider_timeout

        try:
            handler = self._provider_factory.get_handler(integration)
            outcome = send_with_deadline(
                handler, request, timeout, integration.provider_id
            )
        except Exception as exc:
            logger.warning(
                "Provider dispatch failed",
                exc_info=True,
                extra={**log_ctx, "error": str(exc)},
            )
            source = (
                ExecutionDetailSource.PROVIDER
                if isinstance(exc, ProviderError)
                else ExecutionDetailSource.INTERNAL
            )
            result = trail.finish(
                DetailCode.PROVIDER_ERROR,
                ExecutionDetailStatus.FAILED,
                source=source,
                raw=serialize_error(exc),
            )
            self._messages.update_status(
                command.environment_id,
                message.id,
                MessageStatus.ERROR,
                error_id=exc.code if isinstance(exc, ProviderError) else "unexpected_provider_error",
                error_text=str(exc) or type(exc).__name__,
            )
            return result

        result = trail.finish(
            DetailCode.MESSAGE_SENT,
            ExecutionDetailStatus.SUCCESS,
            source=ExecutionDetailSource.PROVIDER,
            raw=outcome.to_raw(),
        )
        fields: dict[str, Any] = {
            "status": MessageStatus.SENT,
            "error_id": None,
            "error_text": None,
        }
        if outcome.external_message_id:
            fields["identifier"] = outcome.external_message_id
        self._messages.update(command.environment_id, message.id, **fields)
        logger.info(
            "Message sent",
            extra={**log_ctx, "identifier": outcome.external_message_id},
        )
        return result
