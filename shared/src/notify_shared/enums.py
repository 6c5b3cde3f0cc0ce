from enum import StrEnum


class ChannelType(StrEnum):
    SMS = "sms"
    EMAIL = "email"
    WEBHOOK = "webhook"
    PUSH = "push"
    CHAT = "chat"


# Channels whose integrations must carry a sender ("from") credential.
SENDER_REQUIRED_CHANNELS: frozenset[str] = frozenset(
    {ChannelType.SMS, ChannelType.EMAIL, ChannelType.WEBHOOK}
)


class MessageStatus(StrEnum):
    PENDING = "pending"
    SENT = "sent"
    WARNING = "warning"
    ERROR = "error"


class ExecutionDetailSource(StrEnum):
    INTERNAL = "internal"
    PROVIDER = "provider"


class ExecutionDetailStatus(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


TERMINAL_DETAIL_STATUSES: frozenset[str] = frozenset(
    {ExecutionDetailStatus.SUCCESS, ExecutionDetailStatus.FAILED}
)


class DetailCode(StrEnum):
    MESSAGE_CREATED = "message_created"
    MESSAGE_SENT = "message_sent"
    MESSAGE_ALREADY_SENT = "message_already_sent"
    MESSAGE_CONTENT_NOT_GENERATED = "message_content_not_generated"
    PROVIDER_ERROR = "provider_error"
    SUBSCRIBER_NO_ACTIVE_INTEGRATION = "subscriber_no_active_integration"
    SUBSCRIBER_NO_CHANNEL_DETAILS = "subscriber_no_channel_details"
    SUBSCRIBER_NO_ACTIVE_CHANNEL = "subscriber_no_active_channel"
