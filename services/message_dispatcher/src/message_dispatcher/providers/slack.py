"""Slack chat provider using the subscriber's incoming-webhook URL."""

from notify_shared.enums import ChannelType

from message_dispatcher.errors import ProviderError
from message_dispatcher.providers.base import HttpProviderHandler
from message_dispatcher.schemas import SendOutcome, SendRequest


class SlackHandler(HttpProviderHandler):
    """Posts ``{"text": content}`` to the webhook URL in the recipient address.

    Slack replies with a plain ``ok`` and no message id.
    """

    provider_id = "slack"
    channel_type = ChannelType.CHAT

    def send(self, request: SendRequest, timeout: float) -> SendOutcome:
        if not request.recipient_address.startswith("https://"):
            raise ProviderError(
                "invalid_destination",
                "Slack webhook URL must use https",
            )
        self._post(
            request.recipient_address,
            timeout=timeout,
            json={"text": request.content},
        )
        return SendOutcome()
