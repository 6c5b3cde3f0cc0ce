"""Basic-webhooks provider: SMS gateway reached through a form-encoded webhook."""

from pydantic import Field

from notify_shared.enums import ChannelType

from message_dispatcher.providers.base import HttpProviderHandler, ProviderCredentials
from message_dispatcher.schemas import SendOutcome, SendRequest


class BasicWebhooksCredentials(ProviderCredentials):
    api_key: str
    secret_key: str
    from_: str = Field(alias="from")
    base_url: str = "https://api.transmitsms.com"


class BasicWebhooksHandler(HttpProviderHandler):
    """Posts ``message``/``to``/``from`` with HTTP basic auth.

    The gateway answers with ``{"message_id": ..., "send_at": ...}``.
    """

    provider_id = "basic-webhooks"
    channel_type = ChannelType.WEBHOOK
    credentials_model = BasicWebhooksCredentials

    def send(self, request: SendRequest, timeout: float) -> SendOutcome:
        credentials: BasicWebhooksCredentials = self.credentials  # type: ignore[assignment]
        response = self._post(
            f"{credentials.base_url.rstrip('/')}/send-sms.json",
            timeout=timeout,
            data={
                "message": request.content,
                "to": request.recipient_address,
                "from": request.sender_address or credentials.from_,
            },
            auth=(credentials.api_key, credentials.secret_key),
        )
        body = self._json_body(response)
        message_id = body.get("message_id")
        send_at = body.get("send_at")
        return SendOutcome(
            id=str(message_id) if message_id is not None else None,
            date=str(send_at) if send_at is not None else None,
        )
