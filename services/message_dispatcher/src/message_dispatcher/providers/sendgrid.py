"""SendGrid email provider (v3 mail/send API)."""

from pydantic import Field

from notify_shared.enums import ChannelType

from message_dispatcher.providers.base import HttpProviderHandler, ProviderCredentials
from message_dispatcher.schemas import SendOutcome, SendRequest


class SendGridCredentials(ProviderCredentials):
    api_key: str
    from_: str = Field(alias="from")
    sender_name: str | None = None
    base_url: str = "https://api.sendgrid.com"


class SendGridHandler(HttpProviderHandler):
    provider_id = "sendgrid"
    channel_type = ChannelType.EMAIL
    credentials_model = SendGridCredentials

    def send(self, request: SendRequest, timeout: float) -> SendOutcome:
        credentials: SendGridCredentials = self.credentials  # type: ignore[assignment]
        sender: dict[str, str] = {"email": request.sender_address or credentials.from_}
        if credentials.sender_name:
            sender["name"] = credentials.sender_name

        response = self._post(
            f"{credentials.base_url.rstrip('/')}/v3/mail/send",
            timeout=timeout,
            json={
                "personalizations": [
                    {
                        "to": [{"email": request.recipient_address}],
                        "custom_args": {"correlation_id": request.correlation_id},
                    }
                ],
                "from": sender,
                "subject": request.subject or "(no subject)",
                "content": [{"type": "text/html", "value": request.content}],
            },
            headers={"Authorization": f"Bearer {credentials.api_key}"},
        )
        # 202 Accepted with an empty body; the id only comes back as a header.
        return SendOutcome(
            id=response.headers.get("x-message-id"),
            date=response.headers.get("date"),
        )
