"""Console provider for local development: logs instead of sending."""

import logging
from datetime import datetime, timezone

from message_dispatcher.providers.base import ProviderHandler
from message_dispatcher.schemas import SendOutcome, SendRequest

logger = logging.getLogger(__name__)


class ConsoleHandler(ProviderHandler):
    """Accepts any channel for integrations configured with ``console``."""

    provider_id = "console"

    def send(self, request: SendRequest, timeout: float) -> SendOutcome:
        preview = request.content[:50] if request.content else "(empty)"
        logger.info(
            "Message sent (console)",
            extra={
                "correlation_id": request.correlation_id,
                "to": request.recipient_address,
                "body_preview": preview,
            },
        )
        return SendOutcome(
            id=f"console-{request.correlation_id}",
            date=datetime.now(timezone.utc).isoformat(),
        )
