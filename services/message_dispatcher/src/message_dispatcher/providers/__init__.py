"""Provider factory: picks the handler for a decrypted integration."""

import httpx

from notify_shared.db.models import Integration

from message_dispatcher.errors import NoHandlerFoundError
from message_dispatcher.providers.base import ProviderHandler
from message_dispatcher.providers.basic_webhooks import BasicWebhooksHandler
from message_dispatcher.providers.console import ConsoleHandler
from message_dispatcher.providers.sendgrid import SendGridHandler
from message_dispatcher.providers.slack import SlackHandler

__all__ = [
    "ProviderFactory",
    "ProviderHandler",
    "create_default_factory",
]


class ProviderFactory:
    """Ordered registry of handler classes; the first match wins."""

    def __init__(self, http_client: httpx.Client | None = None) -> None:
        self._handlers: list[type[ProviderHandler]] = []
        self._http_client = http_client

    def register(self, handler_cls: type[ProviderHandler]) -> None:
        self._handlers.append(handler_cls)

    @property
    def handlers(self) -> tuple[type[ProviderHandler], ...]:
        return tuple(self._handlers)

    def get_handler(self, integration: Integration) -> ProviderHandler:
        """Build a handler for *integration*.

        Raises NoHandlerFoundError when no registered class accepts the
        integration's (provider_id, channel), and InvalidCredentialsError
        when its credentials do not fit the handler.
        """
        for handler_cls in self._handlers:
            if handler_cls.can_handle(integration.provider_id, integration.channel):
                return handler_cls.build(
                    integration.credentials or {}, client=self._http_client
                )
        raise NoHandlerFoundError(integration.provider_id, integration.channel)

    def close(self) -> None:
        if self._http_client is not None:
            self._http_client.close()


def create_default_factory(http_client: httpx.Client | None = None) -> ProviderFactory:
    """Create a factory with all built-in handlers."""
    factory = ProviderFactory(http_client)
    factory.register(BasicWebhooksHandler)
    factory.register(SendGridHandler)
    factory.register(SlackHandler)
    factory.register(ConsoleHandler)
    return factory
