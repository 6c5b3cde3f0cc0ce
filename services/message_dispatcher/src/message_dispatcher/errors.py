"""Exception taxonomy for message dispatch.

``CommandContractError`` subclasses mean the inbound command is unusable and
are raised to the caller. Everything else is a delivery outcome that the
orchestrator turns into an execution detail and a message status.
"""

from typing import Any


class DispatchError(Exception):
    """Base class for all dispatch errors."""


class CommandContractError(DispatchError):
    """The inbound command references data that does not exist."""


class SubscriberNotFoundError(CommandContractError):
    pass


class TemplateMissingError(CommandContractError):
    pass


class NotificationNotFoundError(CommandContractError):
    pass


class TemplateCompileError(DispatchError):
    """A message template could not be rendered."""


class NoHandlerFoundError(DispatchError):
    """No registered provider handler accepts an integration."""

    def __init__(self, provider_id: str, channel: str) -> None:
        super().__init__(
            f"No provider handler registered for {provider_id!r} on channel {channel!r}"
        )
        self.provider_id = provider_id
        self.channel = channel


class ProviderError(DispatchError):
    """A provider call failed at the transport or API level."""

    def __init__(
        self,
        code: str,
        message: str,
        raw_response: Any = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.raw_response = raw_response

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "raw_response": self.raw_response,
        }


class ProviderTimeoutError(ProviderError):
    def __init__(self, message: str, raw_response: Any = None) -> None:
        super().__init__("timeout", message, raw_response)


class InvalidCredentialsError(ProviderError):
    def __init__(self, message: str, raw_response: Any = None) -> None:
        super().__init__("invalid_credentials", message, raw_response)
