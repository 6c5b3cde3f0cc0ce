"""Provider handler interface and the shared HTTP plumbing."""

import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar, Self

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from message_dispatcher.errors import (
    InvalidCredentialsError,
    ProviderError,
    ProviderTimeoutError,
)
from message_dispatcher.schemas import SendOutcome, SendRequest


class ProviderCredentials(BaseModel):
    """Base for per-provider credential models.

    Subclasses enumerate the fields a provider needs; unknown keys stored on
    the integration are ignored.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class ProviderHandler(ABC):
    """Delivers a SendRequest through one (provider, channel) pair.

    Handlers raise ProviderError on every transport or provider-side
    failure and never swallow it; classifying the failure is the caller's
    job.
    """

    provider_id: ClassVar[str]
    # None means the handler accepts any channel.
    channel_type: ClassVar[str | None] = None
    credentials_model: ClassVar[type[ProviderCredentials]] = ProviderCredentials

    def __init__(
        self,
        credentials: ProviderCredentials,
        client: httpx.Client | None = None,
    ) -> None:
        self.credentials = credentials
        self._client = client

    @classmethod
    def can_handle(cls, provider_id: str, channel: str) -> bool:
        return provider_id == cls.provider_id and (
            cls.channel_type is None or channel == cls.channel_type
        )

    @classmethod
    def build(
        cls,
        credentials: Mapping[str, Any],
        client: httpx.Client | None = None,
    ) -> Self:
        """Validate raw integration credentials and return a handler.

        Raises InvalidCredentialsError naming the offending fields (never
        their values).
        """
        try:
            parsed = cls.credentials_model.model_validate(dict(credentials))
        except ValidationError as exc:
            fields = sorted(
                ".".join(str(part) for part in error["loc"]) for error in exc.errors()
            )
            raise InvalidCredentialsError(
                f"Invalid {cls.provider_id} credentials: {', '.join(fields)}",
                raw_response={"fields": fields},
            ) from exc
        return cls(parsed, client=client)

    @abstractmethod
    def send(self, request: SendRequest, timeout: float) -> SendOutcome:
        """Deliver *request*, giving up after *timeout* seconds."""


class HttpProviderHandler(ProviderHandler):
    """Handler base for providers reached over HTTP via httpx."""

    def _post(self, url: str, *, timeout: float, **kwargs: Any) -> httpx.Response:
        """POST and read the whole response within *timeout* seconds.

        httpx applies a float timeout to each connect, write and read
        separately, so the body is streamed against a single deadline.
        """
        deadline = time.monotonic() + timeout
        try:
            if self._client is not None:
                response = self._read_until(self._client, deadline, url, timeout, kwargs)
            else:
                with httpx.Client() as client:
                    response = self._read_until(client, deadline, url, timeout, kwargs)
        except httpx.TimeoutException as exc:
            raise self._timed_out(timeout) from exc
        except httpx.HTTPError as exc:
            raise ProviderError(
                "transport_error", str(exc) or type(exc).__name__
            ) from exc

        if response.is_error:
            raise ProviderError(
                f"http_{response.status_code}",
                f"{self.provider_id} responded with HTTP {response.status_code}",
                raw_response=response.text,
            )
        return response

    def _read_until(
        self,
        client: httpx.Client,
        deadline: float,
        url: str,
        timeout: float,
        kwargs: dict[str, Any],
    ) -> httpx.Response:
        with client.stream("POST", url, timeout=timeout, **kwargs) as streamed:
            body = bytearray()
            for chunk in streamed.iter_bytes():
                if time.monotonic() > deadline:
                    raise self._timed_out(timeout)
                body.extend(chunk)
            if time.monotonic() > deadline:
                raise self._timed_out(timeout)

            # iter_bytes already decoded the body.
            headers = httpx.Headers(streamed.headers)
            headers.pop("content-encoding", None)
            return httpx.Response(
                streamed.status_code,
                headers=headers,
                content=bytes(body),
                request=streamed.request,
            )

    def _timed_out(self, timeout: float) -> ProviderTimeoutError:
        return ProviderTimeoutError(
            f"{self.provider_id} did not respond within {timeout}s"
        )

    def _json_body(self, response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderError(
                "invalid_response",
                f"{self.provider_id} returned a non-JSON body",
                raw_response=response.text,
            ) from exc
        if not isinstance(body, dict):
            raise ProviderError(
                "invalid_response",
                f"{self.provider_id} returned an unexpected JSON body",
                raw_response=response.text,
            )
        return body
