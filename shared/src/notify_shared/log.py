"""Structured JSON logging shared by the dispatch services."""

import json
import logging
import sys
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone

# Standard LogRecord attributes; anything else on a record came from
# `extra={...}` and is emitted as a top-level JSON key.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
    | {"message", "asctime", "taskName"}
)

DEFAULT_REDACTED_KEYS = frozenset(
    {
        "api_key",
        "authorization",
        "credentials",
        "password",
        "secret_key",
        "token",
    }
)

REDACTED = "***"


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter that masks credential-like extra fields.

    Integration credentials travel through the dispatch path, so any extra
    key listed in *redact_keys* is replaced before serialization, including
    keys nested inside dict values.
    """

    def __init__(self, redact_keys: Iterable[str] = DEFAULT_REDACTED_KEYS) -> None:
        super().__init__()
        self._redact_keys = frozenset(k.lower() for k in redact_keys)

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                log_entry[key] = self._redact(key, value)

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)

    def _redact(self, key: str, value: object) -> object:
        if key.lower() in self._redact_keys:
            return REDACTED
        if isinstance(value, dict):
            return {k: self._redact(str(k), v) for k, v in value.items()}
        return value


def setup_logging(
    level: str = "INFO",
    suppress: Sequence[str] = (),
) -> None:
    """Configure the root logger with the JSON formatter on stdout.

    Args:
        level: Root log level (e.g. "INFO", "DEBUG").
        suppress: Logger names raised to WARNING to keep third-party
                  chatter (celery, kombu, httpx) out of the stream.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    for name in suppress:
        logging.getLogger(name).setLevel(logging.WARNING)
