"""Logging setup for message_dispatcher (delegates to notify_shared)."""

from notify_shared.log import JsonFormatter, setup_logging as _setup

__all__ = ["JsonFormatter", "setup_logging"]


def setup_logging(level: str = "INFO") -> None:
    _setup(level, suppress=["celery", "kombu", "httpx", "httpcore"])
