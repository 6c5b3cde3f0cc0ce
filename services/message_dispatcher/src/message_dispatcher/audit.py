"""Execution audit recorder."""

import logging
from collections.abc import Sequence

from message_dispatcher.ports import ExecutionDetailSink
from message_dispatcher.schemas import ExecutionDetailEntry

logger = logging.getLogger(__name__)


class ExecutionAuditRecorder:
    """Fans execution details out to one or more sinks.

    ``record`` never raises: a failing sink is logged and skipped so that an
    audit outage cannot turn a delivered message into a reported failure,
    or the reverse.
    """

    def __init__(self, sinks: Sequence[ExecutionDetailSink]) -> None:
        self._sinks = tuple(sinks)

    def record(self, entry: ExecutionDetailEntry) -> None:
        for sink in self._sinks:
            try:
                sink.record(entry)
            except Exception:
                logger.exception(
                    "Failed to record execution detail",
                    extra={
                        "sink": type(sink).__name__,
                        "job_id": str(entry.job_id),
                        "message_id": str(entry.message_id) if entry.message_id else None,
                        "detail": entry.detail,
                        "status": entry.status,
                    },
                )
