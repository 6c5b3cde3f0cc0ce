"""SQL-backed stores that own the transaction boundary of each write.

Message and execution-detail writes are independent transactions: the
message row is committed before any detail referencing it, and a crash in
between leaves a detectable message without a terminal detail.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from notify_shared.db.models import ExecutionDetail, Message
from notify_shared.db.repositories import ExecutionDetailRepository, MessageRepository

from message_dispatcher.schemas import ExecutionDetailEntry, MessageDraft


class SqlMessageStore:
    def __init__(self, session: Session) -> None:
        self._session = session
        self._repo = MessageRepository(session)

    def create(self, draft: MessageDraft) -> Message:
        message = self._repo.create(Message(**draft.model_dump()))
        self._session.commit()
        return message

    def get_by_job(self, environment_id: UUID, job_id: UUID) -> Message | None:
        return self._repo.get_by_job_id(environment_id, job_id)

    def update(self, environment_id: UUID, message_id: UUID, **fields: Any) -> None:
        self._repo.update(environment_id, message_id, **fields)
        self._session.commit()

    def update_status(
        self,
        environment_id: UUID,
        message_id: UUID,
        status: str,
        *,
        error_id: str | None = None,
        error_text: str | None = None,
    ) -> None:
        self._repo.update_status(
            environment_id,
            message_id,
            status,
            error_id=error_id,
            error_text=error_text,
        )
        self._session.commit()


class DatabaseExecutionDetailSink:
    """Appends execution details to the execution_details table."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._repo = ExecutionDetailRepository(session)

    def record(self, entry: ExecutionDetailEntry) -> None:
        try:
            self._repo.create(ExecutionDetail(**entry.model_dump()))
            self._session.commit()
        except Exception:
            # Leave the session usable for the message updates that follow.
            self._session.rollback()
            raise
