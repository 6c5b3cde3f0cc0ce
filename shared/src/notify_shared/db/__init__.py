"""Database layer: models, repositories, engine/session utilities."""

from notify_shared.db.base import Base, create_db_engine, create_session_factory
from notify_shared.db.models import (
    ExecutionDetail,
    Integration,
    Message,
    Notification,
    Subscriber,
)
from notify_shared.db.repositories import (
    ExecutionDetailRepository,
    IntegrationRepository,
    MessageRepository,
    NotificationRepository,
    SubscriberRepository,
)

__all__ = [
    "Base",
    "create_db_engine",
    "create_session_factory",
    "ExecutionDetail",
    "Integration",
    "Message",
    "Notification",
    "Subscriber",
    "ExecutionDetailRepository",
    "IntegrationRepository",
    "MessageRepository",
    "NotificationRepository",
    "SubscriberRepository",
]
