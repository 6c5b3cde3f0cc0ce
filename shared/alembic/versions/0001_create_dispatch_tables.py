"""Create subscribers, notifications, integrations, messages, execution_details tables.

Revision ID: 0001
Revises: -
Create Date: 2026-10-12
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

_JSON = sa.JSON().with_variant(JSONB(), "postgresql")


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    op.create_table(
        "subscribers",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("environment_id", sa.Uuid, nullable=False),
        sa.Column("organization_id", sa.Uuid, nullable=False),
        sa.Column("external_id", sa.String(128), nullable=False),
        sa.Column("first_name", sa.String(128), nullable=True),
        sa.Column("last_name", sa.String(128), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("channel_addresses", _JSON, nullable=False),
        _created_at(),
    )
    op.create_index(
        "ix_subscribers_environment_id", "subscribers", ["environment_id"]
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("environment_id", sa.Uuid, nullable=False),
        sa.Column("organization_id", sa.Uuid, nullable=False),
        sa.Column("subscriber_id", sa.Uuid, nullable=False),
        sa.Column("template_id", sa.Uuid, nullable=True),
        sa.Column("transaction_id", sa.String(64), nullable=False),
        _created_at(),
    )
    op.create_index(
        "ix_notifications_subscriber_id", "notifications", ["subscriber_id"]
    )

    op.create_table(
        "integrations",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("environment_id", sa.Uuid, nullable=False),
        sa.Column("organization_id", sa.Uuid, nullable=False),
        sa.Column("provider_id", sa.String(64), nullable=False),
        sa.Column("channel", sa.String(16), nullable=False),
        sa.Column("credentials", _JSON, nullable=False),
        sa.Column(
            "active", sa.Boolean, nullable=False, server_default=sa.true()
        ),
        _created_at(),
    )
    op.create_index(
        "ix_integrations_lookup",
        "integrations",
        ["organization_id", "environment_id", "channel"],
    )

    op.create_table(
        "messages",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("notification_id", sa.Uuid, nullable=False),
        sa.Column("environment_id", sa.Uuid, nullable=False),
        sa.Column("organization_id", sa.Uuid, nullable=False),
        sa.Column("subscriber_id", sa.Uuid, nullable=False),
        sa.Column("template_id", sa.Uuid, nullable=True),
        sa.Column("message_template_id", sa.String(64), nullable=True),
        sa.Column("job_id", sa.Uuid, nullable=False),
        sa.Column("transaction_id", sa.String(64), nullable=False),
        sa.Column("channel", sa.String(16), nullable=False),
        sa.Column("provider_id", sa.String(64), nullable=True),
        sa.Column("destination", sa.Text, nullable=True),
        sa.Column("subject", sa.Text, nullable=True),
        sa.Column("content", sa.Text, nullable=True),
        sa.Column("payload", _JSON, nullable=False),
        sa.Column("overrides", _JSON, nullable=False),
        sa.Column("template_identifier", sa.String(128), nullable=True),
        sa.Column(
            "status", sa.String(16), nullable=False, server_default="pending"
        ),
        sa.Column("identifier", sa.String(256), nullable=True),
        sa.Column("error_id", sa.String(64), nullable=True),
        sa.Column("error_text", sa.Text, nullable=True),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("environment_id", "job_id", name="uq_message_env_job"),
    )
    op.create_index(
        "ix_messages_notification_id", "messages", ["notification_id"]
    )
    op.create_index("ix_messages_status", "messages", ["status"])

    op.create_table(
        "execution_details",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("job_id", sa.Uuid, nullable=False),
        sa.Column("message_id", sa.Uuid, nullable=True),
        sa.Column("notification_id", sa.Uuid, nullable=False),
        sa.Column("environment_id", sa.Uuid, nullable=False),
        sa.Column("organization_id", sa.Uuid, nullable=False),
        sa.Column("subscriber_id", sa.Uuid, nullable=False),
        sa.Column("transaction_id", sa.String(64), nullable=False),
        sa.Column("provider_id", sa.String(64), nullable=True),
        sa.Column("channel", sa.String(16), nullable=False),
        sa.Column("detail", sa.String(64), nullable=False),
        sa.Column("source", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column(
            "is_test", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "is_retry", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("raw", sa.Text, nullable=True),
        _created_at(),
    )
    op.create_index(
        "ix_execution_details_job_id", "execution_details", ["job_id"]
    )
    op.create_index(
        "ix_execution_details_message_id", "execution_details", ["message_id"]
    )


def downgrade() -> None:
    op.drop_table("execution_details")
    op.drop_table("messages")
    op.drop_table("integrations")
    op.drop_table("notifications")
    op.drop_table("subscribers")
