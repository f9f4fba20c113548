"""notification preferences, digest queue and notification log

Revision ID: 0002_notifications
Revises: 0001_initial
Create Date: 2024-01-08 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_notifications"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "notification_preferences",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("notify_arrival", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notify_inspection_failed", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notify_inspection_passed", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notify_capacity_warning", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notify_delayed", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notify_post_arrival_update", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notify_workflow_assigned", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_frequency", sa.String(length=20), nullable=False, server_default="immediate"),
        sa.Column("email_address", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index(
        "ix_notification_preferences_user_id",
        "notification_preferences",
        ["user_id"],
        unique=True,
    )

    op.create_table(
        "notification_digest_queue",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("event_type", sa.String(length=100), nullable=False),
        sa.Column("shipment_id", sa.String(length=64), nullable=True),
        sa.Column("event_data", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_notification_digest_queue_user_id", "notification_digest_queue", ["user_id"], unique=False)
    op.create_index(
        "ix_notification_digest_queue_processed_at",
        "notification_digest_queue",
        ["processed_at"],
        unique=False,
    )
    op.create_index(
        "ix_digest_queue_user_created",
        "notification_digest_queue",
        ["user_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "notification_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("event_type", sa.String(length=100), nullable=False),
        sa.Column("shipment_id", sa.String(length=64), nullable=True),
        sa.Column("subject", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="sent"),
        sa.Column("delivery_method", sa.String(length=20), nullable=False, server_default="email"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_notification_log_user_id", "notification_log", ["user_id"], unique=False)
    op.create_index("ix_notification_log_event_type", "notification_log", ["event_type"], unique=False)
    op.create_index("ix_notification_log_sent_at", "notification_log", ["sent_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_notification_log_sent_at", table_name="notification_log")
    op.drop_index("ix_notification_log_event_type", table_name="notification_log")
    op.drop_index("ix_notification_log_user_id", table_name="notification_log")
    op.drop_table("notification_log")
    op.drop_index("ix_digest_queue_user_created", table_name="notification_digest_queue")
    op.drop_index("ix_notification_digest_queue_processed_at", table_name="notification_digest_queue")
    op.drop_index("ix_notification_digest_queue_user_id", table_name="notification_digest_queue")
    op.drop_table("notification_digest_queue")
    op.drop_index("ix_notification_preferences_user_id", table_name="notification_preferences")
    op.drop_table("notification_preferences")
