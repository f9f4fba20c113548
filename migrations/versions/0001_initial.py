"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2024-01-01 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "shipments",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("order_ref", sa.String(length=255), nullable=False),
        sa.Column("supplier", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("expected_arrival_at", sa.DateTime(), nullable=True),
        sa.Column("product_name", sa.String(length=255), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=True),
        sa.Column("pallet_qty", sa.Float(), nullable=True),
        sa.Column("week_number", sa.Integer(), nullable=True),
        sa.Column("final_pod", sa.String(length=100), nullable=True),
        sa.Column("receiving_warehouse", sa.String(length=100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("inspection_status", sa.String(length=30), nullable=False, server_default="not_started"),
        sa.Column("inspection_notes", sa.Text(), nullable=True),
        sa.Column("inspected_by", sa.String(length=150), nullable=True),
        sa.Column("inspection_date", sa.DateTime(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("receiving_status", sa.String(length=30), nullable=False, server_default="not_started"),
        sa.Column("receiving_notes", sa.Text(), nullable=True),
        sa.Column("received_by", sa.String(length=150), nullable=True),
        sa.Column("receiving_date", sa.DateTime(), nullable=True),
        sa.Column("received_quantity", sa.Integer(), nullable=True),
        sa.Column("unloading_start_date", sa.DateTime(), nullable=True),
        sa.Column("unloading_completed_date", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("archived_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_shipments_order_ref", "shipments", ["order_ref"], unique=False)
    op.create_index("ix_shipments_supplier", "shipments", ["supplier"], unique=False)
    op.create_index("ix_shipments_status", "shipments", ["status"], unique=False)
    op.create_index("ix_shipments_status_updated", "shipments", ["status", "updated_at"], unique=False)

    op.create_table(
        "archives",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("file_name", sa.String(length=500), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("archive_type", sa.String(length=30), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("total_shipments", sa.Integer(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("archived_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_archives_file_name", "archives", ["file_name"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_archives_file_name", table_name="archives")
    op.drop_table("archives")
    op.drop_index("ix_shipments_status_updated", table_name="shipments")
    op.drop_index("ix_shipments_status", table_name="shipments")
    op.drop_index("ix_shipments_supplier", table_name="shipments")
    op.drop_index("ix_shipments_order_ref", table_name="shipments")
    op.drop_table("shipments")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
