import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True, index=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(50), default="user", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Shipment(Base):
    __tablename__ = "shipments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    order_ref: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    supplier: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    expected_arrival_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    product_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    pallet_qty: Mapped[float | None] = mapped_column(Float, nullable=True)
    week_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    final_pod: Mapped[str | None] = mapped_column(String(100), nullable=True)
    receiving_warehouse: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    inspection_status: Mapped[str] = mapped_column(String(30), default="not_started", nullable=False)
    inspection_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    inspected_by: Mapped[str | None] = mapped_column(String(150), nullable=True)
    inspection_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    receiving_status: Mapped[str] = mapped_column(String(30), default="not_started", nullable=False)
    receiving_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    received_by: Mapped[str | None] = mapped_column(String(150), nullable=True)
    receiving_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    received_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unloading_start_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    unloading_completed_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    archived_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class ArchiveRecord(Base):
    __tablename__ = "archives"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False, unique=True, index=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    archive_type: Mapped[str] = mapped_column(String(30), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_shipments: Mapped[int] = mapped_column(Integer, nullable=False)
    payload: Mapped[list] = mapped_column(JSON, nullable=False)
    archived_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False, unique=True, index=True)
    notify_arrival: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notify_inspection_failed: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notify_inspection_passed: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notify_capacity_warning: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notify_delayed: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notify_post_arrival_update: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notify_workflow_assigned: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email_frequency: Mapped[str] = mapped_column(String(20), default="immediate", nullable=False)
    email_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class DigestQueueEntry(Base):
    __tablename__ = "notification_digest_queue"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    shipment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    event_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, index=True)


class NotificationLog(Base):
    __tablename__ = "notification_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    shipment_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    subject: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="sent", nullable=False)
    delivery_method: Mapped[str] = mapped_column(String(20), default="email", nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)


Index("ix_digest_queue_user_created", DigestQueueEntry.user_id, DigestQueueEntry.created_at)
Index("ix_shipments_status_updated", Shipment.status, Shipment.updated_at)
