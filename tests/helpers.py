from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from app.importflow.db.models import NotificationPreference, Shipment, User
from app.importflow.services.email_transport import EmailTransport, SendResult

NOW = datetime(2024, 6, 1, 12, 0, 0)


class RecordingEmailTransport(EmailTransport):
    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.sent: list[dict] = []

    def send(self, to_address, subject, html, text=None):
        if self.fail:
            return SendResult(success=False, error="smtp unavailable")
        self.sent.append({"to": to_address, "subject": subject, "html": html, "text": text})
        return SendResult(success=True, message_id=f"test-{len(self.sent)}")


def create_user(db_session, *, suffix: str | None = None, email: str | None = "", is_active: bool = True) -> User:
    suffix = suffix or uuid.uuid4().hex[:8]
    user = User(
        username=f"user-{suffix}",
        email=f"user-{suffix}@example.com" if email == "" else email,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


def set_preference(db_session, user: User, **fields) -> NotificationPreference:
    preference = NotificationPreference(user_id=user.id, **fields)
    db_session.add(preference)
    db_session.commit()
    return preference


def create_shipment(
    db_session,
    *,
    status: str = "planned_seafreight",
    order_ref: str | None = None,
    supplier: str = "Acme Packaging",
    updated_at: datetime | None = None,
    **fields,
) -> Shipment:
    stamp = updated_at or NOW - timedelta(days=1)
    shipment = Shipment(
        order_ref=order_ref or f"PO-{uuid.uuid4().hex[:6]}",
        supplier=supplier,
        status=status,
        created_at=stamp,
        updated_at=stamp,
        archived_at=stamp if status == "archived" else None,
        **fields,
    )
    db_session.add(shipment)
    db_session.commit()
    return shipment
