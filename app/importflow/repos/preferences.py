from __future__ import annotations

from sqlalchemy import select

from app.importflow.db.models import NotificationPreference


class PreferenceRepository:
    def __init__(self, db):
        self.db = db

    def get_by_user(self, user_id: str) -> NotificationPreference | None:
        return (
            self.db.execute(select(NotificationPreference).where(NotificationPreference.user_id == user_id))
            .scalars()
            .first()
        )

    def list_by_frequency(self, frequency: str) -> list[NotificationPreference]:
        return (
            self.db.execute(
                select(NotificationPreference)
                .where(NotificationPreference.email_enabled.is_(True))
                .where(NotificationPreference.email_frequency == frequency)
                .order_by(NotificationPreference.user_id)
            )
            .scalars()
            .all()
        )

    def upsert(self, user_id: str, fields: dict) -> NotificationPreference:
        record = self.get_by_user(user_id)
        if record is None:
            record = NotificationPreference(user_id=user_id)
        for key, value in fields.items():
            setattr(record, key, value)
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record
