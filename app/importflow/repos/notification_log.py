from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, func, select

from app.importflow.db.models import NotificationLog


class NotificationLogRepository:
    def __init__(self, db):
        self.db = db

    def add(self, entry: NotificationLog) -> NotificationLog:
        """Stage a log row; the caller owns the commit."""
        self.db.add(entry)
        self.db.flush()
        return entry

    def create(self, entry: NotificationLog) -> NotificationLog:
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def list_for_user(self, user_id: str, *, event_type: str | None = None, limit: int = 50) -> list[NotificationLog]:
        stmt = select(NotificationLog).where(NotificationLog.user_id == user_id)
        if event_type:
            stmt = stmt.where(NotificationLog.event_type == event_type)
        stmt = stmt.order_by(NotificationLog.sent_at.desc(), NotificationLog.id.desc()).limit(limit)
        return self.db.execute(stmt).scalars().all()

    def list_by_event_types(self, event_types: list[str], *, limit: int = 50) -> list[NotificationLog]:
        stmt = (
            select(NotificationLog)
            .where(NotificationLog.event_type.in_(event_types))
            .order_by(NotificationLog.sent_at.desc(), NotificationLog.id.desc())
            .limit(limit)
        )
        return self.db.execute(stmt).scalars().all()

    def status_counts(self, user_id: str) -> dict[str, int]:
        rows = self.db.execute(
            select(NotificationLog.status, func.count(NotificationLog.id))
            .where(NotificationLog.user_id == user_id)
            .group_by(NotificationLog.status)
        ).all()
        return {status: count for status, count in rows}

    def exists_since(self, *, event_type: str, shipment_id: str, since: datetime) -> bool:
        row = self.db.execute(
            select(NotificationLog.id)
            .where(NotificationLog.event_type == event_type)
            .where(NotificationLog.shipment_id == shipment_id)
            .where(NotificationLog.sent_at > since)
            .limit(1)
        ).first()
        return row is not None

    def delete_older_than(self, cutoff: datetime) -> int:
        result = self.db.execute(delete(NotificationLog).where(NotificationLog.sent_at < cutoff))
        self.db.commit()
        return result.rowcount or 0
