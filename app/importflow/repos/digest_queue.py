from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update

from app.importflow.db.models import DigestQueueEntry


class DigestQueueRepository:
    def __init__(self, db):
        self.db = db

    def append(self, entry: DigestQueueEntry) -> DigestQueueEntry:
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def query_unprocessed(self, user_id: str, since: datetime, *, claim: bool = False) -> list[DigestQueueEntry]:
        """Pending entries for one user.

        With ``claim`` the rows stay locked until the caller commits; rows locked
        by another dispatcher are skipped. SQLite has no row locks and ignores it.
        """
        query = (
            select(DigestQueueEntry)
            .where(DigestQueueEntry.user_id == user_id)
            .where(DigestQueueEntry.processed_at.is_(None))
            .where(DigestQueueEntry.created_at > since)
            .order_by(DigestQueueEntry.id)
        )
        if claim:
            query = query.with_for_update(skip_locked=True)
        return self.db.execute(query).scalars().all()

    def mark_processed(self, entry_ids: list[int], processed_at: datetime) -> int:
        """Stamp still-pending entries; the caller owns the commit."""
        if not entry_ids:
            return 0
        result = self.db.execute(
            update(DigestQueueEntry)
            .where(DigestQueueEntry.id.in_(entry_ids))
            .where(DigestQueueEntry.processed_at.is_(None))
            .values(processed_at=processed_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def delete_older_than(self, cutoff: datetime) -> int:
        result = self.db.execute(delete(DigestQueueEntry).where(DigestQueueEntry.created_at < cutoff))
        self.db.commit()
        return result.rowcount or 0

    def exists_since(self, *, event_type: str, shipment_id: str, since: datetime) -> bool:
        row = self.db.execute(
            select(DigestQueueEntry.id)
            .where(DigestQueueEntry.event_type == event_type)
            .where(DigestQueueEntry.shipment_id == shipment_id)
            .where(DigestQueueEntry.created_at > since)
            .limit(1)
        ).first()
        return row is not None
