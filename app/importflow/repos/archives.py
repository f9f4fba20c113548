from __future__ import annotations

from sqlalchemy import select

from app.importflow.db.models import ArchiveRecord


class ArchiveRepository:
    def __init__(self, db):
        self.db = db

    def insert(self, record: ArchiveRecord) -> ArchiveRecord:
        self.db.add(record)
        self.db.flush()
        return record

    def get_by_key(self, file_name: str) -> ArchiveRecord | None:
        return (
            self.db.execute(select(ArchiveRecord).where(ArchiveRecord.file_name == file_name))
            .scalars()
            .first()
        )

    def list_recent(self, *, archive_type: str | None = None, limit: int | None = None) -> list[ArchiveRecord]:
        stmt = select(ArchiveRecord)
        if archive_type:
            stmt = stmt.where(ArchiveRecord.archive_type == archive_type)
        stmt = stmt.order_by(ArchiveRecord.archived_at.desc(), ArchiveRecord.id)
        if limit:
            stmt = stmt.limit(limit)
        return self.db.execute(stmt).scalars().all()

    def rename(self, record: ArchiveRecord, *, new_key: str, display_name: str | None) -> ArchiveRecord:
        record.file_name = new_key
        record.display_name = display_name
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record
