"""Trash repository for database operations."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from assetindex.db.models import File, TrashItem
from assetindex.repositories.base import BaseRepository
from assetindex.utils import generate_id, get_timestamp_ms


class TrashRepository(BaseRepository[TrashItem]):
    """Repository for TrashItem entity operations."""

    def __init__(self):
        super().__init__(TrashItem)

    def snapshot_file(
        self,
        db: Session,
        file: File,
        folder_name: str | None = None,
        deleted_by: str | None = None,
    ) -> TrashItem:
        """Record a restorable snapshot of a file (flush only).

        Must be written before the live file row is removed.
        """
        trash_data = {
            "id": generate_id("trash"),
            "file_id": file.id,
            "original_name": file.original_name,
            "original_path": file.storage_path,
            "thumbnail_path": file.thumbnail_path,
            "mime_type": file.mime_type,
            "size": file.size,
            "folder_id": file.folder_id,
            "folder_name": folder_name,
            "deleted_by": deleted_by,
            "deleted_at": get_timestamp_ms(),
        }
        return self.create(db, trash_data, commit=False)

    def get_by_file(self, db: Session, file_id: str) -> list[TrashItem]:
        """Snapshots taken of a file, newest first."""
        stmt = select(TrashItem).where(TrashItem.file_id == file_id).order_by(TrashItem.deleted_at.desc())
        return list(db.execute(stmt).scalars().all())


# Singleton instance
trash_repository = TrashRepository()
