"""File repository for database operations."""

from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.sql.elements import ColumnElement

from assetindex.db.models import File, FileTag
from assetindex.repositories.base import BaseRepository
from assetindex.utils import generate_id, get_timestamp_ms


class FileRepository(BaseRepository[File]):
    """Repository for File entity operations."""

    def __init__(self):
        super().__init__(File)

    # ==================== Lookups ====================

    def count_in_folder(self, db: Session, folder_id: str) -> int:
        """Number of files directly inside a folder."""
        stmt = select(func.count()).select_from(File).where(File.folder_id == folder_id)
        return db.execute(stmt).scalar_one()

    def count_in_folders(self, db: Session, folder_ids: Iterable[str]) -> int:
        """Number of files directly inside any of the folders."""
        folder_ids = list(folder_ids)
        if not folder_ids:
            return 0
        stmt = select(func.count()).select_from(File).where(File.folder_id.in_(folder_ids))
        return db.execute(stmt).scalar_one()

    def count_by_folder(self, db: Session) -> dict[str, int]:
        """Direct file count per folder ID (folders without files are absent)."""
        stmt = (
            select(File.folder_id, func.count())
            .where(File.folder_id.is_not(None))
            .group_by(File.folder_id)
        )
        return {folder_id: count for folder_id, count in db.execute(stmt)}

    def get_in_folders(self, db: Session, folder_ids: Iterable[str]) -> list[File]:
        """Files directly inside any of the folders, with their folder loaded."""
        folder_ids = list(folder_ids)
        if not folder_ids:
            return []
        stmt = (
            select(File)
            .where(File.folder_id.in_(folder_ids))
            .options(selectinload(File.folder))
            .order_by(File.created_at.asc(), File.id.asc())
        )
        return list(db.execute(stmt).scalars().all())

    # ==================== Filtered queries ====================

    def count_where(self, db: Session, conditions: Sequence[ColumnElement[bool]]) -> int:
        """Count files matching all conditions."""
        stmt = select(func.count()).select_from(File).where(*conditions)
        return db.execute(stmt).scalar_one()

    def find_page_with_total(
        self,
        db: Session,
        conditions: Sequence[ColumnElement[bool]],
        order_by: Sequence[Any],
        offset: int,
        limit: int,
    ) -> tuple[list[File], int]:
        """One page of matching files plus the total match count.

        The total rides along as a window function, so a page that has rows
        costs one round trip; an empty page (past the end) falls back to a
        plain count.
        """
        total_col = func.count().over().label("total")
        stmt = (
            select(File, total_col)
            .where(*conditions)
            .order_by(*order_by)
            .offset(offset)
            .limit(limit)
            .options(*self._result_options())
        )
        rows = db.execute(stmt).all()
        if rows:
            return [row[0] for row in rows], rows[0].total
        if offset == 0:
            return [], 0
        return [], self.count_where(db, conditions)

    def find_bounded(
        self,
        db: Session,
        conditions: Sequence[ColumnElement[bool]],
        order_by: Sequence[Any],
        cap: int,
    ) -> list[File]:
        """Up to cap matching files, for in-memory post-processing."""
        stmt = (
            select(File)
            .where(*conditions)
            .order_by(*order_by)
            .limit(cap)
            .options(*self._result_options())
        )
        return list(db.execute(stmt).scalars().all())

    @staticmethod
    def _result_options() -> list[Any]:
        return [
            selectinload(File.tags).selectinload(FileTag.tag),
            selectinload(File.folder),
        ]

    # ==================== Writes ====================

    def create_file(
        self,
        db: Session,
        original_name: str,
        folder_id: str | None = None,
        mime_type: str = "application/octet-stream",
        size: int = 0,
        commit: bool = True,
        **extra: Any,
    ) -> File:
        """Register a file record.

        Args:
            db: Database session
            original_name: Name as uploaded / scanned
            folder_id: Owning folder (None for root)
            mime_type: MIME type
            size: Size in bytes
            commit: Commit immediately
            **extra: Optional columns (dominant_color, rating, width, ...)

        Returns:
            Created file
        """
        now = get_timestamp_ms()
        file_id = extra.pop("id", None) or generate_id("file")
        file_data = {
            "id": file_id,
            "name": extra.pop("name", original_name),
            "original_name": original_name,
            "storage_path": extra.pop("storage_path", f"/uploads/{file_id}"),
            "mime_type": mime_type,
            "size": size,
            "folder_id": folder_id,
            "rating": extra.pop("rating", 0),
            "created_at": extra.pop("created_at", now),
            "updated_at": extra.pop("updated_at", now),
            **extra,
        }
        return self.create(db, file_data, commit=commit)

    def remove_tag_links(self, db: Session, file_ids: Iterable[str]) -> int:
        """Delete tag associations of the files (flush only)."""
        file_ids = list(file_ids)
        if not file_ids:
            return 0
        result = db.execute(
            delete(FileTag).where(FileTag.file_id.in_(file_ids)).execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def delete_by_ids(self, db: Session, file_ids: Iterable[str]) -> int:
        """Delete file rows by ID (flush only). Tag links must be gone first."""
        file_ids = list(file_ids)
        if not file_ids:
            return 0
        result = db.execute(
            delete(File).where(File.id.in_(file_ids)).execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    def move_to_folder(self, db: Session, file_ids: Iterable[str], folder_id: str | None) -> int:
        """Re-parent files (flush only)."""
        file_ids = list(file_ids)
        if not file_ids:
            return 0
        result = db.execute(
            update(File)
            .where(File.id.in_(file_ids))
            .values(folder_id=folder_id, updated_at=get_timestamp_ms())
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount


# Singleton instance
file_repository = FileRepository()
