"""Folder repository for database operations."""

from collections.abc import Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from assetindex.db.models import Folder
from assetindex.repositories.base import BaseRepository
from assetindex.settings import DEFAULT_FOLDER_COLOR
from assetindex.utils import generate_id, get_timestamp_ms


class FolderRepository(BaseRepository[Folder]):
    """Repository for Folder entity operations."""

    def __init__(self):
        super().__init__(Folder)

    def get_parent_links(self, db: Session) -> list[tuple[str, str | None]]:
        """Full scan of (id, parent_id) pairs.

        Ordered by sort_order then name, so children collected in scan order
        come out in display order.
        """
        stmt = select(Folder.id, Folder.parent_id).order_by(Folder.sort_order.asc(), Folder.name.asc(), Folder.id.asc())
        return [(row.id, row.parent_id) for row in db.execute(stmt)]

    def get_all_ordered(self, db: Session) -> list[Folder]:
        """All folders ordered by sort_order then name."""
        stmt = select(Folder).order_by(Folder.sort_order.asc(), Folder.name.asc(), Folder.id.asc())
        return list(db.execute(stmt).scalars().all())

    def get_child_ids(self, db: Session, folder_id: str) -> list[str]:
        """Direct child folder IDs of a folder."""
        stmt = select(Folder.id).where(Folder.parent_id == folder_id).order_by(Folder.sort_order.asc())
        return list(db.execute(stmt).scalars().all())

    def get_parent_id(self, db: Session, folder_id: str) -> str | None:
        """Stored parent_id of a folder (None for root or unknown ids)."""
        stmt = select(Folder.parent_id).where(Folder.id == folder_id)
        return db.execute(stmt).scalar_one_or_none()

    def count_children(self, db: Session, folder_id: str) -> int:
        """Number of direct child folders."""
        stmt = select(func.count()).select_from(Folder).where(Folder.parent_id == folder_id)
        return db.execute(stmt).scalar_one()

    def max_sibling_sort_order(self, db: Session, parent_id: str | None) -> int | None:
        """Highest sort_order among folders sharing parent_id (None = root)."""
        if parent_id is None:
            condition = Folder.parent_id.is_(None)
        else:
            condition = Folder.parent_id == parent_id
        stmt = select(func.max(Folder.sort_order)).where(condition)
        return db.execute(stmt).scalar_one_or_none()

    def next_sort_order(self, db: Session, parent_id: str | None) -> int:
        """sort_order that appends a folder after its future siblings."""
        current_max = self.max_sibling_sort_order(db, parent_id)
        return 0 if current_max is None else current_max + 1

    def create_folder(
        self,
        db: Session,
        name: str,
        parent_id: str | None = None,
        color: str | None = None,
        icon: str | None = None,
        sort_order: int = 0,
        commit: bool = True,
    ) -> Folder:
        """Create a new folder.

        Args:
            db: Database session
            name: Display name
            parent_id: Parent folder ID (None for a root folder)
            color: Folder color (#RRGGBB)
            icon: Icon name
            sort_order: Position among siblings
            commit: Commit immediately

        Returns:
            Created folder
        """
        now = get_timestamp_ms()
        folder_data = {
            "id": generate_id("folder"),
            "name": name,
            "parent_id": parent_id,
            "color": color or DEFAULT_FOLDER_COLOR,
            "icon": icon,
            "sort_order": sort_order,
            "created_at": now,
            "updated_at": now,
        }
        return self.create(db, folder_data, commit=commit)

    def bulk_update_sort_order(self, db: Session, orders: Iterable[tuple[str, int]]) -> int:
        """Apply sort orders by primary key in one batched UPDATE (flush only).

        Returns:
            Number of rows submitted
        """
        now = get_timestamp_ms()
        params = [{"id": folder_id, "sort_order": sort_order, "updated_at": now} for folder_id, sort_order in orders]
        if params:
            db.execute(update(Folder), params)
        return len(params)

    def delete_one(self, db: Session, folder_id: str) -> int:
        """Delete a single folder row without loading it (flush only)."""
        result = db.execute(delete(Folder).where(Folder.id == folder_id).execution_options(synchronize_session="fetch"))
        return result.rowcount


# Singleton instance
folder_repository = FolderRepository()
