"""Tag repository for database operations."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from assetindex.db.models import FileTag, Tag
from assetindex.repositories.base import BaseRepository
from assetindex.utils import generate_id, get_timestamp_ms


class TagRepository(BaseRepository[Tag]):
    """Repository for Tag entity operations."""

    def __init__(self):
        super().__init__(Tag)

    def create_tag(self, db: Session, name: str, color: str | None = None) -> Tag:
        """Create a new tag."""
        tag_data = {
            "id": generate_id("tag"),
            "name": name,
            "color": color,
            "created_at": get_timestamp_ms(),
        }
        return self.create(db, tag_data)

    def attach(self, db: Session, file_id: str, tag_id: str, commit: bool = True) -> bool:
        """Associate a tag with a file.

        Returns:
            False if the association already existed
        """
        if db.get(FileTag, (file_id, tag_id)) is not None:
            return False
        db.add(FileTag(file_id=file_id, tag_id=tag_id))
        if commit:
            db.commit()
        else:
            db.flush()
        return True

    def get_tag_ids_for_file(self, db: Session, file_id: str) -> list[str]:
        """Tag IDs attached to a file."""
        stmt = select(FileTag.tag_id).where(FileTag.file_id == file_id)
        return list(db.execute(stmt).scalars().all())


# Singleton instance
tag_repository = TagRepository()
