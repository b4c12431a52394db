"""Base repository class with common CRUD operations.

Provides generic CRUD operations that can be inherited by specific repositories.
Write helpers take ``commit=False`` when they are one step of a larger unit of
work; the service owning the unit commits (or rolls back) once.
"""

from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from assetindex.db.models import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations."""

    def __init__(self, model: type[ModelType]):
        """Initialize repository with model class.

        Args:
            model: SQLAlchemy model class
        """
        self.model = model

    def get_by_id(self, db: Session, id: str) -> ModelType | None:
        """Get entity by ID.

        Args:
            db: Database session
            id: Entity ID

        Returns:
            Entity or None if not found
        """
        return db.get(self.model, id)

    def get_many(self, db: Session, ids: Iterable[str]) -> list[ModelType]:
        """Get all entities whose ID is in ids (unknown IDs are skipped)."""
        ids = list(ids)
        if not ids:
            return []
        stmt = select(self.model).where(self.model.id.in_(ids))
        return list(db.execute(stmt).scalars().all())

    def get_existing_ids(self, db: Session, ids: Iterable[str]) -> set[str]:
        """Subset of ids that exist in the table."""
        ids = list(ids)
        if not ids:
            return set()
        stmt = select(self.model.id).where(self.model.id.in_(ids))
        return set(db.execute(stmt).scalars().all())

    def create(self, db: Session, obj_in: dict[str, Any], commit: bool = True) -> ModelType:
        """Create a new entity.

        Args:
            db: Database session
            obj_in: Entity data as dict
            commit: Commit immediately, or only flush into the open transaction

        Returns:
            Created entity
        """
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        if commit:
            db.commit()
            db.refresh(db_obj)
        else:
            db.flush()
        return db_obj

    def update(
        self,
        db: Session,
        db_obj: ModelType,
        obj_in: dict[str, Any],
        commit: bool = True,
    ) -> ModelType:
        """Update an existing entity.

        Args:
            db: Database session
            db_obj: Existing entity
            obj_in: Updated data as dict
            commit: Commit immediately, or only flush

        Returns:
            Updated entity
        """
        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)
        db.add(db_obj)
        if commit:
            db.commit()
            db.refresh(db_obj)
        else:
            db.flush()
        return db_obj

    def delete(self, db: Session, id: str, commit: bool = True) -> bool:
        """Delete an entity by ID.

        Args:
            db: Database session
            id: Entity ID
            commit: Commit immediately, or only flush

        Returns:
            True if deleted, False if not found
        """
        obj = db.get(self.model, id)
        if obj:
            db.delete(obj)
            if commit:
                db.commit()
            else:
                db.flush()
            return True
        return False

    def exists(self, db: Session, id: str) -> bool:
        """Check if entity exists.

        Args:
            db: Database session
            id: Entity ID

        Returns:
            True if exists
        """
        return db.get(self.model, id) is not None
