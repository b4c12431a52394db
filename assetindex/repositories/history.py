"""History repository for database operations."""

import json
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from assetindex.db.models import HistoryRecord
from assetindex.repositories.base import BaseRepository
from assetindex.utils import generate_id, get_timestamp_ms


class HistoryRepository(BaseRepository[HistoryRecord]):
    """Repository for HistoryRecord entity operations."""

    def __init__(self):
        super().__init__(HistoryRecord)

    def create_record(
        self,
        db: Session,
        entity_id: str,
        entity_name: str,
        action: str,
        details: dict[str, Any] | None = None,
        actor_id: str | None = None,
        is_folder: bool = False,
    ) -> HistoryRecord:
        """Append a history record.

        Args:
            db: Database session
            entity_id: File or folder ID
            entity_name: Name at the time of the action
            action: One of HistoryAction values
            details: Structured diff, stored as JSON
            actor_id: User who performed the action
            is_folder: True for folder records

        Returns:
            Created record
        """
        record_data = {
            "id": generate_id("hist"),
            "entity_id": entity_id,
            "entity_name": entity_name,
            "action": action,
            "details": json.dumps(details, ensure_ascii=False) if details is not None else None,
            "actor_id": actor_id,
            "is_folder": is_folder,
            "created_at": get_timestamp_ms(),
        }
        return self.create(db, record_data)

    def get_by_entity(self, db: Session, entity_id: str) -> list[HistoryRecord]:
        """History of an entity, oldest first."""
        stmt = (
            select(HistoryRecord)
            .where(HistoryRecord.entity_id == entity_id)
            .order_by(HistoryRecord.created_at.asc(), HistoryRecord.id.asc())
        )
        return list(db.execute(stmt).scalars().all())


# Singleton instance
history_repository = HistoryRepository()
