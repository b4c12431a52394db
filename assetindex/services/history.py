"""Audit history emitter.

Records are written after the mutation they describe has been committed.
Writing history is best-effort: a failure is logged and swallowed, it never
fails or undoes the mutation.
"""

from typing import Any

from sqlalchemy.orm import Session

from assetindex.models.schemas import HistoryAction
from assetindex.repositories import HistoryRepository, history_repository
from assetindex.settings import ROOT_FOLDER_LABEL
from assetindex.utils import get_logger

logger = get_logger(__name__)


def folder_label(folder: Any | None) -> str:
    """Display name of a folder for history details (root when None)."""
    return folder.name if folder is not None else ROOT_FOLDER_LABEL


class HistoryService:
    """Writes history records for file and folder mutations."""

    def __init__(self, history_repo: HistoryRepository = history_repository):
        self._history_repo = history_repo

    def record(
        self,
        db: Session,
        entity_id: str,
        entity_name: str,
        action: HistoryAction | str,
        details: dict[str, Any] | None = None,
        actor_id: str | None = None,
        is_folder: bool = False,
    ) -> bool:
        """Append a history record.

        Args:
            db: Database session (the mutation must already be committed)
            entity_id: File or folder ID
            entity_name: Name at the time of the action
            action: History action
            details: Structured diff
            actor_id: User who performed the action
            is_folder: True for folder records

        Returns:
            True if the record was written
        """
        try:
            action = HistoryAction(action)
        except ValueError:
            logger.warning(f"Unknown history action '{action}' for {entity_id}, record skipped")
            return False

        try:
            self._history_repo.create_record(
                db,
                entity_id=entity_id,
                entity_name=entity_name,
                action=action.value,
                details=details,
                actor_id=actor_id,
                is_folder=is_folder,
            )
            return True
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to add history for {entity_id} ({action.value}): {e}")
            return False


# Singleton instance
history_service = HistoryService()
