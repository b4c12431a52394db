"""File mutations: trash, folder moves, metadata edits and bulk tagging."""

from collections.abc import Iterable
from typing import Any

from sqlalchemy.orm import Session

from assetindex.db.models import File
from assetindex.errors import NotFoundError, ValidationError
from assetindex.models.schemas import HistoryAction
from assetindex.repositories import (
    FileRepository,
    FolderRepository,
    TagRepository,
    TrashRepository,
    file_repository,
    folder_repository,
    tag_repository,
    trash_repository,
)
from assetindex.services.history import HistoryService, folder_label, history_service
from assetindex.utils import get_logger, get_timestamp_ms, is_valid_id

logger = get_logger(__name__)

MAX_FILE_NAME_LENGTH = 255


class FileService:
    """File deletes, moves, metadata edits and tagging; restore targets."""

    def __init__(
        self,
        file_repo: FileRepository = file_repository,
        folder_repo: FolderRepository = folder_repository,
        trash_repo: TrashRepository = trash_repository,
        history_svc: HistoryService = history_service,
        tag_repo: TagRepository = tag_repository,
    ):
        self._file_repo = file_repo
        self._folder_repo = folder_repo
        self._trash_repo = trash_repo
        self._tag_repo = tag_repo
        self._history_svc = history_svc

    def get(self, db: Session, file_id: str) -> File:
        file = self._file_repo.get_by_id(db, file_id) if file_id else None
        if file is None:
            raise NotFoundError("File", file_id)
        return file

    def delete_file(self, db: Session, file_id: str, actor_id: str | None = None) -> None:
        """Move a file to the trash.

        Raises:
            NotFoundError: If the file doesn't exist
        """
        file = self.get(db, file_id)
        file_name = file.name
        folder_name = folder_label(file.folder)

        try:
            self._trash_repo.snapshot_file(db, file, folder_name=folder_name, deleted_by=actor_id)
            self._file_repo.remove_tag_links(db, [file_id])
            self._file_repo.delete_by_ids(db, [file_id])
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"File deleted: {file_id} ({file_name})")
        self._history_svc.record(
            db, file_id, file_name, HistoryAction.delete, {"folder": folder_name}, actor_id=actor_id
        )

    def move_files(
        self,
        db: Session,
        file_ids: Iterable[str],
        folder_id: str | None,
        actor_id: str | None = None,
    ) -> int:
        """Re-parent files into a folder (None = root).

        Returns:
            Number of files moved

        Raises:
            ValidationError: No file ids given
            NotFoundError: Target folder or some files don't exist
        """
        file_ids = self._validate_file_ids(file_ids)

        target = None
        if folder_id is not None:
            target = self._folder_repo.get_by_id(db, folder_id)
            if target is None:
                raise NotFoundError("Folder", folder_id)

        files = self._get_all(db, file_ids)

        # Captured before the update expires the loaded rows
        moves = [(f.id, f.name, folder_label(f.folder)) for f in files]

        try:
            self._file_repo.move_to_folder(db, file_ids, folder_id)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Files moved: {len(file_ids)} to {folder_id or 'root'}")
        to_folder = folder_label(target)
        for file_id, file_name, from_folder in moves:
            self._history_svc.record(
                db,
                file_id,
                file_name,
                HistoryAction.move,
                {"fromFolder": from_folder, "toFolder": to_folder},
                actor_id=actor_id,
            )
        return len(file_ids)

    def delete_files(self, db: Session, file_ids: Iterable[str], actor_id: str | None = None) -> int:
        """Move many files to the trash in one transaction.

        Returns:
            Number of files deleted

        Raises:
            ValidationError: No file ids given
            NotFoundError: Some files don't exist; nothing is deleted
        """
        file_ids = self._validate_file_ids(file_ids)
        files = self._get_all(db, file_ids)
        deleted = [(f.id, f.name, folder_label(f.folder)) for f in files]

        try:
            for file, (_, _, folder_name) in zip(files, deleted):
                self._trash_repo.snapshot_file(db, file, folder_name=folder_name, deleted_by=actor_id)
            self._file_repo.remove_tag_links(db, file_ids)
            self._file_repo.delete_by_ids(db, file_ids)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Files deleted: {len(file_ids)}")
        for file_id, file_name, folder_name in deleted:
            self._history_svc.record(
                db, file_id, file_name, HistoryAction.delete, {"folder": folder_name}, actor_id=actor_id
            )
        return len(file_ids)

    def update_file(
        self,
        db: Session,
        file_id: str,
        name: str | None = None,
        rating: int | None = None,
        annotation: str | None = None,
        actor_id: str | None = None,
    ) -> File:
        """Rename, rate or annotate a file.

        Each changed field gets its own history record (rename, rate, edit).
        Moving between folders goes through move_files().

        Raises:
            NotFoundError: If the file doesn't exist
            ValidationError: Empty or too long name, rating outside 0-5
        """
        file = self.get(db, file_id)

        if name is not None:
            if not isinstance(name, str) or not name.strip():
                raise ValidationError("File name cannot be empty")
            name = name.strip()
            if len(name) > MAX_FILE_NAME_LENGTH:
                raise ValidationError(f"File name is limited to {MAX_FILE_NAME_LENGTH} characters")
        if rating is not None and (isinstance(rating, bool) or not isinstance(rating, int) or not 0 <= rating <= 5):
            raise ValidationError("rating must be an integer from 0 to 5", rating=rating)
        if annotation is not None and not isinstance(annotation, str):
            raise ValidationError("annotation must be a string")

        old_name, old_rating, old_annotation = file.name, file.rating, file.annotation
        updates: dict[str, Any] = {}
        if name is not None and name != old_name:
            updates["name"] = name
            updates["original_name"] = name
        if rating is not None and rating != old_rating:
            updates["rating"] = rating
        if annotation is not None and annotation != old_annotation:
            updates["annotation"] = annotation
        if not updates:
            return file

        updates["updated_at"] = get_timestamp_ms()
        try:
            file = self._file_repo.update(db, file, updates)
        except Exception:
            db.rollback()
            raise

        if "name" in updates:
            self._history_svc.record(
                db, file.id, file.name, HistoryAction.rename, {"from": old_name, "to": file.name}, actor_id=actor_id
            )
        if "rating" in updates:
            self._history_svc.record(
                db, file.id, file.name, HistoryAction.rate, {"from": old_rating, "to": file.rating}, actor_id=actor_id
            )
        if "annotation" in updates:
            self._history_svc.record(
                db,
                file.id,
                file.name,
                HistoryAction.edit,
                {"field": "annotation", "from": old_annotation, "to": file.annotation},
                actor_id=actor_id,
            )
        return file

    def tag_files(self, db: Session, file_ids: Iterable[str], tag_id: str, actor_id: str | None = None) -> int:
        """Attach a tag to many files; files already carrying it are skipped.

        Returns:
            Number of files that gained the tag

        Raises:
            ValidationError: No file ids given
            NotFoundError: Tag or some files don't exist
        """
        file_ids = self._validate_file_ids(file_ids)
        tag = self._tag_repo.get_by_id(db, tag_id) if tag_id else None
        if tag is None:
            raise NotFoundError("Tag", tag_id)
        tag_name = tag.name
        names = {f.id: f.name for f in self._get_all(db, file_ids)}

        try:
            tagged = [fid for fid in file_ids if self._tag_repo.attach(db, fid, tag_id, commit=False)]
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Tag {tag_id} attached to {len(tagged)} files")
        for file_id in tagged:
            self._history_svc.record(
                db, file_id, names[file_id], HistoryAction.tag, {"action": "add", "tag": tag_name}, actor_id=actor_id
            )
        return len(tagged)

    @staticmethod
    def _validate_file_ids(file_ids: Iterable[str]) -> list[str]:
        file_ids = list(dict.fromkeys(file_ids))
        if not file_ids or not all(isinstance(fid, str) and is_valid_id(fid) for fid in file_ids):
            raise ValidationError("fileIds must be a non-empty list of file ids")
        return file_ids

    def _get_all(self, db: Session, file_ids: list[str]) -> list[File]:
        files = self._file_repo.get_many(db, file_ids)
        missing = sorted(set(file_ids) - {f.id for f in files})
        if missing:
            raise NotFoundError("File", missing)
        return files

    def restore_target(self, db: Session, trash_id: str) -> str | None:
        """Folder a trashed file should be restored into.

        The original folder when it still exists, otherwise None (root).

        Raises:
            NotFoundError: Unknown trash id
        """
        item = self._trash_repo.get_by_id(db, trash_id) if trash_id else None
        if item is None:
            raise NotFoundError("TrashItem", trash_id)
        if item.folder_id and self._folder_repo.exists(db, item.folder_id):
            return item.folder_id
        return None


# Singleton instance
file_service = FileService()
