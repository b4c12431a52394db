"""Error taxonomy for the content index.

Structural mutation errors are strict and carry enough detail (ids, counts)
for the caller to decide whether to retry with ``force=True``. Filter input
problems are normally sanitized away; ValidationError is only raised where
there is nothing sensible to degrade to (e.g. an empty reorder batch).
"""

from typing import Any


class ContentIndexError(Exception):
    """Base class for all content index errors."""

    code = "CONTENT_INDEX_ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Serializable form for API layers."""
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(ContentIndexError):
    """Folder, file or trash entry id is absent."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: str | list[str]):
        super().__init__(f"{entity} not found: {entity_id}", entity=entity, id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class InvalidTargetError(ContentIndexError):
    """A folder can't be moved into itself."""

    code = "INVALID_TARGET"

    def __init__(self, folder_id: str):
        super().__init__(f"Cannot move folder {folder_id} into itself", folder_id=folder_id)
        self.folder_id = folder_id


class CyclicMoveError(ContentIndexError):
    """Target parent is a descendant of the folder being moved."""

    code = "CYCLIC_MOVE"

    def __init__(self, folder_id: str, target_id: str):
        super().__init__(
            f"Cannot move folder {folder_id} under its descendant {target_id}",
            folder_id=folder_id,
            target_id=target_id,
        )
        self.folder_id = folder_id
        self.target_id = target_id


class FolderNotEmptyError(ContentIndexError):
    """Delete blocked pending confirmation.

    Not a failure as such: it is the dry-run answer to a non-forced delete of a
    non-empty folder. Resubmit with force=True to cascade.
    """

    code = "FOLDER_NOT_EMPTY"
    need_confirm = True

    def __init__(self, folder_id: str, total_files: int, total_folders: int):
        super().__init__(
            f"Folder contains {total_files} files and {total_folders} subfolders",
            folder_id=folder_id,
            stats={"totalFiles": total_files, "totalFolders": total_folders},
        )
        self.folder_id = folder_id
        self.total_files = total_files
        self.total_folders = total_folders

    @property
    def stats(self) -> dict[str, int]:
        return {"totalFiles": self.total_files, "totalFolders": self.total_folders}

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["needConfirm"] = True
        payload["stats"] = self.stats
        return payload


class ValidationError(ContentIndexError, ValueError):
    """Malformed input that can't be sanitized into something usable."""

    code = "VALIDATION_ERROR"


class PartialCascadeFailureError(ContentIndexError):
    """Cascade delete failed part way through.

    The cascade runs in the caller's transaction, which is rolled back before
    this is raised; ``cause`` holds the original exception.
    """

    code = "PARTIAL_CASCADE_FAILURE"

    def __init__(self, folder_id: str, cause: BaseException):
        super().__init__(
            f"Cascade delete of folder {folder_id} failed: {cause}",
            folder_id=folder_id,
        )
        self.folder_id = folder_id
        self.cause = cause


__all__ = [
    "ContentIndexError",
    "NotFoundError",
    "InvalidTargetError",
    "CyclicMoveError",
    "FolderNotEmptyError",
    "ValidationError",
    "PartialCascadeFailureError",
]
