"""Repository layer for database access.

This module provides repository classes that abstract database operations.

Usage:
    from assetindex.repositories import folder_repository, file_repository

    folder = folder_repository.get_by_id(db, folder_id)
    links = folder_repository.get_parent_links(db)
"""

from assetindex.repositories.file import FileRepository, file_repository
from assetindex.repositories.folder import FolderRepository, folder_repository
from assetindex.repositories.history import HistoryRepository, history_repository
from assetindex.repositories.tag import TagRepository, tag_repository
from assetindex.repositories.trash import TrashRepository, trash_repository

__all__ = [
    "FolderRepository",
    "folder_repository",
    "FileRepository",
    "file_repository",
    "TagRepository",
    "tag_repository",
    "HistoryRepository",
    "history_repository",
    "TrashRepository",
    "trash_repository",
]
