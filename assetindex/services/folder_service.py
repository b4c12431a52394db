"""Folder mutation engine.

Create, update, move, delete and reorder folders while keeping the parent
graph a forest. Every successful write invalidates the folder tree cache;
failed writes leave it untouched.

Delete lifecycle of a folder:

    Active --delete(force=False), non-empty--> PendingCascadeConfirmation
    Active --delete(force=True) or empty-----> Deleted
    PendingCascadeConfirmation --delete(force=True)--> Deleted

PendingCascadeConfirmation is not stored anywhere: it is the
FolderNotEmptyError answer, which carries the recursive content counts the
caller needs to confirm. Deleted is terminal; ids are never reused.

The cascade runs inside the caller's session and is committed once, so a
failure part way through rolls back the whole subtree delete before
PartialCascadeFailureError is raised.
"""

import re
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from assetindex.db.models import Folder
from assetindex.errors import (
    CyclicMoveError,
    FolderNotEmptyError,
    InvalidTargetError,
    NotFoundError,
    PartialCascadeFailureError,
    ValidationError,
)
from assetindex.models.schemas import (
    FolderContentStats,
    FolderDeleteResult,
    FolderOrder,
    FolderOut,
    FolderTreeNode,
    HistoryAction,
)
from assetindex.repositories import (
    FileRepository,
    FolderRepository,
    TrashRepository,
    file_repository,
    folder_repository,
    trash_repository,
)
from assetindex.services.descendants import DescendantResolver, descendant_resolver, post_order
from assetindex.services.folder_tree_cache import FolderTreeCache, build_child_map, folder_tree_cache
from assetindex.services.history import HistoryService, folder_label, history_service
from assetindex.utils import get_logger, get_timestamp_ms

logger = get_logger(__name__)

FOLDER_COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")
MAX_FOLDER_NAME_LENGTH = 255
MAX_ICON_LENGTH = 50


class FolderService:
    """Folder mutations and tree reads."""

    def __init__(
        self,
        folder_repo: FolderRepository = folder_repository,
        file_repo: FileRepository = file_repository,
        trash_repo: TrashRepository = trash_repository,
        history_svc: HistoryService = history_service,
        cache: FolderTreeCache = folder_tree_cache,
        resolver: DescendantResolver | None = None,
    ):
        self._folder_repo = folder_repo
        self._file_repo = file_repo
        self._trash_repo = trash_repo
        self._history_svc = history_svc
        self._cache = cache
        if resolver is None:
            resolver = descendant_resolver if cache is folder_tree_cache else DescendantResolver(cache)
        self._resolver = resolver

    # ==================== Reads ====================

    def get(self, db: Session, folder_id: str) -> Folder:
        """Folder by ID.

        Raises:
            NotFoundError: If the folder doesn't exist
        """
        folder = self._folder_repo.get_by_id(db, folder_id) if folder_id else None
        if folder is None:
            raise NotFoundError("Folder", folder_id)
        return folder

    def get_tree(self, db: Session) -> list[FolderTreeNode]:
        """Whole folder forest as nested nodes, built from a single scan.

        Siblings are ordered by sort order then name; each node carries the
        number of files directly inside it.
        """
        folders = self._folder_repo.get_all_ordered(db)
        file_counts = self._file_repo.count_by_folder(db)

        nodes: dict[str, FolderTreeNode] = {}
        for folder in folders:
            nodes[folder.id] = FolderTreeNode(
                **FolderOut.from_model(folder).model_dump(),
                fileCount=file_counts.get(folder.id, 0),
            )

        roots: list[FolderTreeNode] = []
        for folder in folders:
            node = nodes[folder.id]
            parent = nodes.get(folder.parent_id) if folder.parent_id else None
            if parent is None:
                roots.append(node)
            else:
                parent.children.append(node)
        return roots

    def content_stats(self, db: Session, folder_id: str) -> FolderContentStats:
        """Recursive file and subfolder counts below a folder.

        Read from the store rather than the cache so the numbers shown before a
        cascade match what the cascade will remove.
        """
        self.get(db, folder_id)
        subtree = self._subtree_post_order(db, folder_id)
        return FolderContentStats(
            totalFiles=self._file_repo.count_in_folders(db, subtree),
            totalFolders=len(subtree) - 1,
        )

    # ==================== Create / update ====================

    def create(
        self,
        db: Session,
        name: str,
        parent_id: str | None = None,
        color: str | None = None,
        icon: str | None = None,
        actor_id: str | None = None,
    ) -> Folder:
        """Create a folder appended after its siblings.

        Raises:
            ValidationError: Empty or too long name, malformed color
            NotFoundError: Parent folder doesn't exist
        """
        name = self._validate_name(name)
        self._validate_appearance(color, icon)

        parent = self.get(db, parent_id) if parent_id is not None else None
        sort_order = self._folder_repo.next_sort_order(db, parent_id)

        folder = self._folder_repo.create_folder(
            db,
            name=name,
            parent_id=parent_id,
            color=color,
            icon=icon,
            sort_order=sort_order,
        )
        self._cache.invalidate()
        logger.info(f"Folder created: {folder.id} ({folder.name}) under {parent_id or 'root'}")

        self._history_svc.record(
            db,
            folder.id,
            folder.name,
            HistoryAction.edit,
            {"type": "create", "parent": folder_label(parent)},
            actor_id=actor_id,
            is_folder=True,
        )
        return folder

    def update(
        self,
        db: Session,
        folder_id: str,
        name: str | None = None,
        color: str | None = None,
        icon: str | None = None,
        actor_id: str | None = None,
    ) -> Folder:
        """Rename a folder and/or change its appearance.

        Re-parenting goes through move() so the cycle checks always apply.
        """
        folder = self.get(db, folder_id)
        if name is not None:
            name = self._validate_name(name)
        self._validate_appearance(color, icon)

        old_name, old_color, old_icon = folder.name, folder.color, folder.icon
        updates: dict[str, Any] = {}
        if name is not None and name != old_name:
            updates["name"] = name
        if color is not None and color != old_color:
            updates["color"] = color
        if icon is not None and icon != old_icon:
            updates["icon"] = icon
        if not updates:
            return folder

        updates["updated_at"] = get_timestamp_ms()
        folder = self._folder_repo.update(db, folder, updates)
        self._cache.invalidate()

        if "name" in updates:
            self._history_svc.record(
                db,
                folder.id,
                folder.name,
                HistoryAction.rename,
                {"from": old_name, "to": folder.name},
                actor_id=actor_id,
                is_folder=True,
            )
        if "color" in updates or "icon" in updates:
            details: dict[str, Any] = {"type": "appearance"}
            if "color" in updates:
                details["color"] = {"from": old_color, "to": updates["color"]}
            if "icon" in updates:
                details["icon"] = {"from": old_icon, "to": updates["icon"]}
            self._history_svc.record(
                db, folder.id, folder.name, HistoryAction.edit, details, actor_id=actor_id, is_folder=True
            )
        return folder

    # ==================== Move ====================

    def move(
        self,
        db: Session,
        folder_id: str,
        new_parent_id: str | None,
        new_sort_order: int | None = None,
        actor_id: str | None = None,
    ) -> Folder:
        """Move a folder under a new parent (None = root).

        Args:
            db: Database session
            folder_id: Folder to move
            new_parent_id: Target parent, None for the root level
            new_sort_order: Position among new siblings; appended when omitted
            actor_id: User performing the move

        Raises:
            InvalidTargetError: new_parent_id is the folder itself
            NotFoundError: Folder or target parent doesn't exist
            CyclicMoveError: Target parent is a descendant of the folder
        """
        if new_parent_id is not None and new_parent_id == folder_id:
            raise InvalidTargetError(folder_id)

        folder = self.get(db, folder_id)
        new_parent = None
        if new_parent_id is not None:
            new_parent = self.get(db, new_parent_id)
            # The cached map may lag moves made elsewhere; the stored chain can't
            if self._resolver.is_descendant(db, folder_id, new_parent_id) or self._has_ancestor(
                db, new_parent_id, folder_id
            ):
                raise CyclicMoveError(folder_id, new_parent_id)

        if new_sort_order is None:
            new_sort_order = self._folder_repo.next_sort_order(db, new_parent_id)
        elif isinstance(new_sort_order, bool) or not isinstance(new_sort_order, int):
            raise ValidationError("sortOrder must be an integer", sortOrder=new_sort_order)

        old_parent_id = folder.parent_id
        old_parent = folder.parent
        old_parent_name = folder_label(old_parent)

        folder = self._folder_repo.update(
            db,
            folder,
            {"parent_id": new_parent_id, "sort_order": new_sort_order, "updated_at": get_timestamp_ms()},
        )
        self._cache.invalidate()

        if old_parent_id != new_parent_id:
            logger.info(f"Folder moved: {folder_id} from {old_parent_id or 'root'} to {new_parent_id or 'root'}")
            self._history_svc.record(
                db,
                folder.id,
                folder.name,
                HistoryAction.move,
                {"fromFolder": old_parent_name, "toFolder": folder_label(new_parent)},
                actor_id=actor_id,
                is_folder=True,
            )
        return folder

    def _has_ancestor(self, db: Session, folder_id: str, ancestor_id: str) -> bool:
        """True if ancestor_id lies on folder_id's stored parent chain."""
        visited = {folder_id}
        current = self._folder_repo.get_parent_id(db, folder_id)
        while current is not None and current not in visited:
            if current == ancestor_id:
                return True
            visited.add(current)
            current = self._folder_repo.get_parent_id(db, current)
        return False

    # ==================== Delete ====================

    def delete(
        self,
        db: Session,
        folder_id: str,
        force: bool = False,
        actor_id: str | None = None,
    ) -> FolderDeleteResult:
        """Delete a folder, cascading into its contents when forced.

        Raises:
            NotFoundError: Folder doesn't exist
            FolderNotEmptyError: Folder has content and force is False; nothing
                was changed and the error carries the recursive counts
            PartialCascadeFailureError: The cascade failed and was rolled back
        """
        folder = self.get(db, folder_id)
        folder_name = folder.name
        parent_name = folder_label(folder.parent)

        direct_files = self._file_repo.count_in_folder(db, folder_id)
        direct_children = self._folder_repo.count_children(db, folder_id)
        has_content = direct_files > 0 or direct_children > 0

        if has_content and not force:
            stats = self.content_stats(db, folder_id)
            raise FolderNotEmptyError(folder_id, stats.totalFiles, stats.totalFolders)

        if has_content:
            result = self._cascade_delete(db, folder_id, actor_id)
        else:
            try:
                self._folder_repo.delete_one(db, folder_id)
                db.commit()
            except Exception:
                db.rollback()
                raise
            result = FolderDeleteResult(folderId=folder_id, filesDeleted=0, foldersDeleted=1, cascade=False)

        self._cache.invalidate()
        logger.info(
            f"Folder deleted: {folder_id} ({result.filesDeleted} files, {result.foldersDeleted} folders, "
            f"cascade={result.cascade})"
        )

        self._history_svc.record(
            db,
            folder_id,
            folder_name,
            HistoryAction.delete,
            {
                "parent": parent_name,
                "cascade": result.cascade,
                "filesDeleted": result.filesDeleted,
                "foldersDeleted": result.foldersDeleted,
            },
            actor_id=actor_id,
            is_folder=True,
        )
        return result

    def _cascade_delete(self, db: Session, folder_id: str, actor_id: str | None) -> FolderDeleteResult:
        """Remove a folder's whole subtree, deepest folders first."""
        try:
            subtree = self._subtree_post_order(db, folder_id)
            files = self._file_repo.get_in_folders(db, subtree)
            file_ids = [f.id for f in files]

            # Snapshots first: they read the live rows
            for file in files:
                self._trash_repo.snapshot_file(db, file, folder_name=folder_label(file.folder), deleted_by=actor_id)

            # Tag links before files to satisfy the foreign keys
            self._file_repo.remove_tag_links(db, file_ids)
            self._file_repo.delete_by_ids(db, file_ids)

            for subfolder_id in subtree:
                self._folder_repo.delete_one(db, subfolder_id)

            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Cascade delete of folder {folder_id} failed, rolled back: {e}")
            raise PartialCascadeFailureError(folder_id, e) from e

        return FolderDeleteResult(
            folderId=folder_id,
            filesDeleted=len(file_ids),
            foldersDeleted=len(subtree),
            cascade=True,
        )

    def _subtree_post_order(self, db: Session, folder_id: str) -> list[str]:
        """Subtree ids from a fresh scan, descendants before ancestors."""
        child_map = build_child_map(self._folder_repo.get_parent_links(db))
        return post_order(child_map, folder_id)

    # ==================== Reorder ====================

    def reorder(self, db: Session, orders: Iterable[FolderOrder | dict[str, Any]]) -> int:
        """Apply sort orders to many folders in one batched write.

        All or nothing: unknown ids are rejected before anything is written,
        and the batch is committed once.

        Returns:
            Number of folders updated

        Raises:
            ValidationError: Empty batch or malformed entries
            NotFoundError: Some ids don't exist
        """
        parsed: list[FolderOrder] = []
        for item in orders:
            if isinstance(item, FolderOrder):
                parsed.append(item)
                continue
            try:
                parsed.append(FolderOrder.model_validate(item))
            except PydanticValidationError as e:
                raise ValidationError("Invalid reorder entry", entry=str(item), reason=str(e)) from e

        if not parsed:
            raise ValidationError("Reorder batch is empty")

        # Later entries for the same id win
        by_id = {order.id: order.sortOrder for order in parsed}
        missing = sorted(set(by_id) - self._folder_repo.get_existing_ids(db, by_id))
        if missing:
            raise NotFoundError("Folder", missing)

        try:
            updated = self._folder_repo.bulk_update_sort_order(db, by_id.items())
            db.commit()
        except Exception:
            db.rollback()
            raise

        self._cache.invalidate()
        logger.info(f"Folders reordered: {updated}")
        return updated

    # ==================== Validation ====================

    @staticmethod
    def _validate_name(name: Any) -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Folder name cannot be empty")
        name = name.strip()
        if len(name) > MAX_FOLDER_NAME_LENGTH:
            raise ValidationError(f"Folder name is limited to {MAX_FOLDER_NAME_LENGTH} characters")
        return name

    @staticmethod
    def _validate_appearance(color: str | None, icon: str | None) -> None:
        if color is not None and not FOLDER_COLOR_PATTERN.match(color):
            raise ValidationError("Folder color must be #RRGGBB", color=color)
        if icon is not None and len(icon) > MAX_ICON_LENGTH:
            raise ValidationError(f"Folder icon is limited to {MAX_ICON_LENGTH} characters")


# Singleton instance
folder_service = FolderService()
