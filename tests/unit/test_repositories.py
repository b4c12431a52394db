"""Tests for Repository layer.

These tests use SQLite in-memory database for fast testing
without requiring a MySQL server.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from assetindex.db.models import File, Folder
from assetindex.repositories.base import BaseRepository
from assetindex.repositories.file import FileRepository
from assetindex.repositories.folder import FolderRepository
from assetindex.repositories.tag import TagRepository
from assetindex.utils import get_timestamp_ms


class TestBaseRepository:
    """Test BaseRepository CRUD operations."""

    def test_create_and_get(self, db_session: Session):
        """Create and retrieve entity."""
        repo = BaseRepository(Folder)
        now = get_timestamp_ms()

        folder = repo.create(
            db_session,
            {"id": "folder_test001", "name": "Test", "sort_order": 0, "created_at": now, "updated_at": now},
        )
        assert folder.id == "folder_test001"

        retrieved = repo.get_by_id(db_session, "folder_test001")
        assert retrieved is not None
        assert retrieved.name == "Test"

    def test_get_nonexistent(self, db_session: Session):
        """Get non-existent entity returns None."""
        repo = BaseRepository(Folder)
        assert repo.get_by_id(db_session, "nonexistent") is None
        assert repo.exists(db_session, "nonexistent") is False

    def test_update(self, db_session: Session):
        """Update entity."""
        repo = FolderRepository()
        folder = repo.create_folder(db_session, "Before")

        updated = repo.update(db_session, folder, {"name": "After"})
        assert updated.name == "After"
        assert repo.get_by_id(db_session, folder.id).name == "After"

    def test_delete(self, db_session: Session):
        """Delete entity."""
        repo = FolderRepository()
        folder = repo.create_folder(db_session, "Doomed")

        assert repo.delete(db_session, folder.id) is True
        assert repo.get_by_id(db_session, folder.id) is None
        assert repo.delete(db_session, folder.id) is False

    def test_create_without_commit_is_rolled_back(self, db_session: Session):
        """commit=False only flushes into the open transaction."""
        repo = FolderRepository()
        folder = repo.create_folder(db_session, "Pending", commit=False)
        folder_id = folder.id
        db_session.rollback()

        assert repo.get_by_id(db_session, folder_id) is None

    def test_get_many_and_existing_ids(self, db_session: Session):
        repo = FolderRepository()
        a = repo.create_folder(db_session, "A")
        b = repo.create_folder(db_session, "B")

        assert {f.id for f in repo.get_many(db_session, [a.id, b.id, "ghost"])} == {a.id, b.id}
        assert repo.get_existing_ids(db_session, [a.id, "ghost"]) == {a.id}
        assert repo.get_many(db_session, []) == []


class TestFolderRepository:
    """Test FolderRepository operations."""

    def test_create_folder_defaults(self, db_session: Session):
        repo = FolderRepository()
        folder = repo.create_folder(db_session, "Inbox")

        assert folder.id.startswith("folder_")
        assert folder.color == "#4a9eff"
        assert folder.parent_id is None
        assert folder.created_at == folder.updated_at

    def test_next_sort_order(self, db_session: Session):
        repo = FolderRepository()
        parent = repo.create_folder(db_session, "Parent")
        assert repo.next_sort_order(db_session, parent.id) == 0

        repo.create_folder(db_session, "Child", parent_id=parent.id, sort_order=4)
        assert repo.next_sort_order(db_session, parent.id) == 5
        # Root level is independent of the children
        assert repo.next_sort_order(db_session, None) == 1

    def test_parent_links_in_display_order(self, db_session: Session):
        repo = FolderRepository()
        parent = repo.create_folder(db_session, "Parent")
        repo.create_folder(db_session, "Zed", parent_id=parent.id, sort_order=0)
        repo.create_folder(db_session, "Amy", parent_id=parent.id, sort_order=0)
        repo.create_folder(db_session, "First", parent_id=parent.id, sort_order=-1)

        children = [
            db_session.get(Folder, folder_id).name
            for folder_id, parent_id in repo.get_parent_links(db_session)
            if parent_id == parent.id
        ]
        assert children == ["First", "Amy", "Zed"]

    def test_count_children(self, db_session: Session):
        repo = FolderRepository()
        parent = repo.create_folder(db_session, "Parent")
        repo.create_folder(db_session, "A", parent_id=parent.id)
        repo.create_folder(db_session, "B", parent_id=parent.id)

        assert repo.count_children(db_session, parent.id) == 2
        assert len(repo.get_child_ids(db_session, parent.id)) == 2

    def test_bulk_update_sort_order(self, db_session: Session):
        repo = FolderRepository()
        a = repo.create_folder(db_session, "A")
        b = repo.create_folder(db_session, "B")

        assert repo.bulk_update_sort_order(db_session, [(a.id, 10), (b.id, 20)]) == 2
        db_session.commit()

        assert repo.get_by_id(db_session, a.id).sort_order == 10
        assert repo.get_by_id(db_session, b.id).sort_order == 20


class TestFileRepository:
    """Test FileRepository operations."""

    def test_create_file_defaults(self, db_session: Session):
        repo = FileRepository()
        file = repo.create_file(db_session, "photo.jpg", mime_type="image/jpeg", size=123)

        assert file.id.startswith("file_")
        assert file.name == "photo.jpg"
        assert file.storage_path == f"/uploads/{file.id}"
        assert file.rating == 0

    def test_counts(self, db_session: Session):
        folders = FolderRepository()
        repo = FileRepository()
        a = folders.create_folder(db_session, "A")
        b = folders.create_folder(db_session, "B")
        repo.create_file(db_session, "1.jpg", folder_id=a.id)
        repo.create_file(db_session, "2.jpg", folder_id=a.id)
        repo.create_file(db_session, "3.jpg", folder_id=b.id)
        repo.create_file(db_session, "4.jpg")

        assert repo.count_in_folder(db_session, a.id) == 2
        assert repo.count_in_folders(db_session, [a.id, b.id]) == 3
        assert repo.count_in_folders(db_session, []) == 0
        assert repo.count_by_folder(db_session) == {a.id: 2, b.id: 1}

    def test_find_page_with_total(self, db_session: Session):
        repo = FileRepository()
        for i in range(5):
            repo.create_file(db_session, f"{i}.jpg", id=f"file_{i}", created_at=i)

        files, total = repo.find_page_with_total(db_session, [], [File.created_at.asc()], offset=2, limit=2)
        assert [f.id for f in files] == ["file_2", "file_3"]
        assert total == 5

        files, total = repo.find_page_with_total(
            db_session, [File.created_at >= 3], [File.created_at.asc()], offset=0, limit=10
        )
        assert total == 2

    def test_find_bounded(self, db_session: Session):
        repo = FileRepository()
        for i in range(5):
            repo.create_file(db_session, f"{i}.jpg", id=f"file_{i}")

        files = repo.find_bounded(db_session, [], [File.id.desc()], cap=3)
        assert [f.id for f in files] == ["file_4", "file_3", "file_2"]

    def test_move_and_delete(self, db_session: Session):
        folders = FolderRepository()
        repo = FileRepository()
        target = folders.create_folder(db_session, "Target")
        file = repo.create_file(db_session, "a.jpg")

        repo.move_to_folder(db_session, [file.id], target.id)
        db_session.commit()
        assert repo.get_by_id(db_session, file.id).folder_id == target.id

        repo.delete_by_ids(db_session, [file.id])
        db_session.commit()
        assert db_session.execute(select(File)).scalars().all() == []


class TestTagRepository:
    """Test TagRepository operations."""

    def test_attach_is_idempotent(self, db_session: Session):
        files = FileRepository()
        tags = TagRepository()
        file = files.create_file(db_session, "a.jpg")
        tag = tags.create_tag(db_session, "red")

        assert tags.attach(db_session, file.id, tag.id) is True
        assert tags.attach(db_session, file.id, tag.id) is False
        assert tags.get_tag_ids_for_file(db_session, file.id) == [tag.id]

    def test_remove_tag_links(self, db_session: Session):
        files = FileRepository()
        tags = TagRepository()
        file = files.create_file(db_session, "a.jpg")
        tag = tags.create_tag(db_session, "red")
        tags.attach(db_session, file.id, tag.id)

        files.remove_tag_links(db_session, [file.id])
        db_session.commit()
        assert tags.get_tag_ids_for_file(db_session, file.id) == []
