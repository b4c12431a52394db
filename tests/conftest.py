#!/usr/bin/env python
"""
pytest configuration file

This file contains shared fixtures for all tests.
"""

import os

# Must be set before the package is imported: settings pick an in-memory
# database and no workspace directory is created.
os.environ.setdefault("ASSETINDEX_ENVIRONMENT", "test")

import pytest  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from assetindex.db.models import Base  # noqa: E402
from assetindex.db.session import IN_MEMORY_SQLITE_URL, create_engine_for, create_session_factory  # noqa: E402
from assetindex.repositories import file_repository, folder_repository  # noqa: E402
from assetindex.services.descendants import DescendantResolver  # noqa: E402
from assetindex.services.file_query import FileQueryService  # noqa: E402
from assetindex.services.file_service import FileService  # noqa: E402
from assetindex.services.folder_service import FolderService  # noqa: E402
from assetindex.services.folder_tree_cache import FolderTreeCache  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def db_session():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine_for(IN_MEMORY_SQLITE_URL)
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = create_session_factory(engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tree_cache(clock: FakeClock) -> FolderTreeCache:
    """Fresh tree cache per test (the module singleton is shared process-wide)."""
    return FolderTreeCache(ttl_seconds=30.0, clock=clock)


@pytest.fixture
def resolver(tree_cache: FolderTreeCache) -> DescendantResolver:
    return DescendantResolver(tree_cache)


@pytest.fixture
def folder_service(tree_cache: FolderTreeCache, resolver: DescendantResolver) -> FolderService:
    return FolderService(cache=tree_cache, resolver=resolver)


@pytest.fixture
def file_query_service(resolver: DescendantResolver) -> FileQueryService:
    return FileQueryService(resolver=resolver)


@pytest.fixture
def file_service() -> FileService:
    return FileService()


@pytest.fixture
def make_folder(db_session: Session):
    """Insert a folder directly through the repository (no cache invalidation)."""

    def _make(name: str, parent_id: str | None = None, sort_order: int | None = None):
        if sort_order is None:
            sort_order = folder_repository.next_sort_order(db_session, parent_id)
        return folder_repository.create_folder(db_session, name=name, parent_id=parent_id, sort_order=sort_order)

    return _make


@pytest.fixture
def make_file(db_session: Session):
    """Insert a file record."""

    def _make(original_name: str, folder_id: str | None = None, **extra):
        return file_repository.create_file(db_session, original_name=original_name, folder_id=folder_id, **extra)

    return _make
