"""Database module for the content index.

Components:
- models: SQLAlchemy ORM schema (folders, files, tags, history, trash)
- session: engine, session factory and lifecycle helpers
"""

from assetindex.db.models import (
    Base,
    File,
    FileTag,
    Folder,
    HistoryRecord,
    Tag,
    TrashItem,
)
from assetindex.db.session import (
    SessionLocal,
    check_connection,
    close_db,
    create_engine_for,
    create_session_factory,
    engine,
    get_db,
    get_db_session,
    init_db,
)

__all__ = [
    # Connection
    "engine",
    "SessionLocal",
    "create_engine_for",
    "create_session_factory",
    "get_db",
    "get_db_session",
    "init_db",
    "close_db",
    "check_connection",
    # Models
    "Base",
    "Folder",
    "File",
    "Tag",
    "FileTag",
    "HistoryRecord",
    "TrashItem",
]
