"""Tests for database session helpers, logging and id utilities."""

import logging
from logging.handlers import RotatingFileHandler

import pytest
from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from assetindex.db import (
    Base,
    File,
    Folder,
    check_connection,
    create_engine_for,
    create_session_factory,
    engine,
    get_db,
    get_db_session,
    init_db,
)
from assetindex.db.session import normalize_database_url
from assetindex.utils import generate_id, get_logger, get_timestamp_ms, is_valid_id, setup_logging


class TestDatabaseSession:
    """Module-level engine in the test environment (in-memory SQLite)."""

    def test_engine_is_in_memory_sqlite(self):
        assert engine.url.get_backend_name() == "sqlite"
        assert engine.url.database == ":memory:"

    def test_check_connection(self):
        assert check_connection() is True

    def test_init_db_and_session_commit(self):
        init_db()
        try:
            now = get_timestamp_ms()
            with get_db_session() as db:
                db.add(Folder(id="folder_session", name="S", sort_order=0, created_at=now, updated_at=now))

            with get_db_session() as db:
                assert db.execute(select(Folder.name).where(Folder.id == "folder_session")).scalar_one() == "S"
        finally:
            Base.metadata.drop_all(bind=engine)

    def test_session_rolls_back_on_error(self):
        init_db()
        try:
            now = get_timestamp_ms()
            try:
                with get_db_session() as db:
                    db.add(Folder(id="folder_rollback", name="R", sort_order=0, created_at=now, updated_at=now))
                    db.flush()
                    raise RuntimeError("abort")
            except RuntimeError:
                pass

            db = next(get_db())
            try:
                assert db.get(Folder, "folder_rollback") is None
            finally:
                db.close()
        finally:
            Base.metadata.drop_all(bind=engine)


class TestEngineFactory:
    """create_engine_for / create_session_factory."""

    def test_in_memory_engine_shares_one_connection(self):
        memory_engine = create_engine_for("sqlite:///:memory:")
        try:
            assert isinstance(memory_engine.pool, StaticPool)
            init_db(bind=memory_engine)
            SessionFactory = create_session_factory(memory_engine)
            now = get_timestamp_ms()

            with SessionFactory() as db:
                db.add(Folder(id="folder_shared", name="Shared", sort_order=0, created_at=now, updated_at=now))
                db.commit()
            with SessionFactory() as db:
                assert db.get(Folder, "folder_shared") is not None
        finally:
            memory_engine.dispose()

    def test_sqlite_foreign_keys_enforced(self):
        memory_engine = create_engine_for("sqlite:///:memory:")
        try:
            with memory_engine.connect() as conn:
                assert conn.execute(text("PRAGMA foreign_keys")).scalar_one() == 1

            init_db(bind=memory_engine)
            now = get_timestamp_ms()
            with create_session_factory(memory_engine)() as db:
                db.add(
                    File(
                        id="file_orphan",
                        name="a.jpg",
                        original_name="a.jpg",
                        storage_path="/uploads/file_orphan",
                        mime_type="image/jpeg",
                        folder_id="folder_missing",
                        created_at=now,
                        updated_at=now,
                    )
                )
                with pytest.raises(IntegrityError):
                    db.commit()
        finally:
            memory_engine.dispose()

    def test_sqlite_file_engine_ignores_pool_options(self, tmp_path):
        file_engine = create_engine_for(f"sqlite:///{tmp_path / 'index.db'}", pool_size=5, max_overflow=2)
        try:
            assert not isinstance(file_engine.pool, StaticPool)
            with file_engine.connect() as conn:
                assert conn.execute(text("SELECT 1")).scalar_one() == 1
        finally:
            file_engine.dispose()

    def test_mysql_url_uses_pymysql(self):
        assert normalize_database_url("mysql://u:p@db:3306/assets") == "mysql+pymysql://u:p@db:3306/assets"
        assert normalize_database_url("mysql+pymysql://u:p@db/assets") == "mysql+pymysql://u:p@db/assets"
        assert normalize_database_url("sqlite:///:memory:") == "sqlite:///:memory:"


class TestLogging:
    """Namespaced loggers."""

    def test_get_logger_prefixes_namespace(self):
        assert get_logger("some.module").name == "assetindex.some.module"
        assert get_logger("assetindex.services.x").name == "assetindex.services.x"

    def test_package_logger_has_console_handler(self):
        get_logger("anything")
        package_logger = logging.getLogger("assetindex")
        assert any(isinstance(h, logging.StreamHandler) for h in package_logger.handlers)
        assert package_logger.propagate is False

    def test_setup_logging_adds_rotating_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr("assetindex.utils.logging._get_logs_root", lambda: tmp_path)
        package_logger = logging.getLogger("assetindex")
        before = list(package_logger.handlers)

        try:
            logger = setup_logging("content-index-test")
            assert logger.name == "assetindex.content-index-test"
            added = [h for h in package_logger.handlers if h not in before]
            assert len(added) == 1
            assert isinstance(added[0], RotatingFileHandler)
            assert added[0].baseFilename == str(tmp_path / "content-index-test.log")
        finally:
            for handler in package_logger.handlers[:]:
                if handler not in before:
                    package_logger.removeHandler(handler)
                    handler.close()


class TestIds:
    """ID generation and validation."""

    def test_generate_id_prefix_and_shape(self):
        folder_id = generate_id("folder")
        assert folder_id.startswith("folder_")
        assert is_valid_id(folder_id)

    def test_generate_id_unique(self):
        assert len({generate_id("file") for _ in range(200)}) == 200

    def test_is_valid_id(self):
        assert is_valid_id("tag-1_A")
        assert not is_valid_id("")
        assert not is_valid_id("a b")
        assert not is_valid_id("x" * 65)
        assert not is_valid_id(None)
