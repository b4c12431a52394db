"""Engine and session helpers for the content index store.

`create_engine_for` builds an engine for any supported URL (SQLite file,
in-memory SQLite, MySQL); the module-level `engine` is the one configured by
settings. Services never open sessions themselves: callers pass one in.

Usage:
    from assetindex.db.session import get_db_session

    with get_db_session() as db:
        result = folder_service.delete(db, folder_id, force=True)
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from assetindex.settings import settings
from assetindex.utils import get_logger

logger = get_logger(__name__)

IN_MEMORY_SQLITE_URL = "sqlite:///:memory:"


def normalize_database_url(url: str) -> str:
    """Pin plain mysql:// URLs to the PyMySQL driver."""
    if url.startswith("mysql://"):
        return url.replace("mysql://", "mysql+pymysql://", 1)
    return url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_for(url: str, echo: bool = False, **pool_options: Any) -> Engine:
    """Engine for a database URL with the store's connection rules applied.

    SQLite connections enforce foreign keys (tag links, parent folders) and
    an in-memory database is held on a single shared connection. Other
    backends receive ``pool_options`` (pool_size, max_overflow, ...).
    """
    url = normalize_database_url(url)
    kwargs: dict[str, Any] = {"echo": echo}

    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if url == IN_MEMORY_SQLITE_URL:
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(pool_options)

    new_engine = create_engine(url, **kwargs)
    if is_sqlite:
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


def create_session_factory(bind: Engine) -> sessionmaker:
    """Session factory with explicit commits, as every service expects."""
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


_database_url = normalize_database_url(settings.get_database_url_auto())

if _database_url.startswith("sqlite"):
    logger.info(f"Using SQLite database: {_database_url}")
else:
    logger.info(f"Using MySQL database: {_database_url.split('@')[1] if '@' in _database_url else 'unknown'}")

engine: Engine = create_engine_for(
    _database_url,
    echo=settings.debug and settings.environment == "local-dev",
    pool_size=settings.mysql_pool_size,
    max_overflow=settings.mysql_max_overflow,
    pool_pre_ping=settings.mysql_pool_pre_ping,
    pool_recycle=3600,
)

SessionLocal = create_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """Yield a session and close it afterwards (no implicit commit)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Unit of work: commit on success, roll back on any exception."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_connection() -> bool:
    """True if the configured database answers a trivial query."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False


def init_db(bind: Engine | None = None) -> None:
    """Create the content index tables that don't exist yet."""
    from assetindex.db.models import Base

    try:
        Base.metadata.create_all(bind=bind or engine)
        logger.info("Database tables initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


def close_db() -> None:
    """Dispose of the configured engine's pooled connections."""
    engine.dispose()
    logger.info("Database connections closed")
