"""Database engine, session management and store health."""
import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import Engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from news_agg.config import Settings
from news_agg.db.models import (  # noqa: F401  # pylint: disable=unused-import
    ApiLog, Article, Category, NewsSource, Preference, SavedArticle, User)

logger = logging.getLogger(__name__)


def create_db_engine(settings: Settings) -> Engine:
    """Create the engine with a bounded pool (pool options do not apply to SQLite)."""
    if settings.is_sqlite:
        engine = create_engine(
            settings.database_url,
            echo=settings.sql_echo,
            connect_args={"check_same_thread": False},
        )
        enable_sqlite_foreign_keys(engine)
        return engine
    return create_engine(
        settings.database_url,
        echo=settings.sql_echo,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
    )


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, _):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@contextmanager
def session_scope(engine: Engine) -> Generator[Session, None, None]:
    """Yield a database session; commits on success, rolls back on error."""
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> None:
    """Create all tables. Safe to call on startup (idempotent for existing tables)."""
    SQLModel.metadata.create_all(engine)


class StoreHealth:
    """Process-wide view of backing-store connectivity.

    Written only by the startup probe; everything else reads status().
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._connected = False
        self._last_error: str | None = None

    def mark_connected(self) -> None:
        with self._lock:
            self._connected = True
            self._last_error = None

    def mark_failed(self, error: str) -> None:
        with self._lock:
            self._connected = False
            self._last_error = error

    def status(self) -> dict:
        with self._lock:
            return {"connected": self._connected, "last_error": self._last_error}


def probe_connection(engine: Engine, health: StoreHealth) -> bool:
    """Run SELECT 1 against the store and record the outcome in health."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Unable to connect to database: %s", exc)
        health.mark_failed(str(exc))
        return False
    logger.info("Database connection established")
    health.mark_connected()
    return True
