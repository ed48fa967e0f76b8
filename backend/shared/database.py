"""
Database engine and session lifecycle.

One pooled engine is shared process-wide. Each request opens its own
session through get_db() and always hands the connection back to the pool,
whether the handler succeeds, raises a business error, or crashes.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM tables."""

    pass


# Module-level engine cache
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def create_db_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite (used in tests and local experiments) needs check_same_thread
    disabled because FastAPI runs sync dependencies in a threadpool.
    """
    settings = get_settings()
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=settings.database_echo,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        echo=settings.database_echo,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
    )


def get_engine() -> Engine:
    """Get the process-wide engine, creating it on first use."""
    global _engine, _session_factory

    if _engine is None:
        settings = get_settings()
        _engine = create_db_engine(settings.database_url)
        _session_factory = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False)

    return _engine


def get_session_factory() -> sessionmaker:
    """Get the session factory bound to the shared engine."""
    get_engine()
    assert _session_factory is not None
    return _session_factory


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency yielding a session for one request.

    The session is closed in `finally`, which returns its connection to the
    pool on every exit path.
    """
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """
    Run a unit of work: commit on success, roll back on any exception.

    Usage:
        with transaction(self._session):
            prefs = repo.get_for_update(user_id)
            prefs.enabled_themes = [...]
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def init_db(engine: Optional[Engine] = None) -> None:
    """Create all tables known to Base.metadata."""
    # Imported for their side effect of registering tables on Base.metadata
    from modules.auth import tables as _auth_tables  # noqa: F401
    from modules.preferences import tables as _preference_tables  # noqa: F401

    target = engine or get_engine()
    Base.metadata.create_all(bind=target)
    logger.info("Database schema ensured")


def check_connection(engine: Optional[Engine] = None) -> bool:
    """Return True when the database answers a trivial query."""
    target = engine or get_engine()
    try:
        with target.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("Database connectivity check failed")
        return False


def reset_engine() -> None:
    """
    Dispose and forget the cached engine.

    Useful for testing or when configuration changes.
    """
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
