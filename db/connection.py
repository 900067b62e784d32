"""Engine and session handling for the payout store.

The engine is built lazily from `get_settings().database` and shared by every
worker in the process. Tests that point the store somewhere else call
`reset_engine()` after changing settings.
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import DatabaseSettings, get_settings
from db.models import Base

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _sqlite_on_connect(dbapi_conn, connection_record) -> None:
    # workers and the payout CLI may hit the same file concurrently
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA journal_mode=WAL")
    cur.execute("PRAGMA busy_timeout=30000")
    cur.close()


def _build_engine(db: DatabaseSettings, echo: bool) -> Engine:
    if db._use_postgres():
        return create_engine(
            db.url,
            echo=echo,
            pool_size=db.pool_size,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
            pool_pre_ping=True,
        )
    engine = create_engine(db.url, echo=echo)
    event.listen(engine, "connect", _sqlite_on_connect)
    return engine


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = _build_engine(settings.database, settings.debug)
        logger.info("Database engine created: %s", settings.database.db_info_for_logging())
    return _engine


def _get_session_factory() -> sessionmaker[Session]:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _session_factory


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Unit of work: commits on clean exit, rolls back on any exception."""
    session = _get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create the bond pool and fee tables if they do not exist yet."""
    Base.metadata.create_all(get_engine())


def reset_engine() -> None:
    """Dispose the shared engine so the next call rebuilds it from settings."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
