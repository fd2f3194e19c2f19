"""SQLite engine, session factory and transaction scopes."""

import logging
import os
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".wine_journal" / "wine_journal.db"

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_database_url(db_path: Path | str | None = None) -> str:
    """
    Resolve the SQLite URL for the journal database.

    Precedence: explicit ``db_path``, then DATABASE_URL (a full sqlite URL
    or a bare file path), then ``~/.wine_journal/wine_journal.db``.
    """
    if db_path is None:
        configured = os.environ.get("DATABASE_URL", "")
        if configured.startswith("sqlite"):
            return configured
        db_path = configured or DEFAULT_DB_PATH

    path = Path(db_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path}"


def get_engine(db_path: Path | str | None = None, echo: bool = False) -> Engine:
    """Return the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        url = get_database_url(db_path)
        logger.info(f"Opening database {url}")
        # FastAPI runs sync handlers on a thread pool
        _engine = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    return _engine


def get_session_factory(db_path: Path | str | None = None) -> sessionmaker[Session]:
    """Return the process-wide session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(db_path), autoflush=False)
    return _session_factory


def reset_engine() -> None:
    """Dispose of the engine so the next call reconnects (used by tests and the CLI)."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


@contextmanager
def get_session(db_path: Path | str | None = None) -> Generator[Session, None, None]:
    """
    Open a session that commits on success and rolls back on error.

    Usage:
        with get_session() as session:
            WineRepository(session).create(wine)
    """
    session = get_session_factory(db_path)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a transactional session per request."""
    with get_session() as session:
        yield session


def init_db(db_path: Path | str | None = None) -> None:
    """Create all tables that do not exist yet."""
    from wine_journal.db.models import Base

    Base.metadata.create_all(bind=get_engine(db_path))
