"""Database initialization and persistence layer."""

from wine_journal.db.engine import (
    get_database_url,
    get_db,
    get_engine,
    get_session,
    get_session_factory,
    init_db,
    reset_engine,
)
from wine_journal.db.models import Base, TastingDB, WineDB
from wine_journal.db.repositories import TastingRepository, WineRepository

__all__ = [
    # Engine
    "get_database_url",
    "get_db",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_db",
    "reset_engine",
    # Models
    "Base",
    "TastingDB",
    "WineDB",
    # Repositories
    "TastingRepository",
    "WineRepository",
]
