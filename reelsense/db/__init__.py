"""Database utilities and session management."""

from reelsense.db.base import Base, BaseModel, String50, String255, String1000, utcnow
from reelsense.db.deps import DBSession, get_db
from reelsense.db.session import (
    AsyncSessionLocal,
    check_db_health,
    close_db,
    engine,
    get_session,
    init_db,
)

__all__ = [
    # Base classes
    "Base",
    "BaseModel",
    "utcnow",
    # String types
    "String50",
    "String255",
    "String1000",
    # Session management
    "engine",
    "AsyncSessionLocal",
    "get_session",
    "init_db",
    "close_db",
    "check_db_health",
    # Dependencies
    "get_db",
    "DBSession",
]
