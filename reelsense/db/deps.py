"""
Database Dependencies for FastAPI Routes

Routes declare what they need ("I need a database session") and FastAPI
provides it, closing the session afterwards even on errors.

    @router.get("/items/{item_id}")
    async def get_item(item_id: int, db: DBSession):
        ...

Learning Resources:
- FastAPI Dependencies: https://fastapi.tiangolo.com/tutorial/dependencies/
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from reelsense.db.session import get_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session.

    Each request gets its own session/transaction; services commit
    explicitly, and rollback happens automatically on errors.
    """
    async for session in get_session():
        yield session


# Type annotation shortcut: `db: DBSession`
DBSession = Annotated[AsyncSession, Depends(get_db)]


__all__ = [
    "get_db",
    "DBSession",
]
