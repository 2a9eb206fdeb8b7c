"""Shared insert helper for the Postgres repos."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.engine import Base
from lms.repos.errors import DuplicateKeyError


async def insert_row(session: AsyncSession, row: Base, what: str) -> None:
    """Insert *row* inside a SAVEPOINT.

    A unique-constraint violation rolls back only the savepoint, so the
    request's outer transaction stays usable for the re-read that follows.
    """
    try:
        async with session.begin_nested():
            session.add(row)
            await session.flush()
    except IntegrityError as e:
        raise DuplicateKeyError(what) from e
