"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import UserRow
from lms.models.user import User
from lms.repos.pg_insert import insert_row


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        stmt = select(UserRow).where(UserRow.id == user_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_user(row) if row is not None else None

    async def get_by_customer_id(self, customer_id: str) -> User | None:
        stmt = select(UserRow).where(UserRow.shopify_customer_id == customer_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_user(row) if row is not None else None

    async def add(self, user: User) -> None:
        row = UserRow(
            id=user.id,
            shopify_customer_id=user.shopify_customer_id,
            created_at=user.created_at,
            **_columns(user),
        )
        await insert_row(self._session, row, f"customer {user.shopify_customer_id}")

    async def save(self, user: User) -> None:
        stmt = update(UserRow).where(UserRow.id == user.id).values(**_columns(user))
        await self._session.execute(stmt)


def _columns(user: User) -> dict:
    return {
        "email": user.email,
        "name": user.name,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone,
        "shopify_data": user.shopify_data,
        "last_synced_at": user.last_synced_at,
        "updated_at": user.updated_at,
    }


def _row_to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        shopify_customer_id=row.shopify_customer_id,
        email=row.email,
        name=row.name or "",
        first_name=row.first_name,
        last_name=row.last_name,
        phone=row.phone,
        shopify_data=row.shopify_data,
        last_synced_at=row.last_synced_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
