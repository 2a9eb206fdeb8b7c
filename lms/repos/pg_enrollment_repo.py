"""PostgreSQL implementation of EnrollmentRepo."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import EnrollmentRow
from lms.models.enrollment import Enrollment
from lms.repos.pg_insert import insert_row


class PgEnrollmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, enrollment_id: UUID) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(EnrollmentRow.id == enrollment_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_enrollment(row) if row is not None else None

    async def find(
        self, user_id: UUID, order_id: str, product_id: str
    ) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(
            EnrollmentRow.user_id == user_id,
            EnrollmentRow.shopify_order_id == order_id,
            EnrollmentRow.shopify_product_id == product_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_enrollment(row) if row is not None else None

    async def list_for_user(self, user_id: UUID) -> list[Enrollment]:
        stmt = (
            select(EnrollmentRow)
            .where(EnrollmentRow.user_id == user_id)
            .order_by(EnrollmentRow.enrolled_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_enrollment(r) for r in rows]

    async def add(self, enrollment: Enrollment) -> None:
        row = EnrollmentRow(
            id=enrollment.id,
            user_id=enrollment.user_id,
            course_id=enrollment.course_id,
            shopify_order_id=enrollment.shopify_order_id,
            shopify_order_number=enrollment.shopify_order_number,
            shopify_product_id=enrollment.shopify_product_id,
            status=enrollment.status,
            enrolled_at=enrollment.enrolled_at,
            completed_at=enrollment.completed_at,
            expires_at=enrollment.expires_at,
            order_data=enrollment.order_data,
            created_at=enrollment.created_at,
            updated_at=enrollment.updated_at,
        )
        await insert_row(self._session, row, f"enrollment {enrollment.natural_key}")

    async def save(self, enrollment: Enrollment) -> None:
        stmt = (
            update(EnrollmentRow)
            .where(EnrollmentRow.id == enrollment.id)
            .values(
                status=enrollment.status,
                completed_at=enrollment.completed_at,
                expires_at=enrollment.expires_at,
                order_data=enrollment.order_data,
                updated_at=enrollment.updated_at,
            )
        )
        await self._session.execute(stmt)

    async def set_status_for_order(
        self,
        order_id: str,
        status: str,
        *,
        from_statuses: Iterable[str],
        now: datetime,
    ) -> int:
        stmt = (
            update(EnrollmentRow)
            .where(
                EnrollmentRow.shopify_order_id == order_id,
                EnrollmentRow.status.in_(list(from_statuses)),
            )
            .values(status=status, updated_at=now)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0


def _row_to_enrollment(row: EnrollmentRow) -> Enrollment:
    return Enrollment(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        shopify_order_id=row.shopify_order_id,
        shopify_product_id=row.shopify_product_id,
        shopify_order_number=row.shopify_order_number,
        status=row.status,  # type: ignore[arg-type]
        enrolled_at=row.enrolled_at,
        completed_at=row.completed_at,
        expires_at=row.expires_at,
        order_data=row.order_data,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
