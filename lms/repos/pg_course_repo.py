"""PostgreSQL implementation of CourseRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import CourseRow
from lms.models.course import Course
from lms.repos.pg_insert import insert_row


class PgCourseRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, course_id: UUID) -> Course | None:
        stmt = select(CourseRow).where(CourseRow.id == course_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_course(row) if row is not None else None

    async def get_by_product_id(self, product_id: str) -> Course | None:
        stmt = select(CourseRow).where(CourseRow.shopify_product_id == product_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_course(row) if row is not None else None

    async def list_active(self) -> list[Course]:
        stmt = (
            select(CourseRow)
            .where(CourseRow.is_active.is_(True))
            .order_by(CourseRow.created_at.desc())
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def add(self, course: Course) -> None:
        row = CourseRow(
            id=course.id,
            shopify_product_id=course.shopify_product_id,
            created_at=course.created_at,
            **_columns(course),
        )
        await insert_row(self._session, row, f"product {course.shopify_product_id}")

    async def save(self, course: Course) -> None:
        # Keyed by attribute: the "metadata" column is mapped as course_metadata.
        values = {getattr(CourseRow, k): v for k, v in _columns(course).items()}
        stmt = update(CourseRow).where(CourseRow.id == course.id).values(values)
        await self._session.execute(stmt)


def _columns(course: Course) -> dict:
    return {
        "title": course.title,
        "description": course.description,
        "thumbnail": course.thumbnail,
        "handle": course.handle,
        "scorm_url": course.scorm_url,
        "admission_id": course.admission_id,
        "course_metadata": course.metadata,
        "is_active": course.is_active,
        "total_lessons": course.total_lessons,
        "estimated_duration": course.estimated_duration,
        "shopify_data": course.shopify_data,
        "last_synced_at": course.last_synced_at,
        "updated_at": course.updated_at,
    }


def _row_to_course(row: CourseRow) -> Course:
    return Course(
        id=row.id,
        shopify_product_id=row.shopify_product_id,
        title=row.title,
        description=row.description,
        thumbnail=row.thumbnail,
        handle=row.handle,
        scorm_url=row.scorm_url,
        admission_id=row.admission_id,
        metadata=row.course_metadata or {},
        is_active=row.is_active,
        total_lessons=row.total_lessons,
        estimated_duration=row.estimated_duration,
        shopify_data=row.shopify_data,
        last_synced_at=row.last_synced_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
