"""PostgreSQL implementation of ProgressRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import ProgressRow
from lms.models.progress import Progress
from lms.repos.pg_insert import insert_row


class PgProgressRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_enrollment(self, enrollment_id: UUID) -> Progress | None:
        stmt = select(ProgressRow).where(ProgressRow.enrollment_id == enrollment_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_progress(row) if row is not None else None

    async def add(self, progress: Progress) -> None:
        row = ProgressRow(
            id=progress.id,
            enrollment_id=progress.enrollment_id,
            user_id=progress.user_id,
            course_id=progress.course_id,
            created_at=progress.created_at,
            **_columns(progress),
        )
        await insert_row(self._session, row, f"progress for {progress.enrollment_id}")

    async def save(self, progress: Progress) -> None:
        stmt = (
            update(ProgressRow)
            .where(ProgressRow.enrollment_id == progress.enrollment_id)
            .values(**_columns(progress))
        )
        await self._session.execute(stmt)


def _columns(progress: Progress) -> dict:
    return {
        "progress": progress.progress,
        "completed": progress.completed,
        "time_spent": progress.time_spent,
        "last_accessed_at": progress.last_accessed_at,
        "scorm_data": progress.scorm_data,
        "certificate": progress.certificate,
        "updated_at": progress.updated_at,
    }


def _row_to_progress(row: ProgressRow) -> Progress:
    return Progress(
        id=row.id,
        enrollment_id=row.enrollment_id,
        user_id=row.user_id,
        course_id=row.course_id,
        progress=row.progress,
        completed=row.completed,
        time_spent=row.time_spent,
        last_accessed_at=row.last_accessed_at,
        scorm_data=row.scorm_data or {},
        certificate=row.certificate,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
