"""Bundle of the four repositories a request works against."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from lms.repos.course_repo import CourseRepo, InMemoryCourseRepo
from lms.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from lms.repos.pg_course_repo import PgCourseRepo
from lms.repos.pg_enrollment_repo import PgEnrollmentRepo
from lms.repos.pg_progress_repo import PgProgressRepo
from lms.repos.pg_user_repo import PgUserRepo
from lms.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from lms.repos.user_repo import InMemoryUserRepo, UserRepo


@dataclass(frozen=True)
class Store:
    users: UserRepo
    courses: CourseRepo
    enrollments: EnrollmentRepo
    progress: ProgressRepo


def in_memory_store() -> Store:
    return Store(
        users=InMemoryUserRepo(),
        courses=InMemoryCourseRepo(),
        enrollments=InMemoryEnrollmentRepo(),
        progress=InMemoryProgressRepo(),
    )


def pg_store(session: AsyncSession) -> Store:
    """All four repos share *session*, so one request is one transaction."""
    return Store(
        users=PgUserRepo(session),
        courses=PgCourseRepo(session),
        enrollments=PgEnrollmentRepo(session),
        progress=PgProgressRepo(session),
    )
