"""Enrollment read endpoints.

Enrollments only come into existence through the order webhook; users can
list and read their own, nothing else.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from lms.api.dependencies import StoreDep, UserDep
from lms.api.schemas import CourseOut, CourseSummaryOut, EnrollmentOut, ProgressOut
from lms.core.errors import NotFound
from lms.services import progress_service

router = APIRouter(prefix="/api/enrollments", tags=["enrollments"])


class EnrollmentListItemOut(EnrollmentOut):
    course: CourseSummaryOut | None
    progress: ProgressOut | None


class EnrollmentDetailOut(EnrollmentOut):
    course: CourseOut | None
    progress: ProgressOut | None


@router.get("", response_model=list[EnrollmentListItemOut])
async def list_enrollments(principal: UserDep, store: StoreDep) -> list[EnrollmentListItemOut]:
    try:
        user_id = UUID(principal.user_id)
    except ValueError:
        return []

    items: list[EnrollmentListItemOut] = []
    for enrollment in await store.enrollments.list_for_user(user_id):
        course = await store.courses.get_by_id(enrollment.course_id)
        progress = await store.progress.get_by_enrollment(enrollment.id)
        items.append(
            EnrollmentListItemOut(
                **EnrollmentOut.fields_of(enrollment),
                course=CourseSummaryOut.of(course) if course else None,
                progress=ProgressOut.of(progress) if progress else None,
            )
        )
    return items


@router.get("/{enrollment_id}", response_model=EnrollmentDetailOut)
async def get_enrollment(
    enrollment_id: UUID, principal: UserDep, store: StoreDep
) -> EnrollmentDetailOut:
    enrollment = await progress_service.get_owned_enrollment(
        store, enrollment_id, principal.user_id
    )
    course = await store.courses.get_by_id(enrollment.course_id)
    if course is None:
        raise NotFound("Course not found")
    progress = await store.progress.get_by_enrollment(enrollment.id)
    return EnrollmentDetailOut(
        **EnrollmentOut.fields_of(enrollment),
        course=CourseOut.of(course),
        progress=ProgressOut.of(progress) if progress else None,
    )
