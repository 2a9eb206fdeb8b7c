"""Response models shared by several routers.

Snapshots (shopify_data, order_data) are never included in responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from lms.models.course import Course
from lms.models.enrollment import Enrollment
from lms.models.progress import Progress
from lms.models.user import User


class UserSummaryOut(BaseModel):
    id: UUID
    email: str
    name: str
    shopify_customer_id: str

    @classmethod
    def of(cls, user: User) -> UserSummaryOut:
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            shopify_customer_id=user.shopify_customer_id,
        )


class CourseOut(BaseModel):
    id: UUID
    shopify_product_id: str
    title: str
    description: str | None
    thumbnail: str | None
    handle: str | None
    scorm_url: str | None
    admission_id: str | None
    metadata: dict[str, Any]
    is_active: bool
    total_lessons: int
    estimated_duration: int | None
    last_synced_at: datetime | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def of(cls, course: Course) -> CourseOut:
        return cls(
            id=course.id,
            shopify_product_id=course.shopify_product_id,
            title=course.title,
            description=course.description,
            thumbnail=course.thumbnail,
            handle=course.handle,
            scorm_url=course.scorm_url,
            admission_id=course.admission_id,
            metadata=course.metadata,
            is_active=course.is_active,
            total_lessons=course.total_lessons,
            estimated_duration=course.estimated_duration,
            last_synced_at=course.last_synced_at,
            created_at=course.created_at,
            updated_at=course.updated_at,
        )


class CourseSummaryOut(BaseModel):
    id: UUID
    title: str
    thumbnail: str | None
    scorm_url: str | None
    admission_id: str | None

    @classmethod
    def of(cls, course: Course) -> CourseSummaryOut:
        return cls(
            id=course.id,
            title=course.title,
            thumbnail=course.thumbnail,
            scorm_url=course.scorm_url,
            admission_id=course.admission_id,
        )


class ProgressOut(BaseModel):
    id: UUID
    enrollment_id: UUID
    user_id: UUID
    course_id: UUID
    progress: float
    completed: bool
    time_spent: float
    last_accessed_at: datetime | None
    scorm_data: dict[str, Any]
    certificate: dict[str, Any] | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def of(cls, progress: Progress) -> ProgressOut:
        return cls(
            id=progress.id,
            enrollment_id=progress.enrollment_id,
            user_id=progress.user_id,
            course_id=progress.course_id,
            progress=progress.progress,
            completed=progress.completed,
            time_spent=progress.time_spent,
            last_accessed_at=progress.last_accessed_at,
            scorm_data=progress.scorm_data,
            certificate=progress.certificate,
            created_at=progress.created_at,
            updated_at=progress.updated_at,
        )


class EnrollmentOut(BaseModel):
    id: UUID
    user_id: UUID
    course_id: UUID
    shopify_order_id: str
    shopify_order_number: str | None
    shopify_product_id: str
    status: str
    enrolled_at: datetime | None
    completed_at: datetime | None
    expires_at: datetime | None

    @classmethod
    def fields_of(cls, enrollment: Enrollment) -> dict[str, Any]:
        return {
            "id": enrollment.id,
            "user_id": enrollment.user_id,
            "course_id": enrollment.course_id,
            "shopify_order_id": enrollment.shopify_order_id,
            "shopify_order_number": enrollment.shopify_order_number,
            "shopify_product_id": enrollment.shopify_product_id,
            "status": enrollment.status,
            "enrolled_at": enrollment.enrolled_at,
            "completed_at": enrollment.completed_at,
            "expires_at": enrollment.expires_at,
        }
