"""Course catalog endpoints.

Courses are created and updated by the product webhooks; the read endpoints
here are public (the storefront renders them for anonymous visitors).  The
admin POST fills in the LMS-only fields the storefront does not carry, such
as the SCORM package URL.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from lms.api.auth import link_login_redirect
from lms.api.dependencies import StoreDep, require_admin_key
from lms.api.schemas import CourseOut
from lms.core.errors import NotFound
from lms.services import catalog_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["courses"])


class CourseIn(BaseModel):
    shopify_product_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str | None = None
    thumbnail: str | None = None
    handle: str | None = None
    scorm_url: str | None = None
    admission_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    total_lessons: int = Field(default=0, ge=0)
    estimated_duration: int | None = Field(default=None, ge=0)


@router.get("", response_model=list[CourseOut])
async def list_courses(store: StoreDep) -> list[CourseOut]:
    return [CourseOut.of(c) for c in await store.courses.list_active()]


@router.get("/shopify/{product_id}", response_model=CourseOut)
async def get_course_by_product(product_id: str, store: StoreDep) -> CourseOut:
    course = await store.courses.get_by_product_id(product_id)
    if course is None or not course.is_active:
        raise NotFound("Course not found")
    return CourseOut.of(course)


@router.get("/user/{customer_id}/{email}")
async def legacy_my_courses(
    customer_id: str,
    email: str,
    store: StoreDep,
    signature: Annotated[str | None, Query()] = None,
) -> RedirectResponse:
    """Old "My Courses" link format; same checks as the link login."""
    return await link_login_redirect(store, customer_id, email, signature)


@router.get("/{course_id}", response_model=CourseOut)
async def get_course(course_id: UUID, store: StoreDep) -> CourseOut:
    course = await store.courses.get_by_id(course_id)
    if course is None:
        raise NotFound("Course not found")
    return CourseOut.of(course)


@router.post("", response_model=CourseOut, dependencies=[Depends(require_admin_key)])
async def save_course(body: CourseIn, store: StoreDep) -> CourseOut:
    course = await catalog_service.save_course(store.courses, body.model_dump(exclude_unset=True))
    return CourseOut.of(course)
