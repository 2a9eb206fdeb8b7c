from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms.models.course import Course
from lms.repos.errors import DuplicateKeyError


class CourseRepo(Protocol):
    async def get_by_id(self, course_id: UUID) -> Course | None: ...
    async def get_by_product_id(self, product_id: str) -> Course | None: ...
    async def list_active(self) -> list[Course]: ...
    async def add(self, course: Course) -> None: ...
    async def save(self, course: Course) -> None: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Course] = {}
        self._by_product_id: dict[str, Course] = {}

    async def get_by_id(self, course_id: UUID) -> Course | None:
        return self._by_id.get(course_id)

    async def get_by_product_id(self, product_id: str) -> Course | None:
        return self._by_product_id.get(product_id)

    async def list_active(self) -> list[Course]:
        active = [c for c in self._by_id.values() if c.is_active]
        return sorted(active, key=lambda c: c.created_at or 0, reverse=True)

    async def add(self, course: Course) -> None:
        if course.shopify_product_id in self._by_product_id:
            raise DuplicateKeyError(f"product {course.shopify_product_id}")
        self._by_id[course.id] = course
        self._by_product_id[course.shopify_product_id] = course

    async def save(self, course: Course) -> None:
        if course.id not in self._by_id:
            raise KeyError("course not found")
        self._by_id[course.id] = course
        self._by_product_id[course.shopify_product_id] = course

    def __len__(self) -> int:
        return len(self._by_id)

    def clear(self) -> None:
        self._by_id.clear()
        self._by_product_id.clear()
