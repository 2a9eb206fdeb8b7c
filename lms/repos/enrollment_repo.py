from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from typing import Protocol
from uuid import UUID

from lms.models.enrollment import Enrollment
from lms.repos.errors import DuplicateKeyError


class EnrollmentRepo(Protocol):
    async def get_by_id(self, enrollment_id: UUID) -> Enrollment | None: ...
    async def find(
        self, user_id: UUID, order_id: str, product_id: str
    ) -> Enrollment | None: ...
    async def list_for_user(self, user_id: UUID) -> list[Enrollment]: ...
    async def add(self, enrollment: Enrollment) -> None: ...
    async def save(self, enrollment: Enrollment) -> None: ...
    async def set_status_for_order(
        self,
        order_id: str,
        status: str,
        *,
        from_statuses: Iterable[str],
        now: datetime,
    ) -> int: ...


class InMemoryEnrollmentRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Enrollment] = {}
        self._by_key: dict[tuple[UUID, str, str], UUID] = {}

    async def get_by_id(self, enrollment_id: UUID) -> Enrollment | None:
        return self._by_id.get(enrollment_id)

    async def find(
        self, user_id: UUID, order_id: str, product_id: str
    ) -> Enrollment | None:
        enrollment_id = self._by_key.get((user_id, order_id, product_id))
        return self._by_id.get(enrollment_id) if enrollment_id else None

    async def list_for_user(self, user_id: UUID) -> list[Enrollment]:
        mine = [e for e in self._by_id.values() if e.user_id == user_id]
        return sorted(mine, key=lambda e: e.enrolled_at or 0, reverse=True)

    async def add(self, enrollment: Enrollment) -> None:
        if enrollment.natural_key in self._by_key:
            raise DuplicateKeyError(f"enrollment {enrollment.natural_key}")
        self._by_id[enrollment.id] = enrollment
        self._by_key[enrollment.natural_key] = enrollment.id

    async def save(self, enrollment: Enrollment) -> None:
        if enrollment.id not in self._by_id:
            raise KeyError("enrollment not found")
        self._by_id[enrollment.id] = enrollment

    async def set_status_for_order(
        self,
        order_id: str,
        status: str,
        *,
        from_statuses: Iterable[str],
        now: datetime,
    ) -> int:
        allowed = set(from_statuses)
        changed = 0
        for enrollment in list(self._by_id.values()):
            if enrollment.shopify_order_id == order_id and enrollment.status in allowed:
                self._by_id[enrollment.id] = replace(
                    enrollment, status=status, updated_at=now
                )
                changed += 1
        return changed

    def __len__(self) -> int:
        return len(self._by_id)

    def clear(self) -> None:
        self._by_id.clear()
        self._by_key.clear()
