from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms.models.progress import Progress
from lms.repos.errors import DuplicateKeyError


class ProgressRepo(Protocol):
    async def get_by_enrollment(self, enrollment_id: UUID) -> Progress | None: ...
    async def add(self, progress: Progress) -> None: ...
    async def save(self, progress: Progress) -> None: ...


class InMemoryProgressRepo:
    def __init__(self) -> None:
        self._by_enrollment: dict[UUID, Progress] = {}

    async def get_by_enrollment(self, enrollment_id: UUID) -> Progress | None:
        return self._by_enrollment.get(enrollment_id)

    async def add(self, progress: Progress) -> None:
        if progress.enrollment_id in self._by_enrollment:
            raise DuplicateKeyError(f"progress for {progress.enrollment_id}")
        self._by_enrollment[progress.enrollment_id] = progress

    async def save(self, progress: Progress) -> None:
        if progress.enrollment_id not in self._by_enrollment:
            raise KeyError("progress not found")
        self._by_enrollment[progress.enrollment_id] = progress

    def __len__(self) -> int:
        return len(self._by_enrollment)

    def clear(self) -> None:
        self._by_enrollment.clear()
