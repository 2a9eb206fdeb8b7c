from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

# Player-reported state, stored as a JSON object:
#   score, max_score, min_score        numbers
#   completion_status                  completed|incomplete|not attempted|unknown
#   success_status                     passed|failed|unknown
#   bookmarks                          [{"lesson_id": str, "timestamp": number}]
#   interactions                       [{"id", "type", "timestamp", "result", "latency"}]
#   raw_data                           opaque
PlayerState = dict[str, Any]


@dataclass(frozen=True, slots=True)
class Progress:
    """Consumption state for one enrollment (1:1)."""

    id: UUID
    enrollment_id: UUID
    user_id: UUID
    course_id: UUID
    progress: float = 0.0  # percent, 0..100
    completed: bool = False
    time_spent: float = 0.0  # minutes, accumulated
    last_accessed_at: datetime | None = None
    scorm_data: PlayerState = field(default_factory=dict)
    certificate: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @staticmethod
    def new(*, enrollment_id: UUID, user_id: UUID, course_id: UUID) -> Progress:
        now = datetime.now(UTC)
        return Progress(
            id=uuid4(),
            enrollment_id=enrollment_id,
            user_id=user_id,
            course_id=course_id,
            last_accessed_at=now,
            created_at=now,
            updated_at=now,
        )

    def touch(self, **changes: object) -> Progress:
        return replace(self, **changes, updated_at=datetime.now(UTC))  # type: ignore[arg-type]
