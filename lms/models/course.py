from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from lms.models.snapshot import Snapshot


@dataclass(frozen=True, slots=True)
class Course:
    """Cached copy of a storefront product, plus LMS-only content fields."""

    id: UUID
    shopify_product_id: str
    title: str
    description: str | None = None
    thumbnail: str | None = None
    handle: str | None = None
    scorm_url: str | None = None
    admission_id: str | None = None
    metadata: Snapshot = field(default_factory=dict)
    is_active: bool = True
    total_lessons: int = 0
    estimated_duration: int | None = None  # minutes
    shopify_data: Snapshot | None = None
    last_synced_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @staticmethod
    def new(*, shopify_product_id: str, title: str, **fields: object) -> Course:
        now = datetime.now(UTC)
        return Course(
            id=uuid4(),
            shopify_product_id=shopify_product_id,
            title=title,
            last_synced_at=now,
            created_at=now,
            updated_at=now,
            **fields,  # type: ignore[arg-type]
        )

    def touch(self, **changes: object) -> Course:
        return replace(self, **changes, updated_at=datetime.now(UTC))  # type: ignore[arg-type]
