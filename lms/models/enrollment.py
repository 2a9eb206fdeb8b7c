from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from lms.models.snapshot import Snapshot

EnrollmentStatus = Literal["active", "completed", "expired", "cancelled"]

# active → completed      first completion reported by the player
# active|completed → cancelled   order refunded or cancelled
# expired is reserved; nothing leaves cancelled or expired.
_TRANSITIONS: dict[str, frozenset[str]] = {
    "active": frozenset({"completed", "cancelled", "expired"}),
    "completed": frozenset({"cancelled"}),
    "cancelled": frozenset(),
    "expired": frozenset(),
}

CANCELLABLE_STATUSES: tuple[EnrollmentStatus, ...] = ("active", "completed")


def can_transition(current: str, target: str) -> bool:
    return target in _TRANSITIONS.get(current, frozenset())


@dataclass(frozen=True, slots=True)
class Enrollment:
    """A user's purchased access to one course through one order."""

    id: UUID
    user_id: UUID
    course_id: UUID
    shopify_order_id: str
    shopify_product_id: str
    shopify_order_number: str | None = None
    status: EnrollmentStatus = "active"
    enrolled_at: datetime | None = None
    completed_at: datetime | None = None
    expires_at: datetime | None = None
    order_data: Snapshot | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @staticmethod
    def new(
        *,
        user_id: UUID,
        course_id: UUID,
        shopify_order_id: str,
        shopify_product_id: str,
        shopify_order_number: str | None = None,
        order_data: Snapshot | None = None,
    ) -> Enrollment:
        now = datetime.now(UTC)
        return Enrollment(
            id=uuid4(),
            user_id=user_id,
            course_id=course_id,
            shopify_order_id=shopify_order_id,
            shopify_product_id=shopify_product_id,
            shopify_order_number=shopify_order_number,
            status="active",
            enrolled_at=now,
            order_data=order_data,
            created_at=now,
            updated_at=now,
        )

    @property
    def natural_key(self) -> tuple[UUID, str, str]:
        return (self.user_id, self.shopify_order_id, self.shopify_product_id)

    def touch(self, **changes: object) -> Enrollment:
        return replace(self, **changes, updated_at=datetime.now(UTC))  # type: ignore[arg-type]
