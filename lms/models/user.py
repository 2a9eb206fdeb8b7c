from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from lms.models.snapshot import Snapshot

PLACEHOLDER_EMAIL_DOMAIN = "shopify.local"


@dataclass(frozen=True, slots=True)
class User:
    """Cached copy of a storefront customer."""

    id: UUID
    shopify_customer_id: str
    email: str
    name: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    shopify_data: Snapshot | None = None
    last_synced_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @staticmethod
    def new(
        *,
        shopify_customer_id: str,
        email: str | None,
        name: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        phone: str | None = None,
        shopify_data: Snapshot | None = None,
    ) -> User:
        now = datetime.now(UTC)
        return User(
            id=uuid4(),
            shopify_customer_id=shopify_customer_id,
            email=normalize_email(email) or placeholder_email(shopify_customer_id),
            name=name or f"Customer {shopify_customer_id}",
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            shopify_data=shopify_data,
            last_synced_at=now,
            created_at=now,
            updated_at=now,
        )

    def touch(self, **changes: object) -> User:
        """Copy with *changes* applied and updated_at bumped."""
        return replace(self, **changes, updated_at=datetime.now(UTC))  # type: ignore[arg-type]


def normalize_customer_id(raw: object) -> str:
    """Strip a URI-style global id down to its last segment.

    ``gid://shopify/Customer/123`` → ``123``; bare ids pass through.
    """
    value = str(raw).strip()
    if "://" in value:
        value = value.rstrip("/").rsplit("/", 1)[-1]
    return value


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def placeholder_email(customer_id: str) -> str:
    return f"customer-{customer_id}@{PLACEHOLDER_EMAIL_DOMAIN}"


def display_name(first_name: str | None, last_name: str | None) -> str:
    return " ".join(p for p in (first_name, last_name) if p).strip()
