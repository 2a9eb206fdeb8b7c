"""Storefront customer → LMS user resolution.

Users are never registered directly; they appear the first time a customer
logs in through the storefront, signs in through a legacy link, or shows up
in a customer/order webhook.  Every path is a find-or-create keyed by the
normalized customer id, so repeated or concurrent deliveries converge on one
row: the store's unique index on shopify_customer_id turns a lost race into a
DuplicateKeyError, and we re-read the winner.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from lms.core.errors import BadRequest
from lms.models.user import (
    User,
    display_name,
    normalize_customer_id,
    normalize_email,
)
from lms.repos.errors import DuplicateKeyError
from lms.repos.user_repo import UserRepo
from lms.services import token_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LoginResult:
    user: User
    token: str


async def _insert_or_get(users: UserRepo, user: User) -> tuple[User, bool]:
    """Insert *user*; if its customer id already exists return the stored one.

    Returns (user, created).
    """
    try:
        await users.add(user)
        return user, True
    except DuplicateKeyError:
        existing = await users.get_by_customer_id(user.shopify_customer_id)
        if existing is None:
            raise
        logger.info("Concurrent insert for customer=%s, using existing user", user.shopify_customer_id)
        return existing, False


def issue_session(user: User) -> LoginResult:
    token = token_service.create_session_token(
        user_id=str(user.id), customer_id=user.shopify_customer_id
    )
    return LoginResult(user=user, token=token)


async def find_or_create_user(
    users: UserRepo, external_id: object, email: str | None
) -> LoginResult:
    """Resolve a customer to a user, creating one on first sight.

    An existing user is returned untouched (profile data is owned by the
    customer webhooks).  Returns the user plus a freshly issued session token.
    """
    customer_id = normalize_customer_id(external_id)
    user = await users.get_by_customer_id(customer_id)
    if user is None:
        user, created = await _insert_or_get(
            users, User.new(shopify_customer_id=customer_id, email=normalize_email(email))
        )
        if created:
            logger.info("Created user id=%s for customer=%s", user.id, customer_id)
    return issue_session(user)


async def find_or_create_from_claims(users: UserRepo, claims: dict[str, Any]) -> User:
    """Resolve the customer named by verified storefront token claims."""
    customer_id = claims["sub"]
    user = await users.get_by_customer_id(customer_id)
    if user is not None:
        return user

    first_name = claims.get("first_name") or claims.get("given_name")
    last_name = claims.get("last_name") or claims.get("family_name")
    user, created = await _insert_or_get(
        users,
        User.new(
            shopify_customer_id=customer_id,
            email=claims.get("email"),
            name=display_name(first_name, last_name),
            first_name=first_name,
            last_name=last_name,
            shopify_data=claims,
        ),
    )
    if created:
        logger.info("Created user id=%s from storefront token customer=%s", user.id, customer_id)
    return user


async def sync_from_claims(users: UserRepo, claims: dict[str, Any]) -> User | None:
    """Refresh an existing user from verified storefront token claims.

    Only claims that are present overwrite stored fields.  Returns None when
    the customer has no user yet.
    """
    user = await users.get_by_customer_id(claims["sub"])
    if user is None:
        return None

    first_name = claims.get("first_name") or claims.get("given_name")
    last_name = claims.get("last_name") or claims.get("family_name")
    changes: dict[str, Any] = {
        "shopify_data": claims,
        "last_synced_at": datetime.now(UTC),
    }
    if claims.get("email"):
        changes["email"] = normalize_email(claims["email"])
    if first_name:
        changes["first_name"] = first_name
    if last_name:
        changes["last_name"] = last_name
    if claims.get("phone"):
        changes["phone"] = claims["phone"]
    name = display_name(first_name, last_name)
    if name:
        changes["name"] = name

    updated = user.touch(**changes)
    await users.save(updated)
    return updated


async def sync_customer(users: UserRepo, customer: dict[str, Any]) -> User:
    """Upsert a user from a storefront customer payload.

    Used by the customer webhooks and by order processing.  On update, fields
    the payload leaves null keep their stored value; the snapshot is always
    replaced.
    """
    if customer.get("id") in (None, ""):
        raise BadRequest("Customer payload has no id")
    customer_id = normalize_customer_id(customer["id"])
    first_name = customer.get("first_name")
    last_name = customer.get("last_name")
    name = display_name(first_name, last_name)

    existing = await users.get_by_customer_id(customer_id)
    if existing is None:
        user, created = await _insert_or_get(
            users,
            User.new(
                shopify_customer_id=customer_id,
                email=customer.get("email"),
                name=name,
                first_name=first_name,
                last_name=last_name,
                phone=customer.get("phone"),
                shopify_data=customer,
            ),
        )
        if created:
            logger.info("Created user id=%s for customer=%s", user.id, customer_id)
            return user
        existing = user

    email = normalize_email(customer.get("email"))
    updated = existing.touch(
        email=email or existing.email,
        first_name=first_name if first_name is not None else existing.first_name,
        last_name=last_name if last_name is not None else existing.last_name,
        name=name or existing.name,
        phone=customer.get("phone") if customer.get("phone") is not None else existing.phone,
        shopify_data=customer,
        last_synced_at=datetime.now(UTC),
    )
    await users.save(updated)
    logger.info("Synced user id=%s for customer=%s", updated.id, customer_id)
    return updated
