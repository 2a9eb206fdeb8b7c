"""Login flows: storefront session-token exchange and legacy signed links.

POST /api/auth/shopify-verify
    The storefront (or Shopify customer account extension) sends the
    Shopify-issued session token; we verify it, find-or-create the user and
    return our own session token.

GET /api/auth/shopify-customer-login?customerId=&email=&signature=
    Liquid-template links that cannot mint JWTs.  The link carries an HMAC
    over "<customerId>|<email>"; on success we redirect to the frontend's
    /auth/callback with the session token in the query string.
"""

from __future__ import annotations

import logging
from typing import Annotated
from urllib.parse import urlencode
from uuid import UUID

from fastapi import APIRouter, Body, Header, Query
from fastapi.responses import RedirectResponse
from pydantic import AliasChoices, BaseModel, Field

from lms.api.dependencies import StoreDep, UserDep
from lms.api.schemas import UserSummaryOut
from lms.core.config import SETTINGS
from lms.core.errors import BadRequest, Misconfigured, NotFound, Unauthenticated
from lms.repos.store import Store
from lms.services import identity_service, signature_service, token_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class ShopifyVerifyIn(BaseModel):
    token: str | None = None


class SyncUserIn(BaseModel):
    shopify_token: str | None = Field(
        default=None, validation_alias=AliasChoices("shopify_token", "shopifyToken")
    )


class SessionOut(BaseModel):
    token: str
    user: UserSummaryOut


class SyncUserOut(BaseModel):
    user: UserSummaryOut


class MeOut(BaseModel):
    id: UUID
    email: str
    name: str
    first_name: str | None
    last_name: str | None
    phone: str | None
    shopify_customer_id: str


# ---------------------------------------------------------------------------
# Legacy link helpers (also used by the /api/courses/user/... redirect)
# ---------------------------------------------------------------------------


def frontend_callback_url(token: str) -> str:
    return f"{SETTINGS.frontend_url}/auth/callback?{urlencode({'lmsToken': token})}"


async def link_login_redirect(
    store: Store, customer_id: str, email: str, signature: str | None
) -> RedirectResponse:
    """Verify a signed login link and redirect to the frontend with a token."""
    secret = SETTINGS.link_secret
    if not secret and not SETTINGS.allow_unsigned_login_links:
        raise Misconfigured("Login link secret not configured")

    if not signature_service.verify_link_signature(
        secret,
        customer_id,
        email,
        signature,
        allow_unsigned=SETTINGS.allow_unsigned_login_links,
    ):
        logger.warning("Rejected login link for customer=%s", customer_id)
        raise Unauthenticated("Invalid or missing link signature")

    login = await identity_service.find_or_create_user(store.users, customer_id, email)
    logger.info("Link login for customer=%s user=%s", customer_id, login.user.id)
    return RedirectResponse(url=frontend_callback_url(login.token), status_code=302)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/shopify-verify", response_model=SessionOut)
async def shopify_verify(
    store: StoreDep,
    body: Annotated[ShopifyVerifyIn | None, Body()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> SessionOut:
    raw_token = (body.token if body else None) or token_service.bearer_token(authorization)
    claims = token_service.decode_storefront_token(raw_token)

    user = await identity_service.find_or_create_from_claims(store.users, claims)
    login = identity_service.issue_session(user)
    logger.info("Storefront login for customer=%s user=%s", user.shopify_customer_id, user.id)
    return SessionOut(token=login.token, user=UserSummaryOut.of(user))


@router.get("/shopify-customer-login")
async def shopify_customer_login(
    store: StoreDep,
    customer_id: Annotated[str | None, Query(alias="customerId")] = None,
    email: Annotated[str | None, Query()] = None,
    signature: Annotated[str | None, Query()] = None,
) -> RedirectResponse:
    if not customer_id or not email:
        raise BadRequest("Missing customerId or email")
    return await link_login_redirect(store, customer_id, email, signature)


@router.get("/me", response_model=MeOut)
async def me(principal: UserDep, store: StoreDep) -> MeOut:
    try:
        user_id = UUID(principal.user_id)
    except ValueError:
        raise NotFound("User not found") from None

    user = await store.users.get_by_id(user_id)
    if user is None:
        raise NotFound("User not found")
    return MeOut(
        id=user.id,
        email=user.email,
        name=user.name,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        shopify_customer_id=user.shopify_customer_id,
    )


@router.post("/sync-user", response_model=SyncUserOut)
async def sync_user(
    store: StoreDep,
    body: Annotated[SyncUserIn | None, Body()] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> SyncUserOut:
    """Refresh the user from the claims of a storefront session token."""
    raw_token = (body.shopify_token if body else None) or token_service.bearer_token(
        authorization
    )
    claims = token_service.decode_storefront_token(raw_token)

    user = await identity_service.sync_from_claims(store.users, claims)
    if user is None:
        raise NotFound("User not found")
    return SyncUserOut(user=UserSummaryOut.of(user))
