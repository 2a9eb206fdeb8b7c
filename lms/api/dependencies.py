from __future__ import annotations

import hmac
import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lms.core.config import SETTINGS
from lms.core.errors import Misconfigured, Unauthenticated
from lms.db.engine import async_session_factory, session_scope
from lms.models.principal import Principal
from lms.repos.store import Store, in_memory_store, pg_store
from lms.services import token_service

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

# Process-wide store used when no DATABASE_URL is configured (dev, tests).
memory_store = in_memory_store()


async def get_store() -> AsyncGenerator[Store, None]:
    """Request-scoped Store: Postgres repos on one session, or the in-memory store."""
    if async_session_factory is None:
        yield memory_store
        return
    async with session_scope() as session:
        yield pg_store(session)


def require_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Principal:
    """Validate the session token bearer credential and return a Principal.

    Any failure is a 401 with the same message; token_service logs the reason.
    """
    if credentials is None:
        raise Unauthenticated("No token provided")

    claims = token_service.decode_session_token(credentials.credentials)
    principal = Principal(
        user_id=str(claims["sub"]),
        customer_id=claims.get("customer_id"),
    )
    logger.debug("Token validated for user=%s", principal.user_id)
    return principal


def require_admin_key(
    x_admin_key: Annotated[str | None, Header()] = None,
) -> None:
    """Guard catalog-admin endpoints with the shared ADMIN_API_KEY."""
    if not SETTINGS.admin_api_key:
        raise Misconfigured("Admin API key not configured")
    if not x_admin_key or not hmac.compare_digest(
        x_admin_key.encode(), SETTINGS.admin_api_key.encode()
    ):
        logger.warning("Rejected admin request with bad X-Admin-Key")
        raise Unauthenticated("Invalid admin key")


StoreDep = Annotated[Store, Depends(get_store)]
UserDep = Annotated[Principal, Depends(require_user)]
