"""JWT handling for both token kinds the backend sees.

Session tokens
    Issued here after a storefront login, HS256-signed with JWT_SECRET.
    Claims: sub (internal user id), customer_id (storefront id), iss, aud,
    exp, iat, jti.  Every verification failure maps to the same
    Unauthenticated error; the reason is logged, never returned.

Storefront session tokens
    Issued by Shopify to the storefront/app bridge, HS256-signed with the
    app's API secret.  We only need ``sub``, which may be a bare id or a
    ``gid://shopify/Customer/<id>`` URI.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

import jwt

from lms.core.config import SETTINGS
from lms.core.errors import Misconfigured, Unauthenticated
from lms.models.user import normalize_customer_id

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ISSUER = "lms-backend"
SESSION_AUDIENCE = "lms-session"

# Shopify signs session tokens with HS256 only; pinning stops alg:none and
# algorithm-confusion tokens.
STOREFRONT_ALGORITHMS = ["HS256"]


def _session_secret() -> str:
    if not SETTINGS.jwt_secret:
        raise Misconfigured("JWT secret not configured")
    return SETTINGS.jwt_secret


def create_session_token(*, user_id: str, customer_id: str) -> str:
    """Sign a session token for *user_id*, valid for JWT_EXPIRES_IN."""
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "customer_id": customer_id,
        "iss": ISSUER,
        "aud": SESSION_AUDIENCE,
        "exp": now + SETTINGS.jwt_expires_in,
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _session_secret(), algorithm=ALGORITHM)


def decode_session_token(token: str) -> dict:
    """Verify a session token and return its claims.

    Raises Unauthenticated for any verification failure.
    """
    secret = _session_secret()
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            issuer=ISSUER,
            audience=SESSION_AUDIENCE,
            options={"require": ["sub", "exp", "iat"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Expired session token rejected")
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid session token rejected: %s", e)
    raise Unauthenticated("Invalid token")


def decode_storefront_token(token: str | None) -> dict:
    """Verify a storefront session token and return its claims.

    The ``sub`` claim is replaced by its normalized customer id.  Raises
    Unauthenticated when the token is absent, unverifiable, or has no sub;
    Misconfigured when SHOPIFY_API_SECRET is not set.
    """
    if not token:
        raise Unauthenticated("Missing Shopify session token")

    secret = SETTINGS.shopify_api_secret
    if not secret:
        raise Misconfigured("Shopify API secret not configured")

    try:
        # aud is the app's API key, which this service is not configured with.
        claims = jwt.decode(
            token,
            secret,
            algorithms=STOREFRONT_ALGORITHMS,
            options={"verify_aud": False},
        )
    except jwt.InvalidTokenError as e:
        logger.warning("Storefront token rejected: %s", e)
        raise Unauthenticated("Invalid or expired Shopify token") from None

    customer_id = parse_customer_id(claims.get("sub"))
    if customer_id is None:
        logger.warning("Storefront token has no sub claim")
        raise Unauthenticated("Token missing customer id (sub)")

    return {**claims, "sub": customer_id}


def parse_customer_id(sub: object) -> str | None:
    if sub is None:
        return None
    customer_id = normalize_customer_id(sub)
    return customer_id or None


def bearer_token(authorization: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None
