"""HMAC signature checks for webhooks and legacy login links.

Both use HMAC-SHA256 and hmac.compare_digest.  compare_digest runs in time
independent of where the inputs differ, and returns False for inputs of
different length without inspecting their contents.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)


def webhook_signature(secret: str, raw_body: bytes) -> str:
    """base64(HMAC-SHA256(secret, raw_body)), as sent in X-Shopify-Hmac-Sha256."""
    digest = hmac.new(secret.encode(), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_webhook_signature(secret: str, raw_body: bytes, provided: str) -> bool:
    """Check *provided* against the signature of the exact bytes received.

    *raw_body* must be the request body as read off the wire; re-serializing
    parsed JSON changes whitespace and key order and breaks the comparison.
    """
    expected = webhook_signature(secret, raw_body)
    return hmac.compare_digest(expected.encode(), provided.strip().encode())


def link_signature(secret: str, customer_id: str, email: str) -> str:
    """hex(HMAC-SHA256(secret, "<customer_id>|<normalized email>"))."""
    payload = f"{customer_id}|{email.strip().lower()}"
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


def verify_link_signature(
    secret: str | None,
    customer_id: str,
    email: str,
    signature: str | None,
    *,
    allow_unsigned: bool = False,
) -> bool:
    """Verify a legacy login link.

    With no secret configured the link can only be trusted when
    *allow_unsigned* is set; callers decide what "not configured and not
    allowed" means (the API treats it as a server misconfiguration).
    """
    if not secret:
        if allow_unsigned:
            logger.warning("Accepting unsigned login link for customer=%s", customer_id)
        return allow_unsigned
    if not signature:
        return False
    expected = link_signature(secret, customer_id, email)
    return hmac.compare_digest(expected.encode(), signature.strip().lower().encode())
