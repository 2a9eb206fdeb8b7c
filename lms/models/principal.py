from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Caller identity taken from a verified session token.

    user_id: internal user id (the token's ``sub``)
    customer_id: storefront customer id the token was issued for
    """

    user_id: str
    customer_id: str | None = None
