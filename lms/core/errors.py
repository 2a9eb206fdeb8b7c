"""Error taxonomy shared by services and the HTTP layer.

Services raise these instead of fastapi.HTTPException so they stay usable
outside a request (tests, scripts).  main.py registers one exception handler
that renders any LmsError as ``{"detail": message}`` with its status code.

  BadRequest       400  malformed or missing required input
  Unauthenticated  401  missing/invalid/expired credential or signature
  Forbidden        403  valid credential, wrong owner
  NotFound         404  referenced entity absent
  Misconfigured    500  a required server-side secret is not set
  Unexpected       500  anything else (only produced by the catch-all handler)
"""

from __future__ import annotations

from fastapi import status


class LmsError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(LmsError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class Unauthenticated(LmsError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid token"


class Forbidden(LmsError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(LmsError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Misconfigured(LmsError):
    default_message = "Server is not configured"


class Unexpected(LmsError):
    pass
