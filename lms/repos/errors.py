from __future__ import annotations


class DuplicateKeyError(Exception):
    """An insert collided with a unique natural key.

    Raised by every repo implementation (in-memory and Postgres) so the sync
    services can treat "someone else inserted it first" as "already exists".
    """
