"""Opaque storefront payloads kept alongside the typed fields.

Entities store the last webhook/claims payload they were built from (for
audit and support).  The core never reads from these; they are written
whole and returned whole.
"""

from __future__ import annotations

from typing import Any, TypeAlias

Snapshot: TypeAlias = dict[str, Any]
