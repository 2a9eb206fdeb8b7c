"""Liveness endpoint.

Always answers 200 while the process can respond; the ``status`` field says
whether a dependency is impaired.  A 503 here would make the orchestrator
restart the container, which does not help a database outage.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter

from lms.db import engine as db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["observability"])


@router.get("/health")
async def health() -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if db.engine is None:
        checks["database"] = "not_configured"
    else:
        try:
            await db.ping()
            checks["database"] = "ok"
        except Exception:
            logger.exception("Database health check failed")
            checks["database"] = "degraded"
            overall = "degraded"

    return {
        "status": overall,
        "timestamp": datetime.now(UTC).isoformat(),
        "checks": checks,
    }
