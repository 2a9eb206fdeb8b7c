"""Progress tracking for the SCORM player.

Per-field update rules:

  progress      overwritten when supplied
  time_spent    added to the stored total (the player reports deltas)
  completed     overwritten when supplied
  scorm_data    merged by merge_player_state
  last_accessed stamped on every update

The first update that flips completed false → true completes the
enrollment in the same call: completed_at is stamped and the status moves
active → completed.  Later completion updates leave the enrollment alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from lms.core.errors import Forbidden, NotFound
from lms.core.metrics import COURSE_COMPLETIONS
from lms.models.enrollment import Enrollment, can_transition
from lms.models.progress import PlayerState, Progress
from lms.repos.errors import DuplicateKeyError
from lms.repos.store import Store

logger = logging.getLogger(__name__)

_SCALAR_KEYS = ("score", "max_score", "min_score", "completion_status", "success_status")


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    """Fields a player update may carry; None means "not supplied"."""

    progress: float | None = None
    completed: bool | None = None
    time_spent: float | None = None
    scorm_data: PlayerState | None = None


def merge_player_state(stored: PlayerState, incoming: PlayerState) -> PlayerState:
    """Merge an incoming player-state fragment into the stored state.

    - scalar fields: incoming value replaces stored when present (not None)
    - bookmarks: keyed by lesson_id; incoming entries replace same-key
      entries in place, new keys are appended, others are kept
    - interactions: incoming entries are appended to the stored log
    - raw_data: key-wise override of the stored mapping
    - any other key: incoming replaces stored

    Neither argument is mutated.
    """
    merged: PlayerState = dict(stored)

    for key, value in incoming.items():
        if key in _SCALAR_KEYS:
            if value is not None:
                merged[key] = value
        elif key == "bookmarks":
            merged[key] = _merge_bookmarks(stored.get("bookmarks") or [], value or [])
        elif key == "interactions":
            merged[key] = list(stored.get("interactions") or []) + list(value or [])
        elif key == "raw_data":
            merged[key] = {**(stored.get("raw_data") or {}), **(value or {})}
        else:
            merged[key] = value

    return merged


def _merge_bookmarks(
    stored: list[dict[str, Any]], incoming: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    merged = [dict(b) for b in stored]
    index = {b.get("lesson_id"): i for i, b in enumerate(merged)}
    for bookmark in incoming:
        key = bookmark.get("lesson_id")
        if key in index:
            merged[index[key]] = dict(bookmark)
        else:
            index[key] = len(merged)
            merged.append(dict(bookmark))
    return merged


async def get_owned_enrollment(store: Store, enrollment_id: UUID, user_id: str) -> Enrollment:
    """Return the enrollment, or raise NotFound / Forbidden."""
    enrollment = await store.enrollments.get_by_id(enrollment_id)
    if enrollment is None:
        raise NotFound("Enrollment not found")
    if str(enrollment.user_id) != user_id:
        logger.warning("Access denied: user=%s does not own enrollment=%s", user_id, enrollment_id)
        raise Forbidden("Access denied")
    return enrollment


async def _get_or_create_progress(store: Store, enrollment: Enrollment) -> Progress:
    progress = await store.progress.get_by_enrollment(enrollment.id)
    if progress is not None:
        return progress

    logger.info("No progress for enrollment=%s, creating one", enrollment.id)
    progress = Progress.new(
        enrollment_id=enrollment.id,
        user_id=enrollment.user_id,
        course_id=enrollment.course_id,
    )
    try:
        await store.progress.add(progress)
    except DuplicateKeyError:
        existing = await store.progress.get_by_enrollment(enrollment.id)
        if existing is None:
            raise
        return existing
    return progress


async def record_progress(
    store: Store,
    enrollment_id: UUID,
    update: ProgressUpdate,
    acting_user_id: str,
) -> Progress:
    enrollment = await get_owned_enrollment(store, enrollment_id, acting_user_id)
    current = await _get_or_create_progress(store, enrollment)
    now = datetime.now(UTC)

    changes: dict[str, Any] = {"last_accessed_at": now}
    if update.progress is not None:
        changes["progress"] = update.progress
    if update.time_spent is not None:
        changes["time_spent"] = current.time_spent + update.time_spent
    if update.completed is not None:
        changes["completed"] = update.completed
    if update.scorm_data:
        changes["scorm_data"] = merge_player_state(current.scorm_data, update.scorm_data)

    updated = current.touch(**changes)
    await store.progress.save(updated)

    if update.completed and not current.completed:
        await _complete_enrollment(store, enrollment, now)

    return updated


async def _complete_enrollment(store: Store, enrollment: Enrollment, now: datetime) -> None:
    if not can_transition(enrollment.status, "completed"):
        logger.info(
            "Completion reported for enrollment=%s in status=%s; status unchanged",
            enrollment.id,
            enrollment.status,
        )
        return
    await store.enrollments.save(enrollment.touch(status="completed", completed_at=now))
    COURSE_COMPLETIONS.inc()
    logger.info("Enrollment %s completed", enrollment.id)


async def get_progress(store: Store, enrollment_id: UUID, acting_user_id: str) -> Progress:
    enrollment = await get_owned_enrollment(store, enrollment_id, acting_user_id)
    progress = await store.progress.get_by_enrollment(enrollment.id)
    if progress is None:
        raise NotFound("Progress not found")
    return progress
