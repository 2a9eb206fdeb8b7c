from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest
from prometheus_client import REGISTRY

from lms.core.errors import Forbidden, NotFound
from lms.models.course import Course
from lms.models.enrollment import Enrollment, can_transition
from lms.models.progress import Progress
from lms.models.user import User
from lms.repos.store import Store
from lms.services import progress_service
from lms.services.progress_service import ProgressUpdate, merge_player_state


@pytest.fixture
def enrollment(store: Store, user: User, course: Course) -> Enrollment:
    e = Enrollment.new(
        user_id=user.id,
        course_id=course.id,
        shopify_order_id="9001",
        shopify_product_id=course.shopify_product_id,
    )
    asyncio.run(store.enrollments.add(e))
    asyncio.run(store.progress.add(Progress.new(enrollment_id=e.id, user_id=user.id, course_id=course.id)))
    return e


def _completions() -> float:
    return REGISTRY.get_sample_value("lms_course_completions_total") or 0.0


def _record(store: Store, enrollment: Enrollment, user: User, **fields: object) -> Progress:
    return asyncio.run(
        progress_service.record_progress(store, enrollment.id, ProgressUpdate(**fields), str(user.id))
    )


# ---- player state merge ----


def test_merge_scalars_override_only_when_present() -> None:
    stored = {"score": 40, "completion_status": "incomplete"}
    merged = merge_player_state(stored, {"score": None, "completion_status": "completed"})
    assert merged == {"score": 40, "completion_status": "completed"}


def test_merge_bookmarks_keyed_by_lesson() -> None:
    stored = {"bookmarks": [{"lesson_id": "l1", "timestamp": 10}, {"lesson_id": "l2", "timestamp": 5}]}
    incoming = {"bookmarks": [{"lesson_id": "l2", "timestamp": 30}, {"lesson_id": "l3", "timestamp": 1}]}
    merged = merge_player_state(stored, incoming)
    assert merged["bookmarks"] == [
        {"lesson_id": "l1", "timestamp": 10},
        {"lesson_id": "l2", "timestamp": 30},
        {"lesson_id": "l3", "timestamp": 1},
    ]


def test_merge_interactions_append() -> None:
    merged = merge_player_state({"interactions": [{"id": "q1"}]}, {"interactions": [{"id": "q2"}]})
    assert merged["interactions"] == [{"id": "q1"}, {"id": "q2"}]


def test_merge_raw_data_keywise() -> None:
    merged = merge_player_state({"raw_data": {"a": 1, "b": 2}}, {"raw_data": {"b": 3, "c": 4}})
    assert merged["raw_data"] == {"a": 1, "b": 3, "c": 4}


def test_merge_does_not_mutate_inputs() -> None:
    stored = {"interactions": [{"id": "q1"}], "raw_data": {"a": 1}}
    merge_player_state(stored, {"interactions": [{"id": "q2"}], "raw_data": {"a": 2}})
    assert stored == {"interactions": [{"id": "q1"}], "raw_data": {"a": 1}}


# ---- transitions ----


def test_allowed_transitions() -> None:
    assert can_transition("active", "completed")
    assert can_transition("active", "cancelled")
    assert can_transition("completed", "cancelled")
    assert not can_transition("cancelled", "active")
    assert not can_transition("completed", "active")
    assert not can_transition("expired", "completed")


# ---- record_progress ----


def test_time_spent_is_additive(store: Store, enrollment: Enrollment, user: User) -> None:
    _record(store, enrollment, user, time_spent=60)
    progress = _record(store, enrollment, user, time_spent=30, progress=50)
    assert progress.time_spent == 90
    assert progress.progress == 50
    assert progress.last_accessed_at is not None


def test_first_completion_completes_enrollment_once(
    store: Store, enrollment: Enrollment, user: User
) -> None:
    first_progress = _record(store, enrollment, user, progress=100, completed=True)
    first = asyncio.run(store.enrollments.get_by_id(enrollment.id))
    assert first.status == "completed"
    assert first.completed_at is not None

    second_progress = _record(store, enrollment, user, completed=True)
    second = asyncio.run(store.enrollments.get_by_id(enrollment.id))
    assert second.completed_at == first.completed_at
    assert second_progress.last_accessed_at > first_progress.last_accessed_at


def test_completion_does_not_revive_cancelled_enrollment(
    store: Store, enrollment: Enrollment, user: User
) -> None:
    asyncio.run(store.enrollments.save(enrollment.touch(status="cancelled")))
    progress = _record(store, enrollment, user, completed=True)
    assert progress.completed
    assert asyncio.run(store.enrollments.get_by_id(enrollment.id)).status == "cancelled"


def test_missing_progress_is_created(store: Store, enrollment: Enrollment, user: User) -> None:
    store.progress.clear()  # type: ignore[attr-defined]
    progress = _record(store, enrollment, user, progress=10)
    assert progress.enrollment_id == enrollment.id
    assert progress.progress == 10


def test_other_users_enrollment_forbidden(
    store: Store, enrollment: Enrollment, other_user: User
) -> None:
    with pytest.raises(Forbidden):
        _record(store, enrollment, other_user, progress=10)


def test_unknown_enrollment_not_found(store: Store, user: User) -> None:
    with pytest.raises(NotFound):
        asyncio.run(progress_service.get_progress(store, uuid4(), str(user.id)))


def test_completion_counter_counts_transitions_only(
    store: Store, enrollment: Enrollment, user: User
) -> None:
    before = _completions()
    _record(store, enrollment, user, completed=True)
    _record(store, enrollment, user, completed=False)
    _record(store, enrollment, user, completed=True)
    assert _completions() - before == 1


def test_completion_counter_ignores_cancelled_enrollment(
    store: Store, enrollment: Enrollment, user: User
) -> None:
    asyncio.run(store.enrollments.save(enrollment.touch(status="cancelled")))
    before = _completions()
    _record(store, enrollment, user, completed=True)
    assert _completions() - before == 0
