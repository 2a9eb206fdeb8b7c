"""Lost insert races: the lookup misses, a concurrent writer already inserted.

Each repo below answers its first natural-key lookup with None, as if a
concurrent delivery committed between our read and our insert.  The insert
then collides on the unique key and the services must fall back to the
stored record instead of failing or duplicating it.
"""

from __future__ import annotations

import asyncio

from lms.models.course import Course
from lms.models.enrollment import Enrollment
from lms.models.progress import Progress
from lms.models.user import User
from lms.repos.course_repo import InMemoryCourseRepo
from lms.repos.enrollment_repo import InMemoryEnrollmentRepo
from lms.repos.progress_repo import InMemoryProgressRepo
from lms.repos.store import Store
from lms.repos.user_repo import InMemoryUserRepo
from lms.services import catalog_service, identity_service, order_service, progress_service
from lms.services.progress_service import ProgressUpdate


class _StaleUserRepo(InMemoryUserRepo):
    def __init__(self) -> None:
        super().__init__()
        self.misses = 1

    async def get_by_customer_id(self, customer_id: str) -> User | None:
        if self.misses:
            self.misses -= 1
            return None
        return await super().get_by_customer_id(customer_id)


class _StaleCourseRepo(InMemoryCourseRepo):
    def __init__(self) -> None:
        super().__init__()
        self.misses = 1

    async def get_by_product_id(self, product_id: str) -> Course | None:
        if self.misses:
            self.misses -= 1
            return None
        return await super().get_by_product_id(product_id)


class _StaleEnrollmentRepo(InMemoryEnrollmentRepo):
    def __init__(self) -> None:
        super().__init__()
        self.misses = 1

    async def find(self, user_id, order_id: str, product_id: str) -> Enrollment | None:
        if self.misses:
            self.misses -= 1
            return None
        return await super().find(user_id, order_id, product_id)


class _StaleProgressRepo(InMemoryProgressRepo):
    def __init__(self) -> None:
        super().__init__()
        self.misses = 1

    async def get_by_enrollment(self, enrollment_id) -> Progress | None:
        if self.misses:
            self.misses -= 1
            return None
        return await super().get_by_enrollment(enrollment_id)


def _store(**repos: object) -> Store:
    defaults: dict[str, object] = {
        "users": InMemoryUserRepo(),
        "courses": InMemoryCourseRepo(),
        "enrollments": InMemoryEnrollmentRepo(),
        "progress": InMemoryProgressRepo(),
    }
    defaults.update(repos)
    return Store(**defaults)  # type: ignore[arg-type]


# ---- users ----


def test_find_or_create_user_returns_concurrent_winner() -> None:
    users = _StaleUserRepo()
    winner = User.new(shopify_customer_id="1001", email="winner@example.com")
    asyncio.run(users.add(winner))

    login = asyncio.run(identity_service.find_or_create_user(users, "1001", "loser@example.com"))

    assert users.misses == 0
    assert login.user.id == winner.id
    assert login.user.email == "winner@example.com"
    assert len(users) == 1


def test_sync_customer_updates_concurrent_winner() -> None:
    users = _StaleUserRepo()
    winner = User.new(shopify_customer_id="1001", email="winner@example.com")
    asyncio.run(users.add(winner))

    synced = asyncio.run(
        identity_service.sync_customer(users, {"id": 1001, "email": "new@example.com"})
    )

    assert synced.id == winner.id
    assert synced.email == "new@example.com"
    assert len(users) == 1


# ---- courses ----


def test_upsert_course_updates_concurrent_winner() -> None:
    courses = _StaleCourseRepo()
    winner = Course.new(shopify_product_id="9", title="Intro")
    asyncio.run(courses.add(winner))

    course = asyncio.run(catalog_service.upsert_course(courses, {"id": 9, "title": "Intro v2"}))

    assert courses.misses == 0
    assert course.id == winner.id
    assert course.title == "Intro v2"
    assert len(courses) == 1


# ---- enrollments ----


def test_order_line_item_lost_race_counts_as_duplicate(order_payload) -> None:
    store = _store(enrollments=_StaleEnrollmentRepo())
    user = User.new(shopify_customer_id="1001", email="learner@example.com")
    course = Course.new(shopify_product_id="555", title="Intro to SCORM")
    asyncio.run(store.users.add(user))
    asyncio.run(store.courses.add(course))
    existing = Enrollment.new(
        user_id=user.id, course_id=course.id, shopify_order_id="9001", shopify_product_id="555"
    )
    asyncio.run(store.enrollments.add(existing))

    result = asyncio.run(order_service.process_order(store, order_payload()))

    assert result.created == []
    assert [s.reason for s in result.skipped] == ["duplicate"]
    assert len(store.enrollments) == 1  # type: ignore[arg-type]
    assert len(store.progress) == 0  # type: ignore[arg-type]


# ---- progress ----


def test_record_progress_uses_concurrently_created_progress() -> None:
    store = _store(progress=_StaleProgressRepo())
    user = User.new(shopify_customer_id="1001", email="learner@example.com")
    course = Course.new(shopify_product_id="555", title="Intro to SCORM")
    enrollment = Enrollment.new(
        user_id=user.id, course_id=course.id, shopify_order_id="9001", shopify_product_id="555"
    )
    asyncio.run(store.enrollments.add(enrollment))
    winner = Progress.new(enrollment_id=enrollment.id, user_id=user.id, course_id=course.id)
    asyncio.run(store.progress.add(winner))

    progress = asyncio.run(
        progress_service.record_progress(
            store, enrollment.id, ProgressUpdate(progress=40, time_spent=10), str(user.id)
        )
    )

    assert progress.id == winner.id
    assert progress.progress == 40
    assert progress.time_spent == 10
    assert len(store.progress) == 1  # type: ignore[arg-type]
