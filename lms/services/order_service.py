"""Storefront order → enrollment sync.

process_order turns each course line item of a paid order into an
Enrollment plus its initial Progress.  Items are handled one at a time and
each is idempotent on (user, order id, product id), so the whole operation
is safe to repeat: a redelivered webhook finds every enrollment already
present and creates nothing.  With the Postgres store the whole delivery is
one transaction, so a failure on any item rolls back the entire order and
the redelivery starts over; the in-memory store keeps whatever items were
written before the failure.  Either way the retry converges.

update_order_status cancels an order's enrollments once it is refunded or
cancelled.  Cancellation is one-way; a reversed refund does not reactivate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from lms.core.errors import BadRequest
from lms.core.metrics import ENROLLMENTS_CANCELLED, ENROLLMENTS_CREATED, LINE_ITEMS_SKIPPED
from lms.models.enrollment import CANCELLABLE_STATUSES, Enrollment
from lms.models.progress import Progress
from lms.models.user import User
from lms.repos.errors import DuplicateKeyError
from lms.repos.store import Store
from lms.services import identity_service

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SkippedItem:
    product_id: str | None
    reason: str  # no_product|no_course|duplicate


@dataclass(slots=True)
class OrderSyncResult:
    user: User
    created: list[Enrollment] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)


def _skip(result: OrderSyncResult, product_id: str | None, reason: str) -> None:
    result.skipped.append(SkippedItem(product_id=product_id, reason=reason))
    LINE_ITEMS_SKIPPED.labels(reason=reason).inc()


async def _ensure_progress(store: Store, enrollment: Enrollment) -> None:
    progress = Progress.new(
        enrollment_id=enrollment.id,
        user_id=enrollment.user_id,
        course_id=enrollment.course_id,
    )
    try:
        await store.progress.add(progress)
    except DuplicateKeyError:
        logger.info("Progress already exists for enrollment=%s", enrollment.id)


async def _enroll_line_item(
    store: Store,
    result: OrderSyncResult,
    order: dict[str, Any],
    line_item: dict[str, Any],
) -> None:
    order_id = str(order["id"])
    raw_product_id = line_item.get("product_id")
    if raw_product_id in (None, ""):
        logger.info("Line item %s has no product, skipping", line_item.get("id"))
        _skip(result, None, "no_product")
        return
    product_id = str(raw_product_id)
    log_ctx = {"order_id": order_id, "product_id": product_id}

    course = await store.courses.get_by_product_id(product_id)
    if course is None:
        logger.warning("No course for product=%s, skipping", product_id, extra=log_ctx)
        _skip(result, product_id, "no_course")
        return

    user = result.user
    if await store.enrollments.find(user.id, order_id, product_id) is not None:
        logger.info("Enrollment already exists for order=%s product=%s", order_id, product_id, extra=log_ctx)
        _skip(result, product_id, "duplicate")
        return

    order_number = order.get("order_number")
    enrollment = Enrollment.new(
        user_id=user.id,
        course_id=course.id,
        shopify_order_id=order_id,
        shopify_product_id=product_id,
        shopify_order_number=str(order_number) if order_number is not None else None,
        order_data=order,
    )
    try:
        await store.enrollments.add(enrollment)
    except DuplicateKeyError:
        # A concurrent delivery of the same order got there first.
        logger.info("Lost enrollment insert race for order=%s product=%s", order_id, product_id, extra=log_ctx)
        _skip(result, product_id, "duplicate")
        return

    await _ensure_progress(store, enrollment)
    result.created.append(enrollment)
    ENROLLMENTS_CREATED.inc()
    logger.info(
        "Enrolled user=%s in course=%r (enrollment=%s)",
        user.id,
        course.title,
        enrollment.id,
        extra=log_ctx,
    )


async def process_order(store: Store, order: dict[str, Any]) -> OrderSyncResult:
    """Sync the order's customer and enroll them in every purchased course."""
    customer = order.get("customer")
    if not customer:
        raise BadRequest("No customer data in order")
    if order.get("id") in (None, ""):
        raise BadRequest("Order payload has no id")

    user = await identity_service.sync_customer(store.users, customer)
    result = OrderSyncResult(user=user)

    for line_item in order.get("line_items") or []:
        await _enroll_line_item(store, result, order, line_item)

    logger.info(
        "Processed order=%s number=%s: %d enrolled, %d skipped",
        order["id"],
        order.get("order_number"),
        len(result.created),
        len(result.skipped),
        extra={"order_id": str(order["id"])},
    )
    return result


def is_refunded_or_cancelled(order: dict[str, Any]) -> bool:
    return order.get("financial_status") == "refunded" or bool(order.get("cancelled_at"))


async def update_order_status(store: Store, order: dict[str, Any]) -> int:
    """Cancel the order's enrollments if it was refunded or cancelled.

    Returns the number of enrollments cancelled.  Active and completed
    enrollments are cancelled alike; expired and already-cancelled ones are
    left as they are.
    """
    if order.get("id") in (None, ""):
        raise BadRequest("Order payload has no id")
    if not is_refunded_or_cancelled(order):
        return 0

    order_id = str(order["id"])
    cancelled = await store.enrollments.set_status_for_order(
        order_id,
        "cancelled",
        from_statuses=CANCELLABLE_STATUSES,
        now=datetime.now(UTC),
    )
    ENROLLMENTS_CANCELLED.inc(cancelled)
    logger.info("Cancelled %d enrollment(s) for order=%s", cancelled, order_id, extra={"order_id": order_id})
    return cancelled
