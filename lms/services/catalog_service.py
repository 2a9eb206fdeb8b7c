"""Storefront product → course sync.

The storefront is the source of truth for the catalog fields (title,
description, image, handle); each delivery overwrites them wholesale, last
writer wins.  LMS-only fields (SCORM URL, admission id, lesson count,
duration, metadata) are never touched by product webhooks and are set via
the admin course endpoint instead.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from lms.core.errors import BadRequest
from lms.models.course import Course
from lms.repos.course_repo import CourseRepo
from lms.repos.errors import DuplicateKeyError

logger = logging.getLogger(__name__)


def _first_image_src(product: dict[str, Any]) -> str | None:
    images = product.get("images") or []
    if images and isinstance(images[0], dict):
        return images[0].get("src")
    image = product.get("image")
    if isinstance(image, dict):
        return image.get("src")
    return None


def _product_fields(product: dict[str, Any]) -> dict[str, Any]:
    return {
        "title": product.get("title") or "",
        "description": product.get("body_html"),
        "thumbnail": _first_image_src(product),
        "handle": (product.get("handle") or "").strip() or None,
        "shopify_data": product,
    }


async def _insert_or_existing(courses: CourseRepo, course: Course) -> Course | None:
    """Insert *course*; return the already-stored one if its product id was taken."""
    try:
        await courses.add(course)
        return None
    except DuplicateKeyError:
        existing = await courses.get_by_product_id(course.shopify_product_id)
        if existing is None:
            raise
        return existing


async def upsert_course(courses: CourseRepo, product: dict[str, Any]) -> Course:
    """Create or overwrite the course for a storefront product payload."""
    if product.get("id") in (None, ""):
        raise BadRequest("Product payload has no id")
    product_id = str(product["id"])
    fields = _product_fields(product)

    existing = await courses.get_by_product_id(product_id)
    if existing is None:
        course = Course.new(shopify_product_id=product_id, **fields)
        existing = await _insert_or_existing(courses, course)
        if existing is None:
            logger.info("Created course id=%s product=%s title=%r", course.id, product_id, course.title)
            return course

    # A payload without a handle keeps the stored one.
    fields["handle"] = fields["handle"] or existing.handle
    updated = existing.touch(**fields, last_synced_at=datetime.now(UTC))
    await courses.save(updated)
    logger.info("Updated course id=%s product=%s title=%r", updated.id, product_id, updated.title)
    return updated


async def save_course(courses: CourseRepo, fields: dict[str, Any]) -> Course:
    """Admin upsert keyed by shopify_product_id.

    Every field in *fields* is written, including LMS-only content fields.
    """
    product_id = str(fields.pop("shopify_product_id"))
    existing = await courses.get_by_product_id(product_id)
    if existing is None:
        course = Course.new(shopify_product_id=product_id, **fields)
        existing = await _insert_or_existing(courses, course)
        if existing is None:
            logger.info("Admin created course id=%s product=%s", course.id, product_id)
            return course

    updated = existing.touch(**fields, last_synced_at=datetime.now(UTC))
    await courses.save(updated)
    logger.info("Admin updated course id=%s product=%s", updated.id, product_id)
    return updated
