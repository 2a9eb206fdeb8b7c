"""SQLAlchemy table definitions.

Rows mirror the frozen dataclasses in lms/models/; repos convert between the
two.  Storefront snapshots and player state are JSONB columns the database
never indexes into.  Natural keys carry unique constraints so a concurrent
duplicate insert fails in the database rather than creating a second row.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from lms.db.engine import Base

JsonDoc = JSON().with_variant(JSONB(), "postgresql")


class _Timestamps:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class UserRow(_Timestamps, Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    shopify_customer_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    shopify_data: Mapped[dict[str, Any] | None] = mapped_column(JsonDoc, nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


class CourseRow(_Timestamps, Base):
    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    shopify_product_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail: Mapped[str | None] = mapped_column(Text, nullable=True)
    handle: Mapped[str | None] = mapped_column(String(255), nullable=True)
    scorm_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    admission_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # "metadata" is reserved on declarative classes
    course_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JsonDoc, nullable=False, default=dict
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    total_lessons: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    estimated_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    shopify_data: Mapped[dict[str, Any] | None] = mapped_column(JsonDoc, nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (Index("ix_courses_is_active", "is_active"),)


class EnrollmentRow(_Timestamps, Base):
    __tablename__ = "enrollments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("courses.id"), nullable=False
    )
    shopify_order_id: Mapped[str] = mapped_column(String(64), nullable=False)
    shopify_order_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    shopify_product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="active"
    )  # active|completed|expired|cancelled
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    order_data: Mapped[dict[str, Any] | None] = mapped_column(JsonDoc, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "shopify_order_id",
            "shopify_product_id",
            name="uq_enrollments_user_order_product",
        ),
        Index("ix_enrollments_user_status", "user_id", "status"),
        Index("ix_enrollments_course_status", "course_id", "status"),
        Index("ix_enrollments_order", "shopify_order_id"),
    )


class ProgressRow(_Timestamps, Base):
    __tablename__ = "progress"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    enrollment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("enrollments.id"), unique=True, nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    course_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("courses.id"), nullable=False
    )
    progress: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    time_spent: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    last_accessed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    scorm_data: Mapped[dict[str, Any]] = mapped_column(
        JsonDoc, nullable=False, default=dict
    )
    certificate: Mapped[dict[str, Any] | None] = mapped_column(JsonDoc, nullable=True)

    __table_args__ = (
        Index("ix_progress_user_course", "user_id", "course_id"),
        Index("ix_progress_completed", "completed"),
    )
