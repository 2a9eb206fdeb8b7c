"""Progress endpoints called by the SCORM player.

POST /api/progress               body carries enrollment_id
PUT  /api/progress/{enrollment_id}   same update, id in the path
GET  /api/progress/{enrollment_id}

Only the enrollment's owner may read or write its progress.
Bodies accept the player's camelCase keys (timeSpent, scormData, lessonId)
as well as snake_case; stored player state always uses snake_case.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from fastapi import APIRouter
from pydantic import AliasChoices, BaseModel, Field

from lms.api.dependencies import StoreDep, UserDep
from lms.api.schemas import ProgressOut
from lms.services import progress_service
from lms.services.progress_service import ProgressUpdate

router = APIRouter(prefix="/api/progress", tags=["progress"])


class BookmarkIn(BaseModel):
    lesson_id: str = Field(validation_alias=AliasChoices("lesson_id", "lessonId"))
    timestamp: float | None = None


class InteractionIn(BaseModel):
    id: str | None = None
    type: str | None = None
    timestamp: datetime | None = None
    result: str | None = None
    latency: float | None = None


class ScormDataIn(BaseModel):
    score: float | None = Field(default=None, ge=0, le=100)
    max_score: float | None = Field(
        default=None, validation_alias=AliasChoices("max_score", "maxScore")
    )
    min_score: float | None = Field(
        default=None, validation_alias=AliasChoices("min_score", "minScore")
    )
    completion_status: Literal["completed", "incomplete", "not attempted", "unknown"] | None = Field(
        default=None, validation_alias=AliasChoices("completion_status", "completionStatus")
    )
    success_status: Literal["passed", "failed", "unknown"] | None = Field(
        default=None, validation_alias=AliasChoices("success_status", "successStatus")
    )
    bookmarks: list[BookmarkIn] | None = None
    interactions: list[InteractionIn] | None = None
    raw_data: dict[str, Any] | None = Field(
        default=None, validation_alias=AliasChoices("raw_data", "rawData")
    )


class ProgressUpdateIn(BaseModel):
    progress: float | None = Field(default=None, ge=0, le=100)
    completed: bool | None = None
    time_spent: float | None = Field(
        default=None, ge=0, validation_alias=AliasChoices("time_spent", "timeSpent")
    )
    scorm_data: ScormDataIn | None = Field(
        default=None, validation_alias=AliasChoices("scorm_data", "scormData")
    )

    def to_update(self) -> ProgressUpdate:
        scorm = (
            self.scorm_data.model_dump(mode="json", exclude_unset=True)
            if self.scorm_data is not None
            else None
        )
        return ProgressUpdate(
            progress=self.progress,
            completed=self.completed,
            time_spent=self.time_spent,
            scorm_data=scorm,
        )


class RecordProgressIn(ProgressUpdateIn):
    enrollment_id: UUID = Field(validation_alias=AliasChoices("enrollment_id", "enrollmentId"))


@router.get("/{enrollment_id}", response_model=ProgressOut)
async def get_progress(
    enrollment_id: UUID, principal: UserDep, store: StoreDep
) -> ProgressOut:
    progress = await progress_service.get_progress(store, enrollment_id, principal.user_id)
    return ProgressOut.of(progress)


@router.post("", response_model=ProgressOut)
async def record_progress(
    body: RecordProgressIn, principal: UserDep, store: StoreDep
) -> ProgressOut:
    progress = await progress_service.record_progress(
        store, body.enrollment_id, body.to_update(), principal.user_id
    )
    return ProgressOut.of(progress)


@router.put("/{enrollment_id}", response_model=ProgressOut)
async def update_progress(
    enrollment_id: UUID, body: ProgressUpdateIn, principal: UserDep, store: StoreDep
) -> ProgressOut:
    progress = await progress_service.record_progress(
        store, enrollment_id, body.to_update(), principal.user_id
    )
    return ProgressOut.of(progress)
