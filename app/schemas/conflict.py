# app/schemas/conflict.py
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.schemas.event import CalendarEvent, WallClockDatetime, keep_all_day_date


class ConflictCandidate(BaseModel):
    """
    The proposed event that is checked against existing events.
    """

    model_config = ConfigDict(frozen=True)

    start_time: WallClockDatetime = Field(..., examples=["2025-03-01T09:00:00"])
    end_time: WallClockDatetime | None = Field(None, examples=["2025-03-01T10:00:00"])
    all_day: bool = False
    participant_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _keep_all_day_date(cls, data: Any) -> Any:
        return keep_all_day_date(data)


class ConflictResult(BaseModel):
    """
    One existing event that overlaps the candidate in time and shares at
    least one participant with it.
    """

    model_config = ConfigDict(frozen=True)

    event: CalendarEvent
    conflicting_member_ids: list[str] = Field(
        ...,
        description="Candidate participants that also attend `event`.",
    )


# --------------------------------------------------------------------------
# API shapes (POST /events/conflicts)
# --------------------------------------------------------------------------

class ConflictCheckRequest(ConflictCandidate):
    """
    Request body of the conflict check endpoint.
    """

    exclude_event_id: str | None = Field(
        None,
        description="Event to ignore, used when checking an event being edited.",
    )


class ConflictingMember(BaseModel):
    id: str
    name: str


class ConflictRead(BaseModel):
    """
    A single conflict flattened for rendering as a warning in the UI.
    """

    event_id: str
    event_title: str
    event_start_time: datetime
    event_end_time: datetime | None = None
    event_all_day: bool = False
    conflicting_members: list[ConflictingMember]


class ConflictCheckResponse(BaseModel):
    has_conflicts: bool = Field(..., examples=[True])
    conflicts: list[ConflictRead] = Field(default_factory=list)
    message: str = Field(
        "",
        description="Human-readable summary, one line per conflicting event.",
        examples=['"Football practice" (09:30) - Ben'],
    )
