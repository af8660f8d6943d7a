# app/schemas/event.py
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from app.schemas.recurrence import RecurrenceRule


class EventCategory(str, Enum):
    DOCTOR = "DOCTOR"
    SCHOOL = "SCHOOL"
    SPORT = "SPORT"
    WORK = "WORK"
    LEISURE = "LEISURE"
    BIRTHDAY = "BIRTHDAY"
    HOLIDAY = "HOLIDAY"
    OTHER = "OTHER"


def to_naive_utc(value: datetime | None) -> datetime | None:
    """
    Times are stored and compared as naive wall-clock values. Aware inputs
    are converted to UTC first so they can be mixed with stored values.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


WallClockDatetime = Annotated[datetime, AfterValidator(to_naive_utc)]

_datetime_adapter = TypeAdapter(datetime)


def keep_all_day_date(data: Any) -> Any:
    """
    All-day times name a calendar day rather than an instant, so their zone
    is dropped without converting to UTC. Runs before field validation.
    """
    if not isinstance(data, dict) or data.get("all_day") is not True:
        return data

    data = dict(data)
    for key in ("start_time", "end_time"):
        value = data.get(key)
        if value is None:
            continue
        try:
            parsed = _datetime_adapter.validate_python(value)
        except ValidationError:
            # left for field validation to report
            continue
        data[key] = parsed.replace(tzinfo=None)
    return data


class Participant(BaseModel):
    """
    A family member attending an event.
    """

    member_id: str = Field(..., description="Identifier of the family member.")
    name: str = Field(..., description="Display name of the member.", examples=["Anna"])
    color: str | None = Field(None, description="Member color used by the UI.")


# --------------------------------------------------------------------------
# Read model (also the shape consumed by the recurrence/conflict engine)
# --------------------------------------------------------------------------

class CalendarEvent(BaseModel):
    """
    A calendar event as seen by the expander and the conflict detector.

    For materialized occurrences of a recurring series, `original_event_id`
    points at the series anchor and `occurrence_date` carries the concrete
    start of this instance.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Event id; shared by all occurrences of a series.")
    title: str = Field(..., examples=["Swimming lesson"])
    description: str | None = None
    location: str | None = None
    category: EventCategory = EventCategory.OTHER

    start_time: datetime = Field(..., examples=["2025-03-01T09:00:00"])
    end_time: datetime | None = Field(
        None,
        description="End of the event. Open-ended events count as one hour for overlaps.",
        examples=["2025-03-01T10:00:00"],
    )
    all_day: bool = False

    participants: list[Participant] = Field(default_factory=list)
    recurrence: RecurrenceRule | None = None
    recurrence_description: str | None = Field(
        None,
        description="Human-readable summary of the recurrence rule.",
        examples=["Weekly (Mon, Wed)"],
    )

    original_event_id: str | None = Field(
        None,
        description="Set on expanded occurrences: id of the series anchor.",
    )
    occurrence_date: datetime | None = Field(
        None,
        description="Set on expanded occurrences: start of this occurrence.",
    )

    @property
    def participant_ids(self) -> list[str]:
        return [p.member_id for p in self.participants]

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None


# --------------------------------------------------------------------------
# Write models (POST /events, PATCH /events/{id})
# --------------------------------------------------------------------------

class EventCreate(BaseModel):
    """
    Schema for creating a new event, optionally as a recurring series.
    """

    title: str = Field(..., min_length=1, max_length=100, examples=["Swimming lesson"])
    description: str | None = Field(None, max_length=500)
    location: str | None = Field(None, max_length=200)
    category: EventCategory = EventCategory.OTHER

    start_time: WallClockDatetime = Field(..., examples=["2025-03-01T09:00:00"])
    end_time: WallClockDatetime | None = Field(None, examples=["2025-03-01T10:00:00"])
    all_day: bool = False

    participant_ids: list[str] = Field(default_factory=list)
    recurrence: RecurrenceRule | None = None

    @model_validator(mode="before")
    @classmethod
    def _keep_all_day_date(cls, data: Any) -> Any:
        return keep_all_day_date(data)

    @model_validator(mode="after")
    def _check_time_order(self) -> "EventCreate":
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class EventUpdate(BaseModel):
    """
    Schema for updating an event.
    All fields are optional; only provided fields are updated. Sending
    `"recurrence": null` turns a series back into a single event.
    """

    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=200)
    category: EventCategory | None = None

    start_time: WallClockDatetime | None = None
    end_time: WallClockDatetime | None = None
    all_day: bool | None = None

    participant_ids: list[str] | None = None
    recurrence: RecurrenceRule | None = None

    @model_validator(mode="before")
    @classmethod
    def _keep_all_day_date(cls, data: Any) -> Any:
        return keep_all_day_date(data)
