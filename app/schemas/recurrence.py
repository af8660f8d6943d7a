# app/schemas/recurrence.py
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class Weekday(str, Enum):
    """
    Two-letter weekday codes, as used in iCalendar BYDAY values.
    """

    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"


# Python weekday numbers (Monday == 0)
WEEKDAY_NUMBERS: dict[Weekday, int] = {day: number for number, day in enumerate(Weekday)}


# --------------------------------------------------------------------------
# End conditions
# --------------------------------------------------------------------------

class NeverEnds(BaseModel):
    """
    Open-ended series. Expansion is still bounded by the occurrence cap and
    the expansion horizon.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["never"] = "never"


class EndsOnDate(BaseModel):
    """
    Series ends on `end_date` (inclusive, calendar-day granularity).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["date"] = "date"
    end_date: date = Field(
        ...,
        description="Last calendar day on which an occurrence may fall.",
        examples=["2025-06-30"],
    )


class EndsAfterCount(BaseModel):
    """
    Series ends after `count` occurrences, the anchor included.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["count"] = "count"
    count: int = Field(
        ...,
        ge=1,
        description="Total number of occurrences including the first one.",
        examples=[10],
    )


EndCondition = Annotated[
    Union[NeverEnds, EndsOnDate, EndsAfterCount],
    Field(discriminator="type"),
]


# --------------------------------------------------------------------------
# Rules, one variant per frequency
# --------------------------------------------------------------------------

class _RuleBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    interval: int = Field(
        default=1,
        ge=1,
        le=99,
        description="Step size in units of the rule's frequency.",
        examples=[1],
    )
    end: EndCondition = Field(
        default_factory=NeverEnds,
        description="When the series stops repeating.",
    )


class DailyRule(_RuleBase):
    frequency: Literal["DAILY"] = "DAILY"


class WeeklyRule(_RuleBase):
    """
    Weekly repetition. An empty `days_of_week` repeats on the anchor's
    weekday.
    """

    frequency: Literal["WEEKLY"] = "WEEKLY"
    days_of_week: list[Weekday] = Field(
        default_factory=list,
        description="Weekdays on which the series occurs.",
        examples=[["MO", "WE"]],
    )


class MonthlyRule(_RuleBase):
    """
    Monthly repetition. Without `day_of_month` the anchor's day is kept.
    Days past the end of a short month are clamped to its last day.
    """

    frequency: Literal["MONTHLY"] = "MONTHLY"
    day_of_month: int | None = Field(
        default=None,
        ge=1,
        le=31,
        description="Day of the month on which the series occurs.",
        examples=[15],
    )


class YearlyRule(_RuleBase):
    frequency: Literal["YEARLY"] = "YEARLY"


RecurrenceRule = Annotated[
    Union[DailyRule, WeeklyRule, MonthlyRule, YearlyRule],
    Field(discriminator="frequency"),
]
