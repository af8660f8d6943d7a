# app/services/event_mapper.py
from __future__ import annotations

import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from app.models.event import Event, EventRecurrence
from app.schemas.event import CalendarEvent, Participant
from app.schemas.recurrence import (
    EndsAfterCount,
    EndsOnDate,
    MonthlyRule,
    RecurrenceRule,
    Weekday,
    WeeklyRule,
)
from app.services.recurrence import describe_recurrence

logger = logging.getLogger(__name__)

_rule_adapter: TypeAdapter[RecurrenceRule] = TypeAdapter(RecurrenceRule)

_VALID_WEEKDAYS = {day.value for day in Weekday}


def rule_to_columns(rule: RecurrenceRule) -> dict[str, Any]:
    """
    Flatten a tagged recurrence rule into EventRecurrence column values.
    """
    columns: dict[str, Any] = {
        "frequency": rule.frequency,
        "interval": rule.interval,
        "days_of_week": None,
        "day_of_month": None,
        "end_date": None,
        "count": None,
    }

    if isinstance(rule, WeeklyRule) and rule.days_of_week:
        columns["days_of_week"] = ",".join(day.value for day in rule.days_of_week)
    if isinstance(rule, MonthlyRule):
        columns["day_of_month"] = rule.day_of_month

    if isinstance(rule.end, EndsOnDate):
        columns["end_date"] = rule.end.end_date
    elif isinstance(rule.end, EndsAfterCount):
        columns["count"] = rule.end.count

    return columns


def rule_from_model(recurrence: EventRecurrence | None) -> RecurrenceRule | None:
    """
    Rebuild the tagged rule from its stored columns.

    Stored values are expected to be valid already; anything unusable
    (unknown weekday codes, non-positive interval or count) falls back to the
    nearest sensible default. A row that still cannot be interpreted is
    treated as a non-recurring event.
    """
    if recurrence is None:
        return None

    data: dict[str, Any] = {
        "frequency": recurrence.frequency,
        "interval": max(recurrence.interval or 1, 1),
    }

    if recurrence.frequency == "WEEKLY" and recurrence.days_of_week:
        codes = [c.strip().upper() for c in recurrence.days_of_week.split(",")]
        data["days_of_week"] = [c for c in codes if c in _VALID_WEEKDAYS]
    if recurrence.frequency == "MONTHLY" and recurrence.day_of_month:
        data["day_of_month"] = min(max(recurrence.day_of_month, 1), 31)

    if recurrence.end_date is not None:
        data["end"] = {"type": "date", "end_date": recurrence.end_date}
    elif recurrence.count:
        data["end"] = {"type": "count", "count": max(recurrence.count, 1)}

    try:
        return _rule_adapter.validate_python(data)
    except ValidationError as exc:
        logger.warning(
            "Ignoring unreadable recurrence for event %s: %s",
            recurrence.event_id,
            exc,
        )
        return None


def to_calendar_event(event: Event) -> CalendarEvent:
    """
    Build the read model for an ORM event (participants and recurrence
    must be loaded).
    """
    rule = rule_from_model(event.recurrence)

    participants = [
        Participant(
            member_id=p.member_id,
            name=p.member.name if p.member is not None else "Unknown",
            color=p.member.color if p.member is not None else None,
        )
        for p in event.participants
    ]

    return CalendarEvent(
        id=event.id,
        title=event.title,
        description=event.description,
        location=event.location,
        category=event.category,
        start_time=event.start_time,
        end_time=event.end_time,
        all_day=bool(event.all_day),
        participants=participants,
        recurrence=rule,
        recurrence_description=describe_recurrence(rule) if rule is not None else None,
    )
