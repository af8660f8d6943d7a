# app/services/recurrence.py
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import date, datetime, timedelta

from dateutil.relativedelta import relativedelta

from app.schemas.event import CalendarEvent
from app.schemas.recurrence import (
    WEEKDAY_NUMBERS,
    DailyRule,
    EndsAfterCount,
    EndsOnDate,
    MonthlyRule,
    RecurrenceRule,
    WeeklyRule,
    YearlyRule,
)

logger = logging.getLogger(__name__)

# Safety bounds for series without an explicit end.
DEFAULT_MAX_OCCURRENCES = 365
DEFAULT_HORIZON = relativedelta(years=2)

_WEEKDAY_LABELS = {
    "MO": "Mon",
    "TU": "Tue",
    "WE": "Wed",
    "TH": "Thu",
    "FR": "Fri",
    "SA": "Sat",
    "SU": "Sun",
}


def generate_occurrences(
    anchor: datetime,
    rule: RecurrenceRule,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
    horizon: relativedelta = DEFAULT_HORIZON,
) -> list[datetime]:
    """
    Expand `rule` anchored at `anchor` into an ordered list of start times.

    Rules
    -----
    - The anchor is always the first occurrence.
    - A candidate whose calendar date lies after the end bound stops the
      expansion. The bound is the rule's end date when it has one, otherwise
      `anchor + horizon`, also for rules that end after a count.
    - At most `min(count, max_occurrences)` occurrences are produced.
    - Monthly and yearly steps are computed from the anchor, so a day that
      does not exist in a short month is clamped to its last day without
      shifting later occurrences.
    """
    occurrences = [anchor]

    end = rule.end
    if isinstance(end, EndsOnDate):
        last_day: date = end.end_date
    else:
        try:
            last_day = (anchor + horizon).date()
        except (ValueError, OverflowError):
            # horizon reaches past the last representable date
            last_day = date.max

    max_count = max_occurrences
    if isinstance(end, EndsAfterCount):
        max_count = min(end.count, max_occurrences)

    for candidate in _iter_candidates(anchor, rule):
        if len(occurrences) >= max_count:
            break
        if candidate.date() > last_day:
            break
        occurrences.append(candidate)

    logger.debug(
        "Expanded %s rule from %s into %d occurrences",
        rule.frequency,
        anchor.isoformat(),
        len(occurrences),
    )
    return occurrences


def _iter_candidates(anchor: datetime, rule: RecurrenceRule) -> Iterator[datetime]:
    """
    Yield the occurrences following `anchor`, in increasing order, without
    any end bound.
    """
    if isinstance(rule, WeeklyRule) and rule.days_of_week:
        yield from _iter_weekdays(anchor, rule)
        return

    step = 0
    while True:
        step += rule.interval
        try:
            if isinstance(rule, DailyRule):
                candidate = anchor + timedelta(days=step)
            elif isinstance(rule, WeeklyRule):
                candidate = anchor + timedelta(weeks=step)
            elif isinstance(rule, MonthlyRule):
                # relativedelta clamps `day` to the length of the target month
                candidate = anchor + relativedelta(months=step, day=rule.day_of_month)
            elif isinstance(rule, YearlyRule):
                candidate = anchor + relativedelta(years=step)
            else:
                return
        except (ValueError, OverflowError):
            return
        yield candidate


def _iter_weekdays(anchor: datetime, rule: WeeklyRule) -> Iterator[datetime]:
    """
    Walk forward one day at a time and keep days whose weekday is listed,
    restricted to every `interval`-th week counted from the anchor's week.
    """
    wanted = {WEEKDAY_NUMBERS[day] for day in rule.days_of_week}
    anchor_week_start = anchor.date() - timedelta(days=anchor.weekday())

    candidate = anchor
    while True:
        try:
            candidate += timedelta(days=1)
        except OverflowError:
            return
        weeks_apart = (candidate.date() - anchor_week_start).days // 7
        if weeks_apart % rule.interval != 0:
            continue
        if candidate.weekday() in wanted:
            yield candidate


def expand_range(
    events: Iterable[CalendarEvent],
    range_start: datetime,
    range_end: datetime,
    max_occurrences: int = DEFAULT_MAX_OCCURRENCES,
    horizon: relativedelta = DEFAULT_HORIZON,
) -> list[CalendarEvent]:
    """
    Materialize `events` into the concrete instances starting inside
    `[range_start, range_end)`, sorted by start time.

    Single events are passed through unchanged. Each occurrence of a
    recurring event is a copy of the anchor moved to the occurrence's start,
    keeping the anchor's duration and tagged with `original_event_id` and
    `occurrence_date`.
    """
    expanded: list[CalendarEvent] = []

    for event in events:
        if event.recurrence is None:
            if range_start <= event.start_time < range_end:
                expanded.append(event)
            continue

        duration = None
        if event.end_time is not None:
            duration = event.end_time - event.start_time

        occurrences = generate_occurrences(
            event.start_time,
            event.recurrence,
            max_occurrences=max_occurrences,
            horizon=horizon,
        )
        for occurrence in occurrences:
            if occurrence < range_start:
                continue
            if occurrence >= range_end:
                break
            end_time = None
            if duration is not None:
                try:
                    end_time = occurrence + duration
                except OverflowError:
                    end_time = datetime.max
            expanded.append(
                event.model_copy(
                    update={
                        "start_time": occurrence,
                        "end_time": end_time,
                        "original_event_id": event.id,
                        "occurrence_date": occurrence,
                    }
                )
            )

    expanded.sort(key=lambda e: e.start_time)
    return expanded


def describe_recurrence(rule: RecurrenceRule) -> str:
    """
    Human-readable summary of a rule, e.g. "Every 2 weeks (Mon, Wed), 10 times".
    """
    n = rule.interval

    if isinstance(rule, DailyRule):
        text = "Daily" if n == 1 else f"Every {n} days"
    elif isinstance(rule, WeeklyRule):
        text = "Weekly" if n == 1 else f"Every {n} weeks"
        if rule.days_of_week:
            days = ", ".join(_WEEKDAY_LABELS[day.value] for day in rule.days_of_week)
            text = f"{text} ({days})"
    elif isinstance(rule, MonthlyRule):
        text = "Monthly" if n == 1 else f"Every {n} months"
        if rule.day_of_month:
            text = f"{text} on day {rule.day_of_month}"
    elif isinstance(rule, YearlyRule):
        text = "Yearly" if n == 1 else f"Every {n} years"
    else:
        return "Unknown"

    end = rule.end
    if isinstance(end, EndsOnDate):
        text = f"{text}, until {end.end_date.isoformat()}"
    elif isinstance(end, EndsAfterCount):
        text = f"{text}, {end.count} times" if end.count > 1 else f"{text}, once"

    return text
