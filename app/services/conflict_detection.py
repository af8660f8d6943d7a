# app/services/conflict_detection.py
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta

from app.schemas.conflict import ConflictCandidate, ConflictResult
from app.schemas.event import CalendarEvent

logger = logging.getLogger(__name__)

# Duration assumed for events without an end time.
DEFAULT_EVENT_DURATION = timedelta(hours=1)


def _effective_end(start: datetime, end: datetime | None) -> datetime:
    if end is not None:
        return end
    try:
        return start + DEFAULT_EVENT_DURATION
    except OverflowError:
        return datetime.max


def time_slots_overlap(
    start_a: datetime,
    end_a: datetime | None,
    start_b: datetime,
    end_b: datetime | None,
) -> bool:
    """
    Half-open interval overlap. Events that merely touch (one ends exactly
    when the other starts) do not overlap.
    """
    return start_a < _effective_end(start_b, end_b) and start_b < _effective_end(start_a, end_a)


def same_calendar_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


def find_conflicts(
    candidate: ConflictCandidate,
    existing_events: Iterable[CalendarEvent],
    exclude_event_id: str | None = None,
) -> list[ConflictResult]:
    """
    Return the existing events that overlap `candidate` in time and share at
    least one participant with it.

    Rules
    -----
    - The event with id `exclude_event_id` is ignored (editing an event must
      not conflict with itself).
    - If either side is all-day, events overlap when they start on the same
      calendar day. Otherwise their time ranges must overlap, with a missing
      end time counting as one hour after the start.
    - A time overlap without shared participants is not a conflict.
    - Results keep the order of `existing_events`.
    """
    conflicts: list[ConflictResult] = []

    for event in existing_events:
        if exclude_event_id is not None and event.id == exclude_event_id:
            continue

        if candidate.all_day or event.all_day:
            overlaps = same_calendar_day(candidate.start_time, event.start_time)
        else:
            overlaps = time_slots_overlap(
                candidate.start_time,
                candidate.end_time,
                event.start_time,
                event.end_time,
            )

        if not overlaps:
            continue

        attending = set(event.participant_ids)
        conflicting = list(
            dict.fromkeys(pid for pid in candidate.participant_ids if pid in attending)
        )
        if not conflicting:
            continue

        conflicts.append(ConflictResult(event=event, conflicting_member_ids=conflicting))

    logger.debug("Found %d conflicting events", len(conflicts))
    return conflicts


def member_names_for(conflict: ConflictResult) -> dict[str, str]:
    """
    Map conflicting member ids to the names carried by the event's
    participant list.
    """
    names = {p.member_id: p.name for p in conflict.event.participants}
    return {mid: names.get(mid, "Unknown") for mid in conflict.conflicting_member_ids}


def format_conflict_message(
    conflicts: Iterable[ConflictResult],
    member_names: Mapping[str, str] | None = None,
) -> str:
    """
    Render conflicts as one line each, e.g. `"Dentist" (09:30) - Anna, Ben`.

    Member names come from `member_names` when given, otherwise from the
    participants of each conflicting event.
    """
    lines: list[str] = []

    for conflict in conflicts:
        names = member_names if member_names is not None else member_names_for(conflict)
        members = ", ".join(
            names.get(mid, "Unknown") for mid in conflict.conflicting_member_ids
        )
        event = conflict.event
        when = "All day" if event.all_day else event.start_time.strftime("%H:%M")
        lines.append(f'"{event.title}" ({when}) - {members}')

    return "\n".join(lines)
