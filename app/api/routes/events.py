# app/api/routes/events.py
import logging
from datetime import date, datetime, time, timedelta
from http import HTTPStatus

from dateutil.relativedelta import relativedelta
from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.dependencies.api_key import verify_api_key
from app.core.config import get_settings
from app.db.session import get_db
from app.models.event import Event, EventParticipant, EventRecurrence
from app.models.member import FamilyMember
from app.schemas.conflict import (
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictingMember,
    ConflictRead,
)
from app.schemas.event import CalendarEvent, EventCreate, EventUpdate, to_naive_utc
from app.schemas.recurrence import RecurrenceRule
from app.services.conflict_detection import (
    find_conflicts,
    format_conflict_message,
    member_names_for,
)
from app.services.event_mapper import rule_to_columns, to_calendar_event
from app.services.recurrence import expand_range

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/events",
    tags=["Events"],
    dependencies=[Depends(verify_api_key)],
)


def _event_query():
    return select(Event).options(
        selectinload(Event.participants).selectinload(EventParticipant.member),
        selectinload(Event.recurrence),
    )


async def _get_event_or_404(db: AsyncSession, event_id: str) -> Event:
    stmt = (
        _event_query()
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    event = result.scalar_one_or_none()
    if event is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Event with id {event_id} not found.",
        )
    return event


async def _ensure_members_exist(db: AsyncSession, member_ids: list[str]) -> list[str]:
    """
    De-duplicate `member_ids` (keeping order) and reject unknown ids.
    """
    unique_ids = list(dict.fromkeys(member_ids))
    if not unique_ids:
        return []

    result = await db.execute(
        select(FamilyMember.id).where(FamilyMember.id.in_(unique_ids))
    )
    known = set(result.scalars().all())
    missing = [mid for mid in unique_ids if mid not in known]
    if missing:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=f"Unknown participant ids: {', '.join(missing)}.",
        )
    return unique_ids


def _apply_recurrence(event: Event, rule: RecurrenceRule | None) -> None:
    if rule is None:
        event.recurrence = None
        return

    columns = rule_to_columns(rule)
    if event.recurrence is None:
        event.recurrence = EventRecurrence(**columns)
    else:
        for field, value in columns.items():
            setattr(event.recurrence, field, value)


def _apply_participants(event: Event, member_ids: list[str]) -> None:
    wanted = set(member_ids)
    current = {p.member_id for p in event.participants}

    for participant in list(event.participants):
        if participant.member_id not in wanted:
            event.participants.remove(participant)
    for member_id in member_ids:
        if member_id not in current:
            event.participants.append(EventParticipant(member_id=member_id))


def _shift_day(day: date, delta: timedelta) -> date:
    try:
        return day + delta
    except OverflowError:
        return date.max if delta > timedelta(0) else date.min


# --------------------------------------------------------------------------
# Conflict check
# --------------------------------------------------------------------------

@router.post(
    "/conflicts",
    response_model=ConflictCheckResponse,
    status_code=HTTPStatus.OK,
    summary="Check a proposed event for scheduling conflicts",
    description=(
        "Load the stored events starting within a few days of the proposed "
        "event and report those that overlap it in time **and** share at "
        "least one participant.\n\n"
        "- All-day events conflict with anything on the same calendar day.\n"
        "- Events without an end time count as one hour long.\n"
        "- Back-to-back events do not conflict.\n"
        "- Pass `exclude_event_id` when checking an event that is being edited."
    ),
)
async def check_conflicts(
    payload: ConflictCheckRequest,
    db: AsyncSession = Depends(get_db),
) -> ConflictCheckResponse:
    if not payload.participant_ids:
        return ConflictCheckResponse(has_conflicts=False, conflicts=[], message="")

    settings = get_settings()
    day = payload.start_time.date()
    window = timedelta(days=settings.CONFLICT_WINDOW_DAYS)
    window_start = datetime.combine(_shift_day(day, -window), time.min)
    window_end = datetime.combine(_shift_day(day, window), time.max)

    stmt = (
        _event_query()
        .where(Event.start_time >= window_start, Event.start_time <= window_end)
        .order_by(Event.start_time.asc())
    )
    result = await db.execute(stmt)
    existing = [to_calendar_event(e) for e in result.scalars().all()]

    conflicts = find_conflicts(
        payload,
        existing,
        exclude_event_id=payload.exclude_event_id,
    )

    rendered: list[ConflictRead] = []
    for conflict in conflicts:
        names = member_names_for(conflict)
        rendered.append(
            ConflictRead(
                event_id=conflict.event.id,
                event_title=conflict.event.title,
                event_start_time=conflict.event.start_time,
                event_end_time=conflict.event.end_time,
                event_all_day=conflict.event.all_day,
                conflicting_members=[
                    ConflictingMember(id=mid, name=names[mid])
                    for mid in conflict.conflicting_member_ids
                ],
            )
        )

    return ConflictCheckResponse(
        has_conflicts=bool(rendered),
        conflicts=rendered,
        message=format_conflict_message(conflicts),
    )


# --------------------------------------------------------------------------
# CRUD
# --------------------------------------------------------------------------

@router.get(
    "",
    response_model=list[CalendarEvent],
    summary="List events, expanding recurring series inside a window",
    description=(
        "Without `start`/`end` the stored events (series anchors included) are "
        "returned ordered by start time.\n\n"
        "With both `start` and `end`, every event starting in `[start, end)` is "
        "returned; recurring series are expanded into their occurrences, each "
        "tagged with `original_event_id` and `occurrence_date`."
    ),
)
async def list_events(
    start: datetime | None = Query(
        default=None,
        description="Inclusive start of the window (ISO 8601).",
        examples=["2025-03-01T00:00:00"],
    ),
    end: datetime | None = Query(
        default=None,
        description="Exclusive end of the window (ISO 8601).",
        examples=["2025-04-01T00:00:00"],
    ),
    db: AsyncSession = Depends(get_db),
) -> list[CalendarEvent]:
    if (start is None) != (end is None):
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Both start and end must be provided to query a window.",
        )

    if start is None or end is None:
        result = await db.execute(_event_query().order_by(Event.start_time.asc()))
        return [to_calendar_event(e) for e in result.scalars().all()]

    start = to_naive_utc(start)
    end = to_naive_utc(end)
    if end <= start:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="end must be after start.",
        )

    # Single events inside the window, plus every series that begins before it ends.
    stmt = (
        _event_query()
        .outerjoin(Event.recurrence)
        .where(
            Event.start_time < end,
            or_(Event.start_time >= start, EventRecurrence.id.is_not(None)),
        )
    )
    result = await db.execute(stmt)
    events = [to_calendar_event(e) for e in result.scalars().all()]

    settings = get_settings()
    expanded = expand_range(
        events,
        start,
        end,
        max_occurrences=settings.RECURRENCE_MAX_OCCURRENCES,
        horizon=relativedelta(years=settings.RECURRENCE_HORIZON_YEARS),
    )
    logger.debug(
        "Expanded %d stored events into %d instances for %s - %s",
        len(events),
        len(expanded),
        start.isoformat(),
        end.isoformat(),
    )
    return expanded


@router.post(
    "",
    response_model=CalendarEvent,
    status_code=HTTPStatus.CREATED,
    summary="Create an event",
    description=(
        "Create a single event or, when `recurrence` is given, the anchor of a "
        "recurring series. Occurrences are computed on read and never stored."
    ),
    responses={400: {"description": "A participant id does not exist."}},
)
async def create_event(
    payload: EventCreate,
    db: AsyncSession = Depends(get_db),
) -> CalendarEvent:
    member_ids = await _ensure_members_exist(db, payload.participant_ids)

    event = Event(
        title=payload.title,
        description=payload.description or None,
        location=payload.location or None,
        category=payload.category.value,
        start_time=payload.start_time,
        end_time=payload.end_time,
        all_day=payload.all_day,
        participants=[EventParticipant(member_id=mid) for mid in member_ids],
    )
    if payload.recurrence is not None:
        event.recurrence = EventRecurrence(**rule_to_columns(payload.recurrence))

    db.add(event)
    await db.commit()

    logger.info("Created event %s (recurring=%s)", event.id, payload.recurrence is not None)
    return to_calendar_event(await _get_event_or_404(db, event.id))


@router.get(
    "/{event_id}",
    response_model=CalendarEvent,
    summary="Get an event by ID",
    responses={404: {"description": "No event exists with the given ID."}},
)
async def get_event(
    event_id: str = Path(..., description="Identifier of the event."),
    db: AsyncSession = Depends(get_db),
) -> CalendarEvent:
    return to_calendar_event(await _get_event_or_404(db, event_id))


@router.patch(
    "/{event_id}",
    response_model=CalendarEvent,
    summary="Partially update an event",
    description=(
        "Only fields present in the body are modified. `participant_ids` "
        "replaces the participant list; `recurrence` replaces the rule and "
        "`null` removes it."
    ),
    responses={
        400: {"description": "Unknown participant id or end before start."},
        404: {"description": "No event exists with the given ID."},
    },
)
async def update_event(
    event_id: str = Path(..., description="Identifier of the event."),
    payload: EventUpdate | None = None,
    db: AsyncSession = Depends(get_db),
) -> CalendarEvent:
    event = await _get_event_or_404(db, event_id)

    if payload is None:
        return to_calendar_event(event)

    fields_set = payload.model_fields_set
    update_data = payload.model_dump(
        exclude_unset=True,
        exclude={"participant_ids", "recurrence"},
    )

    for field in ("title", "category", "start_time", "all_day"):
        # Not nullable; an explicit null leaves the stored value alone.
        if update_data.get(field, ...) is None:
            update_data.pop(field)
    for field in ("description", "location"):
        if field in update_data:
            update_data[field] = update_data[field] or None
    if "category" in update_data:
        update_data["category"] = payload.category.value

    new_start = update_data.get("start_time", event.start_time)
    new_end = update_data.get("end_time", event.end_time)
    if new_end is not None and new_end < new_start:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="end_time must not be before start_time.",
        )

    if "participant_ids" in fields_set:
        member_ids = await _ensure_members_exist(db, payload.participant_ids or [])
        _apply_participants(event, member_ids)

    if "recurrence" in fields_set:
        _apply_recurrence(event, payload.recurrence)

    for field, value in update_data.items():
        setattr(event, field, value)

    await db.commit()

    logger.info("Updated event %s (%s)", event_id, ", ".join(sorted(fields_set)))
    return to_calendar_event(await _get_event_or_404(db, event_id))


@router.delete(
    "/{event_id}",
    status_code=HTTPStatus.NO_CONTENT,
    summary="Delete an event",
    description="Deleting a series anchor removes the whole series.",
    responses={404: {"description": "No event exists with the given ID."}},
)
async def delete_event(
    event_id: str = Path(..., description="Identifier of the event."),
    db: AsyncSession = Depends(get_db),
) -> Response:
    event = await _get_event_or_404(db, event_id)
    await db.delete(event)
    await db.commit()

    logger.info("Deleted event %s", event_id)
    return Response(status_code=HTTPStatus.NO_CONTENT)
