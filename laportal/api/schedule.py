"""
Schedule API: the caller's own weekly entries, create/update/delete (owner or SL), and
expansion of one entry into dated office-hour sessions over a date range.

Ownership is read and then acted on in two statements; a concurrent ownership change in between
is an accepted race.
"""
import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from laportal.database import get_db
from laportal.models.schedule import OfficeHourSession, ScheduleEntry
from laportal.models.staff import Staff
from laportal.models.types import Role
from laportal.schemas.schedule import (
    GenerateSessionsRequest,
    GenerateSessionsResponse,
    ScheduleEntryRequest,
    ScheduleEntryResponse,
    ScheduleEntryUpdate,
    SessionResponse,
)
from laportal.services.auth import Principal
from laportal.services.authorization import Action, ensure_allowed
from laportal.services.calendar import expand_weekly
from laportal.api.deps import require_staff

router = APIRouter(prefix="/schedule", tags=["schedule"])
logger = logging.getLogger(__name__)


def _get_entry_or_404(db: Session, entry_id: int) -> ScheduleEntry:
    row = db.get(ScheduleEntry, entry_id)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule entry not found")
    return row


def _utc_naive(dt: datetime) -> datetime:
    """SQLite hands back naive UTC, Postgres aware; compare on naive UTC."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("%s failed: %s", what, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.get("/my", response_model=list[ScheduleEntryResponse])
def my_schedule(principal: Principal = Depends(require_staff), db: Session = Depends(get_db)):
    rows = (
        db.query(ScheduleEntry)
        .filter(ScheduleEntry.staff_nuid == principal.subject)
        .order_by(ScheduleEntry.day_of_week, ScheduleEntry.start_time)
        .all()
    )
    return [ScheduleEntryResponse.model_validate(r) for r in rows]


@router.post("", response_model=ScheduleEntryResponse, status_code=status.HTTP_201_CREATED)
def create_entry(
    data: ScheduleEntryRequest,
    principal: Principal = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """Owner is the caller; a senior-lead may name another staff_nuid."""
    owner = principal.subject
    if data.staff_nuid and principal.role is Role.SENIOR_LEAD:
        owner = data.staff_nuid.strip()
    ensure_allowed(db, principal, Action.WRITE_SCHEDULE, owner_nuid=owner)
    if not db.get(Staff, owner):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff not found")
    entry = ScheduleEntry(
        staff_nuid=owner,
        kind=data.kind.value,
        day_of_week=data.day_of_week,
        start_time=data.start_time,
        end_time=data.end_time,
        location=data.location,
        course=data.course,
    )
    db.add(entry)
    _commit(db, "Create schedule entry")
    db.refresh(entry)
    return ScheduleEntryResponse.model_validate(entry)


@router.put("/{entry_id}", response_model=ScheduleEntryResponse)
def update_entry(
    entry_id: int,
    data: ScheduleEntryUpdate,
    principal: Principal = Depends(require_staff),
    db: Session = Depends(get_db),
):
    entry = _get_entry_or_404(db, entry_id)
    ensure_allowed(db, principal, Action.WRITE_SCHEDULE, owner_nuid=entry.staff_nuid)
    start = data.start_time or entry.start_time
    end = data.end_time or entry.end_time
    if start >= end:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="start_time must be before end_time")
    moved = (
        (data.day_of_week is not None and data.day_of_week != entry.day_of_week)
        or start != entry.start_time
        or end != entry.end_time
    )
    if moved:
        # upcoming sessions were expanded from the old slot; past ones stay as history
        stale = (
            db.query(OfficeHourSession)
            .filter(
                OfficeHourSession.schedule_id == entry.id,
                OfficeHourSession.session_start >= datetime.now(timezone.utc),
            )
            .all()
        )
        for s in stale:
            db.delete(s)
        if stale:
            logger.info("Schedule entry %s moved; dropped %d upcoming sessions", entry.id, len(stale))
    if data.kind is not None:
        entry.kind = data.kind.value
    if data.day_of_week is not None:
        entry.day_of_week = data.day_of_week
    entry.start_time = start
    entry.end_time = end
    fields = data.model_fields_set
    if "location" in fields:
        entry.location = data.location
    if "course" in fields:
        entry.course = data.course
    _commit(db, "Update schedule entry")
    db.refresh(entry)
    return ScheduleEntryResponse.model_validate(entry)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_entry(
    entry_id: int,
    principal: Principal = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """404 if the entry does not exist, 403 if it belongs to someone else."""
    entry = _get_entry_or_404(db, entry_id)
    ensure_allowed(db, principal, Action.WRITE_SCHEDULE, owner_nuid=entry.staff_nuid)
    db.delete(entry)
    _commit(db, "Delete schedule entry")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/generate-sessions", response_model=GenerateSessionsResponse)
def generate_sessions(
    data: GenerateSessionsRequest,
    principal: Principal = Depends(require_staff),
    db: Session = Depends(get_db),
):
    """Create one dated session per matching weekday in [from, to]. Re-running adds no duplicates.

    With tz the entry's times are wall-clock in that zone; without it they are taken as UTC.
    Stored datetimes are UTC.
    """
    entry = db.get(ScheduleEntry, data.schedule_id)
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule not found")
    ensure_allowed(db, principal, Action.WRITE_SCHEDULE, owner_nuid=entry.staff_nuid)
    try:
        tz = ZoneInfo(data.tz) if data.tz else timezone.utc
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="tz: unknown time zone")

    planned = expand_weekly(entry.day_of_week, entry.start_time, entry.end_time, data.date_from, data.date_to, tz=tz)
    if not planned:
        return GenerateSessionsResponse(count=0, items=[])

    existing = {
        _utc_naive(s.session_start)
        for s in db.query(OfficeHourSession).filter(OfficeHourSession.schedule_id == entry.id).all()
    }
    for p in planned:
        start = p.start.astimezone(timezone.utc)
        if _utc_naive(start) in existing:
            continue
        db.add(OfficeHourSession(
            schedule_id=entry.id,
            session_start=start,
            session_end=p.end.astimezone(timezone.utc),
        ))
    _commit(db, "Generate sessions")

    lo = planned[0].start.astimezone(timezone.utc)
    hi = planned[-1].start.astimezone(timezone.utc)
    rows = (
        db.query(OfficeHourSession)
        .filter(
            OfficeHourSession.schedule_id == entry.id,
            OfficeHourSession.session_start >= lo,
            OfficeHourSession.session_start <= hi,
        )
        .order_by(OfficeHourSession.session_start)
        .all()
    )
    return GenerateSessionsResponse(count=len(rows), items=[SessionResponse.model_validate(r) for r in rows])
