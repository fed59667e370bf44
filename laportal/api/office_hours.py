"""
Office hours API: public weekly listing (schedule entries of kind office_hour joined with staff),
public upcoming dated sessions, and joining a session's queue (any signed-in user).
"""
import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from laportal.config import settings
from laportal.database import get_db
from laportal.models.schedule import OfficeHourSession, QueueEntry, ScheduleEntry
from laportal.models.staff import Staff
from laportal.models.types import ScheduleKind
from laportal.schemas.schedule import (
    OfficeHourResponse,
    OfficeHourSessionResponse,
    QueueEntryResponse,
    StaffRef,
)
from laportal.services.auth import Principal
from laportal.services.authorization import Action, ensure_allowed
from laportal.api.deps import get_current_principal, get_optional_principal

router = APIRouter(prefix="/office-hours", tags=["office-hours"])
logger = logging.getLogger(__name__)


def _staff_ref(s: Staff) -> StaffRef:
    return StaffRef(nuid=s.nuid, name=s.name, role=s.role)


@router.get("", response_model=list[OfficeHourResponse])
def list_office_hours(
    course: str | None = None,
    principal: Principal | None = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    """Weekly office hours with staff name and role; optional ?course= filter. Inactive staff are hidden."""
    ensure_allowed(db, principal, Action.READ_OFFICE_HOURS)
    q = (
        db.query(ScheduleEntry, Staff)
        .join(Staff, Staff.nuid == ScheduleEntry.staff_nuid)
        .filter(ScheduleEntry.kind == ScheduleKind.OFFICE_HOUR.value, Staff.is_active.is_(True))
    )
    if course:
        q = q.filter(ScheduleEntry.course == course)
    rows = q.order_by(ScheduleEntry.day_of_week, ScheduleEntry.start_time, Staff.name).all()
    return [
        OfficeHourResponse(
            id=e.id,
            course=e.course,
            day_of_week=e.day_of_week,
            start_time=e.start_time,
            end_time=e.end_time,
            location=e.location,
            staff=_staff_ref(s),
        )
        for e, s in rows
    ]


@router.get("/sessions", response_model=list[OfficeHourSessionResponse])
def list_sessions(
    course: str | None = None,
    principal: Principal | None = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    """Dated sessions that have not ended more than office_hours_lookback_hours ago, soonest first."""
    ensure_allowed(db, principal, Action.READ_OFFICE_HOURS)
    since = datetime.now(timezone.utc) - timedelta(hours=settings.office_hours_lookback_hours)
    q = (
        db.query(OfficeHourSession, ScheduleEntry, Staff)
        .join(ScheduleEntry, ScheduleEntry.id == OfficeHourSession.schedule_id)
        .join(Staff, Staff.nuid == ScheduleEntry.staff_nuid)
        .filter(OfficeHourSession.session_end >= since, Staff.is_active.is_(True))
    )
    if course:
        q = q.filter(ScheduleEntry.course == course)
    rows = q.order_by(OfficeHourSession.session_start).all()
    return [
        OfficeHourSessionResponse(
            id=sess.id,
            schedule_id=sess.schedule_id,
            session_start=sess.session_start,
            session_end=sess.session_end,
            course=e.course,
            location=e.location,
            staff=_staff_ref(s),
        )
        for sess, e, s in rows
    ]


@router.post("/sessions/{session_id}/queue", response_model=QueueEntryResponse, status_code=status.HTTP_201_CREATED)
def join_queue(
    session_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Queue the caller (token subject) for a session."""
    ensure_allowed(db, principal, Action.JOIN_QUEUE)
    if not db.get(OfficeHourSession, session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    user_id = f"{principal.kind.value}:{principal.subject}"
    existing = (
        db.query(QueueEntry)
        .filter(QueueEntry.session_id == session_id, QueueEntry.user_id == user_id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Already in the queue")
    entry = QueueEntry(session_id=session_id, user_id=user_id, joined_at=datetime.now(timezone.utc))
    db.add(entry)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Join queue failed: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to join the queue")
    db.refresh(entry)
    return QueueEntryResponse.model_validate(entry)
