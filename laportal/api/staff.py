"""
Staff API: public directory, SL-only staff CRUD and LA assignment, per-staff schedule view
(self, SL, or supervising CL) and bulk schedule replace.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from laportal.database import get_db
from laportal.models.schedule import ScheduleEntry
from laportal.models.staff import Staff, StaffCourse, SupervisionLink
from laportal.models.types import Role
from laportal.schemas.schedule import ScheduleEntryRequest, ScheduleEntryResponse
from laportal.schemas.staff import (
    AssignLasRequest,
    StaffCreateRequest,
    StaffResponse,
    StaffUpdateRequest,
    SupervisionResponse,
)
from laportal.services.auth import Principal, hash_password
from laportal.services.authorization import Action, ensure_allowed
from laportal.api.deps import get_current_principal, get_optional_principal, require_action

router = APIRouter(prefix="/staff", tags=["staff"])
logger = logging.getLogger(__name__)


def _staff_to_response(s: Staff) -> StaffResponse:
    return StaffResponse(
        nuid=s.nuid,
        name=s.name,
        email=s.email,
        role=s.role,
        is_active=s.is_active,
        courses=s.course_codes,
        last_login=s.last_login,
    )


def _get_staff_or_404(db: Session, nuid: str) -> Staff:
    row = db.get(Staff, nuid)
    if not row:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff not found")
    return row


def _commit(db: Session, what: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("%s IntegrityError: %s", what, e)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="nuid or email already exists")
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("%s failed: %s", what, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


def _schedule_for(db: Session, nuid: str) -> list[ScheduleEntryResponse]:
    rows = (
        db.query(ScheduleEntry)
        .filter(ScheduleEntry.staff_nuid == nuid)
        .order_by(ScheduleEntry.day_of_week, ScheduleEntry.start_time)
        .all()
    )
    return [ScheduleEntryResponse.model_validate(r) for r in rows]


@router.get("", response_model=list[StaffResponse])
def list_staff(
    principal: Principal | None = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    """Directory: names, roles and courses. Public."""
    ensure_allowed(db, principal, Action.READ_DIRECTORY)
    rows = db.query(Staff).options(selectinload(Staff.courses)).order_by(Staff.name, Staff.nuid).all()
    return [_staff_to_response(s) for s in rows]


@router.get("/{nuid}", response_model=StaffResponse)
def get_staff(
    nuid: str,
    principal: Principal | None = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    ensure_allowed(db, principal, Action.READ_DIRECTORY)
    return _staff_to_response(_get_staff_or_404(db, nuid))


@router.post("", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
def create_staff(
    data: StaffCreateRequest,
    _: Principal = Depends(require_action(Action.MANAGE_STAFF)),
    db: Session = Depends(get_db),
):
    email = data.email.lower() if data.email else None
    if db.get(Staff, data.nuid) or (email and db.query(Staff).filter(Staff.email == email).first()):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="nuid or email already exists")
    staff = Staff(
        nuid=data.nuid,
        name=data.name.strip(),
        role=data.role.value,
        email=email,
        password_hash=hash_password(data.password) if data.password else None,
        is_active=True,
    )
    staff.courses = [StaffCourse(course=c) for c in data.courses]
    db.add(staff)
    _commit(db, "Create staff")
    db.refresh(staff)
    logger.info("Staff %s created (role=%s)", staff.nuid, staff.role)
    return _staff_to_response(staff)


@router.put("/{nuid}", response_model=StaffResponse)
def update_staff(
    nuid: str,
    data: StaffUpdateRequest,
    _: Principal = Depends(require_action(Action.MANAGE_STAFF)),
    db: Session = Depends(get_db),
):
    """Update name/role/email/active/courses; optionally reset the password."""
    staff = _get_staff_or_404(db, nuid)
    fields = data.model_fields_set
    if data.name is not None:
        staff.name = data.name.strip()
    if data.role is not None:
        if staff.role == Role.COURSE_LEAD.value and data.role is not Role.COURSE_LEAD:
            # supervision belongs to the course-lead role; a later re-promotion starts empty
            staff.supervised_links.clear()
        staff.role = data.role.value
    if "email" in fields:
        staff.email = data.email.lower() if data.email else None
    if data.is_active is not None:
        staff.is_active = data.is_active
    if data.reset_password_to:
        staff.password_hash = hash_password(data.reset_password_to)
    if data.courses is not None:
        wanted = set(data.courses)
        staff.courses = [c for c in staff.courses if c.course in wanted]
        kept = set(staff.course_codes)
        staff.courses.extend(StaffCourse(course=c) for c in data.courses if c not in kept)
    _commit(db, "Update staff")
    db.refresh(staff)
    return _staff_to_response(staff)


@router.delete("/{nuid}", status_code=status.HTTP_204_NO_CONTENT)
def delete_staff(
    nuid: str,
    _: Principal = Depends(require_action(Action.MANAGE_STAFF)),
    db: Session = Depends(get_db),
):
    staff = _get_staff_or_404(db, nuid)
    db.delete(staff)
    _commit(db, "Delete staff")
    logger.info("Staff %s deleted", nuid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{nuid}/schedule", response_model=list[ScheduleEntryResponse])
def get_staff_schedule(
    nuid: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Self, senior-lead, or a course-lead supervising this LA."""
    ensure_allowed(db, principal, Action.READ_SCHEDULE, owner_nuid=nuid)
    _get_staff_or_404(db, nuid)
    return _schedule_for(db, nuid)


@router.put("/{nuid}/schedule", response_model=list[ScheduleEntryResponse])
def replace_staff_schedule(
    nuid: str,
    entries: list[ScheduleEntryRequest],
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Replace every schedule entry of one staff member."""
    ensure_allowed(db, principal, Action.WRITE_SCHEDULE, owner_nuid=nuid)
    _get_staff_or_404(db, nuid)
    # ORM deletes so generated sessions cascade on SQLite too
    for old in db.query(ScheduleEntry).filter(ScheduleEntry.staff_nuid == nuid).all():
        db.delete(old)
    db.flush()
    for e in entries:
        db.add(ScheduleEntry(
            staff_nuid=nuid,
            kind=e.kind.value,
            day_of_week=e.day_of_week,
            start_time=e.start_time,
            end_time=e.end_time,
            location=e.location,
            course=e.course,
        ))
    _commit(db, "Replace schedule")
    return _schedule_for(db, nuid)


@router.put("/cl/{cl_nuid}/assign", response_model=list[SupervisionResponse])
def assign_las(
    cl_nuid: str,
    data: AssignLasRequest,
    _: Principal = Depends(require_action(Action.MANAGE_STAFF)),
    db: Session = Depends(get_db),
):
    """Replace the set of learning-assistants a course-lead supervises."""
    cl = _get_staff_or_404(db, cl_nuid)
    if cl.role != Role.COURSE_LEAD.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="cl_nuid is not a course-lead")
    if data.la_nuids:
        las = (
            db.query(Staff.nuid)
            .filter(Staff.nuid.in_(data.la_nuids), Staff.role == Role.LEARNING_ASSISTANT.value)
            .all()
        )
        missing = sorted(set(data.la_nuids) - {r.nuid for r in las})
        if missing:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"la_nuids: not learning-assistants: {', '.join(missing)}",
            )
    db.query(SupervisionLink).filter(SupervisionLink.cl_nuid == cl_nuid).delete(synchronize_session=False)
    for la in data.la_nuids:
        db.add(SupervisionLink(cl_nuid=cl_nuid, la_nuid=la))
    _commit(db, "Assign LAs")
    rows = (
        db.query(SupervisionLink)
        .filter(SupervisionLink.cl_nuid == cl_nuid)
        .order_by(SupervisionLink.la_nuid)
        .all()
    )
    return [SupervisionResponse.model_validate(r) for r in rows]
