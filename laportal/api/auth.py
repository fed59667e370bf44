"""
Auth routes: login (staff or student, JWT), me, logout, student self-signup and SL review,
change own password, SL password reset.
Login failures always return the same 401 so callers cannot tell which accounts exist.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from laportal import metrics
from laportal.config import settings
from laportal.database import get_db
from laportal.extensions import limiter
from laportal.models.staff import Staff
from laportal.models.student import Student, StudentCourse
from laportal.models.types import PrincipalKind, StudentStatus
from laportal.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    MeResponse,
    OkResponse,
    PendingStudentResponse,
    ResetPasswordRequest,
    StudentSignupRequest,
    TokenResponse,
    UserSummary,
)
from laportal.services.auth import Principal, create_access_token, hash_password, verify_password
from laportal.services.authorization import Action, ensure_allowed
from laportal.services.identity import resolve_login, staff_summary, student_summary
from laportal.api.deps import get_current_principal, require_action

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def _server_error(db: Session, what: str, e: Exception) -> HTTPException:
    db.rollback()
    logger.exception("%s failed: %s", what, e)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.post("/login", response_model=TokenResponse)
@limiter.limit(lambda: settings.login_rate_limit)
def login(request: Request, data: LoginRequest, db: Session = Depends(get_db)):
    """Login with NUID or email + password; returns JWT and the user summary."""
    try:
        user = resolve_login(db, data.login, data.password)
    except SQLAlchemyError as e:
        raise _server_error(db, "Login", e)
    if user is None:
        metrics.increment_login_failures_total()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    token = create_access_token(user.principal)
    return TokenResponse(token=token, user=UserSummary(**user.summary))


@router.get("/me", response_model=MeResponse)
def me(principal: Principal = Depends(get_current_principal), db: Session = Depends(get_db)):
    """Return the current user as stored."""
    if principal.kind is PrincipalKind.STAFF:
        summary = staff_summary(db.get(Staff, principal.subject))
    else:
        summary = student_summary(db.get(Student, int(principal.subject)))
    return MeResponse(user=UserSummary(**summary))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout():
    """Tokens are not tracked server side; the client discards its copy."""
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/student/signup", response_model=OkResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(lambda: settings.signup_rate_limit)
def student_signup(request: Request, data: StudentSignupRequest, db: Session = Depends(get_db)):
    """Create a pending student. Cannot log in until a senior-lead approves."""
    email = data.email.lower()
    nuid = (data.nuid or "").strip() or None
    try:
        dup = db.query(Student).filter(Student.email == email).first()
        if dup is None and nuid:
            dup = db.query(Student).filter(Student.nuid == nuid).first()
        if dup is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="email or nuid already exists")
        student = Student(
            email=email,
            name=data.name,
            nuid=nuid,
            class_year=(data.class_year or "").strip() or None,
            password_hash=hash_password(data.password),
            status=StudentStatus.PENDING.value,
        )
        student.courses = [StudentCourse(course=c) for c in dict.fromkeys(data.courses)]
        db.add(student)
        db.commit()
    except HTTPException:
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning("Student signup IntegrityError: %s", e)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="email or nuid already exists")
    except SQLAlchemyError as e:
        raise _server_error(db, "Student signup", e)
    logger.info("Student signup pending approval (id=%s)", student.id)
    return OkResponse(message="Submitted for approval")


@router.get("/students/pending", response_model=list[PendingStudentResponse])
def pending_students(
    _: Principal = Depends(require_action(Action.REVIEW_STUDENTS)),
    db: Session = Depends(get_db),
):
    rows = (
        db.query(Student)
        .filter(Student.status == StudentStatus.PENDING.value)
        .order_by(Student.created_at, Student.id)
        .all()
    )
    return [PendingStudentResponse.model_validate(r) for r in rows]


def _review(db: Session, student_id: int, reviewer: Principal, new_status: StudentStatus) -> OkResponse:
    student = db.get(Student, student_id)
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    student.status = new_status.value
    student.approved_at = datetime.now(timezone.utc)
    student.approved_by = reviewer.subject
    try:
        db.commit()
    except SQLAlchemyError as e:
        raise _server_error(db, "Student review", e)
    logger.info("Student %s %s by %s", student_id, new_status.value, reviewer.subject)
    return OkResponse()


@router.post("/students/{student_id}/approve", response_model=OkResponse)
def approve_student(
    student_id: int,
    reviewer: Principal = Depends(require_action(Action.REVIEW_STUDENTS)),
    db: Session = Depends(get_db),
):
    return _review(db, student_id, reviewer, StudentStatus.APPROVED)


@router.post("/students/{student_id}/reject", response_model=OkResponse)
def reject_student(
    student_id: int,
    reviewer: Principal = Depends(require_action(Action.REVIEW_STUDENTS)),
    db: Session = Depends(get_db),
):
    return _review(db, student_id, reviewer, StudentStatus.REJECTED)


@router.post("/change-password", response_model=OkResponse)
@limiter.limit(lambda: settings.change_password_rate_limit)
def change_password(
    request: Request,
    data: ChangePasswordRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Change the caller's own password. The account comes from the token, never the body."""
    ensure_allowed(db, principal, Action.CHANGE_OWN_PASSWORD)
    if principal.kind is PrincipalKind.STAFF:
        row = db.get(Staff, principal.subject)
    else:
        row = db.get(Student, int(principal.subject))
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    if not verify_password(data.current_password, row.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password incorrect")
    row.password_hash = hash_password(data.new_password)
    try:
        db.commit()
    except SQLAlchemyError as e:
        raise _server_error(db, "Change password", e)
    return OkResponse(message="Password updated. Please log in again.")


@router.post("/admin/reset-password", response_model=OkResponse)
@limiter.limit(lambda: settings.reset_password_rate_limit)
def reset_password(
    request: Request,
    data: ResetPasswordRequest,
    _: Principal = Depends(require_action(Action.RESET_PASSWORD)),
    db: Session = Depends(get_db),
):
    """Senior-lead sets a new password for a staff member (by nuid) or a student (by email)."""
    if data.target == "staff":
        if not data.nuid:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="nuid required")
        row = db.get(Staff, data.nuid.strip())
    else:
        if not data.email:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="email required")
        row = db.query(Student).filter(Student.email == data.email.lower()).first()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    row.password_hash = hash_password(data.new_password)
    try:
        db.commit()
    except SQLAlchemyError as e:
        raise _server_error(db, "Reset password", e)
    return OkResponse()
