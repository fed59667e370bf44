"""
Identity resolution for login: map a login string (NUID or email) plus password to one principal.

Staff take precedence over students. The first matching account is the only candidate; a wrong
password never falls through to another account. Exactly one bcrypt check runs per attempt, against
a throwaway digest when there is no usable candidate, so response time does not reveal whether the
login string exists.
"""
import enum
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache

from sqlalchemy import or_
from sqlalchemy.orm import Session

from laportal.models.staff import Staff
from laportal.models.student import Student
from laportal.models.types import PrincipalKind, Role, StudentStatus
from laportal.services.auth import Principal, hash_password, verify_password

logger = logging.getLogger(__name__)

NUID_RE = re.compile(r"^\d{7,10}$")


class LoginKind(str, enum.Enum):
    NUID = "nuid"
    EMAIL = "email"
    OTHER = "other"


@dataclass(frozen=True)
class AuthenticatedUser:
    principal: Principal
    summary: dict  # client-facing user object; never carries the digest


def classify_login(raw: str | None) -> tuple[LoginKind, str]:
    """NUID (7-10 digits) is staff-only; '@' means email (lower-cased); anything else is tried on both."""
    v = (raw or "").strip()
    if NUID_RE.match(v):
        return LoginKind.NUID, v
    if "@" in v:
        return LoginKind.EMAIL, v.lower()
    return LoginKind.OTHER, v.lower()


@lru_cache(maxsize=1)
def _dummy_digest() -> str:
    return hash_password("laportal-no-such-account")


def _find_staff(db: Session, kind: LoginKind, value: str) -> Staff | None:
    q = db.query(Staff)
    if kind is LoginKind.NUID:
        q = q.filter(Staff.nuid == value)
    elif kind is LoginKind.EMAIL:
        q = q.filter(Staff.email == value)
    else:
        q = q.filter(or_(Staff.nuid == value, Staff.email == value))
    return q.first()


def _find_student(db: Session, kind: LoginKind, value: str) -> Student | None:
    if kind is LoginKind.NUID:
        return None
    return db.query(Student).filter(Student.email == value).first()


def staff_summary(row: Staff) -> dict:
    return {"kind": PrincipalKind.STAFF.value, "nuid": row.nuid, "name": row.name, "email": row.email, "role": row.role}


def student_summary(row: Student) -> dict:
    return {
        "kind": PrincipalKind.STUDENT.value,
        "id": row.id,
        "email": row.email,
        "name": row.name,
        "role": Role.STUDENT.value,
    }


def resolve_login(db: Session, login: str, password: str) -> AuthenticatedUser | None:
    """Return the authenticated user, or None for any failure (unknown, disabled, pending, wrong password)."""
    kind, value = classify_login(login)
    if not value:
        verify_password(password, _dummy_digest())
        return None

    staff = _find_staff(db, kind, value)
    if staff is not None:
        usable = staff.is_active and bool(staff.password_hash)
        ok = verify_password(password, staff.password_hash if usable else _dummy_digest())
        if not (usable and ok):
            logger.info("Login rejected for staff candidate (kind=%s)", kind.value)
            return None
        staff.last_login = datetime.now(timezone.utc)
        db.commit()
        principal = Principal(
            kind=PrincipalKind.STAFF, subject=staff.nuid, role=Role(staff.role), name=staff.name
        )
        return AuthenticatedUser(principal=principal, summary=staff_summary(staff))

    student = _find_student(db, kind, value)
    if student is not None:
        usable = student.status == StudentStatus.APPROVED.value and bool(student.password_hash)
        ok = verify_password(password, student.password_hash if usable else _dummy_digest())
        if not (usable and ok):
            logger.info("Login rejected for student candidate (status=%s)", student.status)
            return None
        principal = Principal(
            kind=PrincipalKind.STUDENT, subject=str(student.id), role=Role.STUDENT, name=student.name
        )
        return AuthenticatedUser(principal=principal, summary=student_summary(student))

    verify_password(password, _dummy_digest())
    return None
