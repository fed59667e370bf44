"""
Authorization gate: the single place that decides allow/deny for every gated operation.

Rules, in order:
  1. self-access: staff read/write their own schedule; anyone signed in changes their own password
  2. senior-lead override: any schedule, staff CRUD, student review, password resets
  3. supervision read: a course-lead reads the schedule of a learning-assistant they supervise
  4. public read: directory, office hours, course list
  5. public append: feedback submission; signed-in users join queues, staff read feedback
  6. otherwise deny

The acting principal always comes from a verified token. Supervision is looked up on every call.
"""
import enum
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from laportal import metrics
from laportal.models.staff import SupervisionLink
from laportal.models.types import Role
from laportal.services.auth import Principal

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    READ_SCHEDULE = "schedule:read"
    WRITE_SCHEDULE = "schedule:write"
    CHANGE_OWN_PASSWORD = "password:change"
    RESET_PASSWORD = "password:reset"
    MANAGE_STAFF = "staff:manage"
    REVIEW_STUDENTS = "students:review"
    READ_DIRECTORY = "directory:read"
    READ_OFFICE_HOURS = "office_hours:read"
    JOIN_QUEUE = "office_hours:queue"
    READ_COURSES = "courses:read"
    SUBMIT_FEEDBACK = "feedback:submit"
    READ_FEEDBACK = "feedback:read"


_SELF_ACTIONS = frozenset({Action.READ_SCHEDULE, Action.WRITE_SCHEDULE})
_SENIOR_LEAD_ACTIONS = frozenset({
    Action.READ_SCHEDULE,
    Action.WRITE_SCHEDULE,
    Action.MANAGE_STAFF,
    Action.REVIEW_STUDENTS,
    Action.RESET_PASSWORD,
})
_PUBLIC_READ = frozenset({Action.READ_DIRECTORY, Action.READ_OFFICE_HOURS, Action.READ_COURSES})


def supervises(db: Session, cl_nuid: str, la_nuid: str) -> bool:
    row = (
        db.query(SupervisionLink)
        .filter(SupervisionLink.cl_nuid == cl_nuid, SupervisionLink.la_nuid == la_nuid)
        .first()
    )
    return row is not None


def is_allowed(
    db: Session,
    principal: Principal | None,
    action: Action,
    owner_nuid: str | None = None,
) -> bool:
    """owner_nuid is the staff member owning the target (schedule actions)."""
    if principal is not None:
        # 1. self-access
        if action is Action.CHANGE_OWN_PASSWORD:
            return True
        if principal.is_staff and action in _SELF_ACTIONS and owner_nuid is not None and owner_nuid == principal.subject:
            return True
        # 2. senior-lead override
        if principal.is_staff and principal.role is Role.SENIOR_LEAD and action in _SENIOR_LEAD_ACTIONS:
            return True
        # 3. supervision read
        if (
            action is Action.READ_SCHEDULE
            and principal.is_staff
            and principal.role is Role.COURSE_LEAD
            and owner_nuid is not None
            and supervises(db, principal.subject, owner_nuid)
        ):
            return True
    # 4. public read
    if action in _PUBLIC_READ:
        return True
    # 5. public append / staff read
    if action is Action.SUBMIT_FEEDBACK:
        return True
    if principal is not None:
        if action is Action.READ_FEEDBACK and principal.is_staff:
            return True
        if action is Action.JOIN_QUEUE:
            return True
    # 6. default deny
    return False


def ensure_allowed(
    db: Session,
    principal: Principal | None,
    action: Action,
    owner_nuid: str | None = None,
) -> None:
    """Raise 401 when a credential is needed and absent, 403 when the principal is not allowed."""
    if is_allowed(db, principal, action, owner_nuid):
        return
    metrics.increment_authorization_denials_total()
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    logger.info(
        "Denied %s for %s %s (role=%s, owner=%s)",
        action.value, principal.kind.value, principal.subject, principal.role.value, owner_nuid,
    )
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
