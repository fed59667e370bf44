"""
Shared dependencies: resolve the acting principal from the Bearer token.
The principal is re-checked against the database on every request so disabled staff, deleted
accounts and role changes take effect immediately. Client-supplied identity fields are never used.
"""
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from laportal.database import get_db
from laportal.models.staff import Staff
from laportal.models.student import Student
from laportal.models.types import PrincipalKind, Role, StudentStatus
from laportal.services.auth import Principal, decode_access_token
from laportal.services.authorization import Action, ensure_allowed

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _refresh_principal(db: Session, claimed: Principal) -> Principal | None:
    """Reload the principal from its persisted row; None if it no longer may act."""
    if claimed.kind is PrincipalKind.STAFF:
        row = db.get(Staff, claimed.subject)
        if not row or not row.is_active:
            return None
        return Principal(kind=PrincipalKind.STAFF, subject=row.nuid, role=Role(row.role), name=row.name)
    try:
        student_id = int(claimed.subject)
    except ValueError:
        return None
    row = db.get(Student, student_id)
    if not row or row.status != StudentStatus.APPROVED.value:
        return None
    return Principal(kind=PrincipalKind.STUDENT, subject=str(row.id), role=Role.STUDENT, name=row.name)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> Principal:
    """Require valid Bearer token; return Principal or 401."""
    if not credentials or not (getattr(credentials, "credentials", None) or "").strip():
        logger.debug("Auth failed: no Bearer token in request")
        raise _unauthenticated("Missing token")
    claimed = decode_access_token(credentials.credentials)
    if claimed is None:
        logger.debug("Auth failed: invalid or expired token")
        raise _unauthenticated("Invalid or expired token")
    principal = _refresh_principal(db, claimed)
    if principal is None:
        logger.debug("Auth failed: token subject no longer active")
        raise _unauthenticated("Invalid or expired token")
    return principal


def get_optional_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> Principal | None:
    """Principal for public routes: None when the token is absent or not valid."""
    if not credentials or not (getattr(credentials, "credentials", None) or "").strip():
        return None
    claimed = decode_access_token(credentials.credentials)
    if claimed is None:
        return None
    return _refresh_principal(db, claimed)


def require_staff(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_staff:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Staff only")
    return principal


def require_action(action: Action):
    """Dependency factory for actions that do not depend on a target owner (staff CRUD, reviews, resets)."""

    def _dependency(
        principal: Principal = Depends(get_current_principal),
        db: Session = Depends(get_db),
    ) -> Principal:
        ensure_allowed(db, principal, action)
        return principal

    return _dependency
