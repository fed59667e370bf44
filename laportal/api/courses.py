"""
Courses API: GET /courses, the distinct course codes staff are assigned to or hold hours for.
No auth required.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from laportal.database import get_db
from laportal.models.schedule import ScheduleEntry
from laportal.models.staff import StaffCourse
from laportal.services.auth import Principal
from laportal.services.authorization import Action, ensure_allowed
from laportal.api.deps import get_optional_principal

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("", response_model=list[str])
def list_courses(
    principal: Principal | None = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    ensure_allowed(db, principal, Action.READ_COURSES)
    assigned = {c for (c,) in db.query(StaffCourse.course).distinct()}
    scheduled = {c for (c,) in db.query(ScheduleEntry.course).filter(ScheduleEntry.course.isnot(None)).distinct()}
    return sorted(assigned | scheduled)
