"""
Feedback API: anyone may submit; staff list it, newest first, optionally by course and year.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from laportal.database import get_db
from laportal.models.feedback import Feedback
from laportal.schemas.feedback import FeedbackCreateRequest, FeedbackCreatedResponse, FeedbackResponse
from laportal.services.auth import Principal
from laportal.services.authorization import Action, ensure_allowed
from laportal.api.deps import get_current_principal, get_optional_principal

router = APIRouter(prefix="/feedback", tags=["feedback"])
logger = logging.getLogger(__name__)


@router.post("", response_model=FeedbackCreatedResponse, status_code=status.HTTP_201_CREATED)
def submit_feedback(
    data: FeedbackCreateRequest,
    principal: Principal | None = Depends(get_optional_principal),
    db: Session = Depends(get_db),
):
    ensure_allowed(db, principal, Action.SUBMIT_FEEDBACK)
    item = Feedback(
        course=(data.course or "").strip() or None,
        type=data.type,
        rating=data.rating,
        text=data.text,
        submitter=(data.submitter or "").strip() or None,
        year=data.year,
    )
    db.add(item)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Feedback create failed: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save feedback")
    db.refresh(item)
    return FeedbackCreatedResponse(item=FeedbackResponse.model_validate(item))


@router.get("", response_model=list[FeedbackResponse])
def list_feedback(
    course: str | None = None,
    year: int | None = None,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    ensure_allowed(db, principal, Action.READ_FEEDBACK)
    q = db.query(Feedback)
    if course:
        q = q.filter(Feedback.course == course)
    if year is not None:
        q = q.filter(Feedback.year == year)
    rows = q.order_by(Feedback.created_at.desc(), Feedback.id.desc()).all()
    return [FeedbackResponse.model_validate(r) for r in rows]
