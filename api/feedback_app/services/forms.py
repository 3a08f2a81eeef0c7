# api/feedback_app/services/forms.py
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from feedback_app.analytics.domain import as_utc
from feedback_app.models.feedback_form import FeedbackForm, FormActivationPeriod
from feedback_app.services.analytics_data import ensure_form

logger = logging.getLogger(__name__)


def _commit(db: Session, form: FeedbackForm) -> FeedbackForm:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise HTTPException(500, "Could not update the feedback form") from e
    db.refresh(form)
    return form


def activate_form(db: Session, form_id: UUID, now: Optional[datetime] = None) -> FeedbackForm:
    """Opens a new activation period; at most one period is open at a time."""
    form = ensure_form(db, form_id)
    if form.open_period is not None:
        raise HTTPException(400, "Feedback form is already active")
    start = as_utc(now or datetime.now(timezone.utc))
    last = form.activation_periods[-1] if form.activation_periods else None
    if last is not None and last.end is not None and as_utc(last.end) > start:
        raise HTTPException(400, "New activation period would overlap the previous one")

    form.activation_periods.append(FormActivationPeriod(start=start))
    form.is_active = True
    form = _commit(db, form)
    logger.info("form %s activated at %s", form.id, start.isoformat())
    return form


def deactivate_form(db: Session, form_id: UUID, now: Optional[datetime] = None) -> FeedbackForm:
    form = ensure_form(db, form_id)
    period = form.open_period
    if period is None:
        raise HTTPException(400, "Feedback form is not active")
    period.end = as_utc(now or datetime.now(timezone.utc))
    form.is_active = False
    form = _commit(db, form)
    logger.info("form %s deactivated", form.id)
    return form
