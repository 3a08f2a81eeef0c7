# api/feedback_app/api/v1/endpoints/admin_forms.py
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from feedback_app.db.session import get_db
from feedback_app.models.feedback_form import FeedbackForm
from feedback_app.schemas.analytics import PeriodOut
from feedback_app.schemas.forms import FormActivationOut
from feedback_app.services.forms import activate_form, deactivate_form

router = APIRouter(prefix="/feedback-forms", tags=["admin/forms"])


def _out(form: FeedbackForm) -> FormActivationOut:
    return FormActivationOut(
        id=str(form.id),
        form_name=form.form_name,
        is_active=form.is_active,
        activation_periods=[
            PeriodOut(start=p.start, end=p.end, is_open=p.end is None) for p in form.activation_periods
        ],
    )


@router.patch("/{form_id}/activate", response_model=FormActivationOut)
def activate(form_id: UUID = Path(...), db: Session = Depends(get_db)):
    return _out(activate_form(db, form_id))


@router.patch("/{form_id}/deactivate", response_model=FormActivationOut)
def deactivate(form_id: UUID = Path(...), db: Session = Depends(get_db)):
    return _out(deactivate_form(db, form_id))
