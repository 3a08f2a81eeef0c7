# api/feedback_app/api/v1/endpoints/student.py
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from feedback_app.analytics.faculty_builder import faculty_out
from feedback_app.db.session import get_db
from feedback_app.schemas.analytics import PeriodOut
from feedback_app.schemas.submissions import (
    FeedbackFormOut, QuestionOut, ResponseStatusOut, SubmissionIn, SubmissionOut,
)
from feedback_app.services.analytics_data import ensure_form, form_to_domain
from feedback_app.services.submissions import current_period, find_existing, submit_feedback

router = APIRouter(prefix="/student", tags=["student"])


@router.get("/feedback-form/{form_id}", response_model=FeedbackFormOut)
def feedback_form(
    form_id: UUID = Path(..., description="Feedback form id"),
    db: Session = Depends(get_db),
):
    _, form_vo, period = current_period(db, form_id)
    return FeedbackFormOut(
        id=form_vo.id,
        form_name=form_vo.name,
        description=form_vo.description,
        is_global=form_vo.is_global,
        training_name=form_vo.training_name if form_vo.is_global else None,
        assigned_faculty=[faculty_out(f) for f in form_vo.assigned_faculty] if form_vo.is_global else [],
        questions=[
            QuestionOut(
                id=q.question_id,
                question_text=q.question_text,
                question_type=q.question_type,
                options=list(q.options),
                is_required=q.is_required,
                scale_min=q.scale_min,
                scale_max=q.scale_max,
            )
            for q in form_vo.questions
        ],
        current_period=PeriodOut(start=period.start, end=period.end, is_open=period.is_open),
    )


@router.post("/submit-feedback", response_model=SubmissionOut, status_code=201)
def submit(payload: SubmissionIn, db: Session = Depends(get_db)):
    r = submit_feedback(db, payload)
    return SubmissionOut(
        id=str(r.id),
        submitted_at=r.submitted_at,
        period_start=r.period_start,
        subject_count=len(r.subject_responses),
    )


@router.get("/response-status", response_model=ResponseStatusOut)
def response_status(
    form_id: UUID = Query(..., alias="formId"),
    roll_number: str = Query(..., alias="rollNumber", min_length=1, max_length=50),
    course_id: UUID = Query(..., alias="courseId"),
    year: int = Query(..., ge=1, le=4),
    semester: int = Query(..., ge=1, le=2),
    db: Session = Depends(get_db),
):
    period = form_to_domain(ensure_form(db, form_id)).active_period()
    if period is None:
        return ResponseStatusOut(submitted=False)
    existing = find_existing(db, roll_number, course_id, year, semester, period)
    if existing is None:
        return ResponseStatusOut(submitted=False)
    return ResponseStatusOut(submitted=True, response_id=str(existing.id), submitted_at=existing.submitted_at)
