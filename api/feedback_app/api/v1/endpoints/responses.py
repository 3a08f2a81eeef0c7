# api/feedback_app/api/v1/endpoints/responses.py
import logging
import math
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from feedback_app.analytics.domain import NOT_ASSIGNED_ID, AnalyticsFilters, ResponseRecord, as_utc
from feedback_app.analytics.faculty_resolver import resolve_faculty
from feedback_app.api.deps.filters import analytics_filters
from feedback_app.core.config import settings
from feedback_app.db.session import get_db
from feedback_app.models.course import Course
from feedback_app.models.faculty import Faculty
from feedback_app.models.feedback_form import FeedbackForm
from feedback_app.models.response import Response, SubjectResponse
from feedback_app.models.subject import Subject, SubjectSectionFaculty
from feedback_app.schemas.responses import (
    AnswerOut, DailyCount, ResponseListOut, ResponseOut, StatsOverviewOut, SubjectResponseOut,
)
from feedback_app.services.analytics_data import with_graph, filtered_query, to_record

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/responses", tags=["responses"])

STATS_DAYS = 7


# -------------------- helpers -------------------- #

def response_out(record: ResponseRecord) -> ResponseOut:
    subjects = []
    for sr in record.subject_responses:
        subjects.append(SubjectResponseOut(
            subject_id=sr.subject_id,
            subject_name=sr.subject_name,
            faculty_name=resolve_faculty(sr.subject, record.section_id).name,
            answers=[
                AnswerOut(
                    question_id=q.question_id,
                    question_text=q.question_text,
                    question_type=q.question_type,
                    answer=sr.answers[i] if i < len(sr.answers) else None,
                )
                for i, q in enumerate(sr.questions)
            ],
        ))
    return ResponseOut(
        id=record.id,
        student_name=record.student.name,
        student_phone=record.student.phone,
        roll_number=record.student.roll_number,
        course_id=record.course_id,
        course_name=record.course_name,
        year=record.year,
        semester=record.semester,
        section_id=record.section_id,
        section_name=record.section_name,
        form_id=record.form_id,
        period_start=record.period.start,
        period_end=record.period.end,
        created_at=record.created_at,
        submitted_at=record.submitted_at,
        subject_responses=subjects,
    )


def _ensure_response(db: Session, response_id: UUID) -> Response:
    r = with_graph(db.query(Response)).filter(Response.id == response_id).first()
    if not r:
        raise HTTPException(404, "Response not found")
    return r


def _taught_by(record: ResponseRecord, faculty_id: str) -> bool:
    return any(
        resolve_faculty(sr.subject, record.section_id).id == faculty_id
        for sr in record.subject_responses
    )


# 1) RAW LISTING (paginated)
@router.get("", response_model=ResponseListOut)
def list_responses(
    form_id: Optional[UUID] = Query(None, alias="formId"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    filters: AnalyticsFilters = Depends(analytics_filters),
    db: Session = Depends(get_db),
):
    q = filtered_query(db, form_id, filters)
    faculty_id = filters.faculty_id
    if faculty_id and form_id is not None:
        # global forms have a single group, the faculty filter does not apply
        if db.query(FeedbackForm.is_global).filter(FeedbackForm.id == form_id).scalar():
            faculty_id = None

    cache: Dict = {}
    ordered = with_graph(q).order_by(Response.submitted_at.desc(), Response.id)
    offset = (page - 1) * limit
    if faculty_id:
        if faculty_id != NOT_ASSIGNED_ID:
            fid = UUID(faculty_id)
            ordered = ordered.filter(Response.subject_responses.any(SubjectResponse.subject.has(or_(
                Subject.faculty_id == fid,
                Subject.section_assignments.any(SubjectSectionFaculty.faculty_id == fid),
            ))))
        # section overrides and deactivated staff are only resolved per record
        matched = [rec for rec in (to_record(r, cache) for r in ordered.all()) if _taught_by(rec, faculty_id)]
        total = len(matched)
        records = matched[offset:offset + limit]
    else:
        total = q.count()
        records = [to_record(r, cache) for r in ordered.offset(offset).limit(limit).all()]

    total_pages = math.ceil(total / limit) if total else 0
    return ResponseListOut(
        responses=[response_out(rec) for rec in records],
        current_page=page,
        total_pages=total_pages,
        total_responses=total,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


# 2) DASHBOARD OVERVIEW
@router.get("/stats/overview", response_model=StatsOverviewOut)
def stats_overview(db: Session = Depends(get_db)):
    today = datetime.now(timezone.utc).date()
    since = datetime.combine(today - timedelta(days=STATS_DAYS - 1), datetime.min.time(), tzinfo=timezone.utc)

    recent = [as_utc(ts) for (ts,) in db.query(Response.submitted_at).filter(Response.submitted_at >= since).all()]
    per_day = Counter(ts.date().isoformat() for ts in recent)
    days = [(today - timedelta(days=d)).isoformat() for d in range(STATS_DAYS - 1, -1, -1)]

    return StatsOverviewOut(
        total_responses=db.query(Response).count(),
        total_faculty=db.query(Faculty).filter(Faculty.is_active.is_(True)).count(),
        total_subjects=db.query(Subject).filter(Subject.is_active.is_(True)).count(),
        total_courses=db.query(Course).filter(Course.is_active.is_(True)).count(),
        total_forms=db.query(FeedbackForm).count(),
        recent_responses=len(recent),
        daily_stats=[DailyCount(date=d, count=per_day.get(d, 0)) for d in days],
    )


# 3) DETAIL
@router.get("/{response_id}", response_model=ResponseOut)
def get_response(
    response_id: UUID = Path(..., description="Response id"),
    db: Session = Depends(get_db),
):
    return response_out(to_record(_ensure_response(db, response_id), {}))


# 4) ADMIN HARD DELETE
@router.delete("/{response_id}", status_code=204)
def delete_response(
    response_id: UUID = Path(..., description="Response id"),
    db: Session = Depends(get_db),
):
    r = db.query(Response).filter(Response.id == response_id).first()
    if not r:
        raise HTTPException(404, "Response not found")
    try:
        db.delete(r)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise HTTPException(500, "Could not delete the response") from e
    logger.info("response %s deleted", response_id)
