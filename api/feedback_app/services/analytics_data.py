# api/feedback_app/services/analytics_data.py
"""
Data access for the analytics engine: load rows with SQLAlchemy, convert
them once into the ORM-free domain types and hand them over.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterator, List, Optional
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Query, Session, selectinload

from feedback_app.analytics.domain import (
    ActivationPeriod, AnalyticsFilters, FacultyRef, GlobalForm, QuestionDefinition,
    QuestionSnapshot, ResponseRecord, SectionAssignment, StandardForm, StudentInfo,
    SubjectRef, SubjectResponse as SubjectResponseVO,
)
from feedback_app.analytics.faculty_builder import AggregationOptions
from feedback_app.core.config import settings
from feedback_app.models.faculty import Faculty
from feedback_app.models.feedback_form import FeedbackForm
from feedback_app.models.response import Response, SubjectResponse
from feedback_app.models.subject import Subject, SubjectSectionFaculty

logger = logging.getLogger(__name__)


def aggregation_options() -> AggregationOptions:
    return AggregationOptions(
        threshold=settings.TEXT_SIMILARITY_THRESHOLD,
        words_limit=settings.FREQUENT_WORDS_LIMIT,
        groups_limit=settings.TOP_RESPONSE_GROUPS,
        samples_limit=settings.SAMPLE_RESPONSES_LIMIT,
    )


# -------------------- forms -------------------- #

def ensure_form(db: Session, form_id: UUID) -> FeedbackForm:
    form = (
        db.query(FeedbackForm)
        .options(
            selectinload(FeedbackForm.questions),
            selectinload(FeedbackForm.activation_periods),
            selectinload(FeedbackForm.assigned_faculty),
        )
        .filter(FeedbackForm.id == form_id)
        .first()
    )
    if not form:
        raise HTTPException(404, "Feedback form not found")
    return form


def faculty_ref(faculty: Optional[Faculty]) -> Optional[FacultyRef]:
    """Deactivated faculty resolve like missing ones."""
    if faculty is None or not faculty.is_active:
        return None
    return FacultyRef(
        id=str(faculty.id),
        name=faculty.name,
        designation=faculty.designation,
        department=faculty.department,
    )


def form_to_domain(form: FeedbackForm):
    common = dict(
        id=str(form.id),
        name=form.form_name,
        description=form.description,
        is_active=bool(form.is_active),
        questions=tuple(
            QuestionDefinition(
                question_id=str(q.id),
                question_text=q.question_text,
                question_type=q.question_type,
                options=tuple(q.options or ()),
                is_required=bool(q.is_required),
                scale_min=q.scale_min if q.scale_min is not None else 1,
                scale_max=q.scale_max if q.scale_max is not None else 5,
            )
            for q in form.questions
        ),
        activation_periods=tuple(
            ActivationPeriod(start=p.start, end=p.end) for p in form.activation_periods
        ),
    )
    if form.is_global:
        assigned = tuple(r for r in (faculty_ref(f) for f in form.assigned_faculty) if r)
        return GlobalForm(training_name=form.training_name or form.form_name, assigned_faculty=assigned, **common)
    return StandardForm(**common)


def ensure_period(form_vo, start: datetime) -> ActivationPeriod:
    period = form_vo.find_period(start)
    if period is None:
        raise HTTPException(
            400,
            f"activationPeriodStart {start.isoformat()} does not match any activation period of this form",
        )
    return period


# -------------------- responses -------------------- #

def subject_ref(subject: Optional[Subject]) -> Optional[SubjectRef]:
    if subject is None:
        return None
    return SubjectRef(
        id=str(subject.id),
        name=subject.subject_name,
        course_id=str(subject.course_id),
        year=subject.year,
        semester=subject.semester,
        is_lab=bool(subject.is_lab),
        default_faculty=faculty_ref(subject.faculty),
        section_faculty=tuple(
            SectionAssignment(section_id=str(a.section_id), faculty=faculty_ref(a.faculty))
            for a in subject.section_assignments
        ),
    )


def _snapshots(raw) -> tuple:
    if not isinstance(raw, list):
        return ()
    return tuple(QuestionSnapshot.from_stored(q) for q in raw if isinstance(q, dict))


def to_record(resp: Response, subject_cache: Dict[UUID, Optional[SubjectRef]]) -> ResponseRecord:
    subject_responses = []
    for sr in resp.subject_responses:
        if sr.subject_id not in subject_cache:
            subject_cache[sr.subject_id] = subject_ref(sr.subject)
        answers = sr.answers if isinstance(sr.answers, list) else []
        vo = SubjectResponseVO(
            subject_id=str(sr.subject_id),
            subject=subject_cache[sr.subject_id],
            form_id=str(sr.form_id),
            questions=_snapshots(sr.questions),
            answers=tuple(answers),
        )
        if vo.has_length_mismatch:
            logger.warning(
                "response %s subject %s: %d questions vs %d answers",
                resp.id, sr.subject_id, len(vo.questions), len(vo.answers),
            )
        subject_responses.append(vo)

    section = resp.section
    return ResponseRecord(
        id=str(resp.id),
        student=StudentInfo(name=resp.student_name, phone=resp.student_phone, roll_number=resp.roll_number),
        course_id=str(resp.course_id),
        course_name=resp.course.course_name if resp.course else None,
        year=resp.year,
        semester=resp.semester,
        section_id=str(resp.section_id) if resp.section_id else None,
        section_name=section.section_name if section else None,
        form_id=str(resp.form_id),
        period=ActivationPeriod(start=resp.period_start, end=resp.period_end),
        created_at=resp.created_at,
        submitted_at=resp.submitted_at,
        subject_responses=tuple(subject_responses),
    )


def with_graph(q: Query) -> Query:
    subject_path = selectinload(Response.subject_responses).selectinload(SubjectResponse.subject)
    return q.options(
        selectinload(Response.course),
        selectinload(Response.section),
        subject_path.selectinload(Subject.faculty),
        subject_path.selectinload(Subject.section_assignments).selectinload(SubjectSectionFaculty.faculty),
    )


def filtered_query(db: Session, form_id: Optional[UUID], filters: AnalyticsFilters) -> Query:
    """SQL pre-filter; the engine re-applies the same filters in memory."""
    q = db.query(Response)
    if form_id is not None:
        q = q.filter(Response.form_id == form_id)
    if filters.course_id:
        q = q.filter(Response.course_id == UUID(filters.course_id))
    if filters.year is not None:
        q = q.filter(Response.year == filters.year)
    if filters.semester is not None:
        q = q.filter(Response.semester == filters.semester)
    if filters.section_id:
        q = q.filter(Response.section_id == UUID(filters.section_id))
    if filters.subject_id:
        q = q.filter(Response.subject_responses.any(SubjectResponse.subject_id == UUID(filters.subject_id)))
    if filters.period is not None:
        q = q.filter(Response.submitted_at >= filters.period.start)
        if filters.period.end is not None:
            q = q.filter(Response.submitted_at <= filters.period.end)
    if filters.student_name:
        q = q.filter(Response.student_name.ilike(f"%{filters.student_name.strip()}%"))
    if filters.roll_number:
        q = q.filter(Response.roll_number.ilike(f"%{filters.roll_number.strip()}%"))
    return q


def load_responses(db: Session, form_id: UUID, filters: AnalyticsFilters) -> List[ResponseRecord]:
    rows = with_graph(filtered_query(db, form_id, filters)).order_by(Response.submitted_at).all()
    cache: Dict[UUID, Optional[SubjectRef]] = {}
    records = [to_record(r, cache) for r in rows]
    logger.debug("loaded %d responses for form %s", len(records), form_id)
    return records


def iter_responses(
    db: Session,
    form_id: Optional[UUID],
    filters: AnalyticsFilters,
    chunk_size: Optional[int] = None,
) -> Iterator[ResponseRecord]:
    """Same records as load_responses, fetched in bounded batches."""
    q = with_graph(filtered_query(db, form_id, filters)).order_by(Response.submitted_at, Response.id)
    cache: Dict[UUID, Optional[SubjectRef]] = {}
    for resp in q.yield_per(chunk_size or settings.EXPORT_CHUNK_SIZE):
        yield to_record(resp, cache)
