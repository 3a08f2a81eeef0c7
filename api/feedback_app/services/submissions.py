# api/feedback_app/services/submissions.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from feedback_app.analytics.domain import ActivationPeriod, QuestionSnapshot, as_utc
from feedback_app.analytics.question_aggregator import (
    coerce_choices, coerce_scale, coerce_yes_no, is_answered,
)
from feedback_app.models.course import Course, CourseSection, CourseTerm
from feedback_app.models.response import Response, SubjectResponse
from feedback_app.models.subject import Subject
from feedback_app.schemas.submissions import SubmissionIn
from feedback_app.services.analytics_data import ensure_form, form_to_domain

logger = logging.getLogger(__name__)


def normalize_roll(roll: str) -> str:
    return roll.strip().upper()


def current_period(db: Session, form_id: UUID, now: Optional[datetime] = None):
    """(orm form, domain form, active period); 400 when the form is not accepting answers."""
    form = ensure_form(db, form_id)
    if not form.is_active:
        raise HTTPException(400, "Feedback form is not active")
    form_vo = form_to_domain(form)
    period = form_vo.active_period(now)
    if period is None:
        raise HTTPException(400, "Feedback form has no active period")
    return form, form_vo, period


def find_existing(
    db: Session, roll_number: str, course_id: UUID, year: int, semester: int, period: ActivationPeriod,
) -> Optional[Response]:
    return (
        db.query(Response)
        .filter(
            Response.roll_number == normalize_roll(roll_number),
            Response.course_id == course_id,
            Response.year == year,
            Response.semester == semester,
            Response.period_start == period.start,
        )
        .first()
    )


def _check_answer(snap: QuestionSnapshot, raw, subject_name: str) -> None:
    label = f"'{snap.question_text}' ({subject_name})"
    if not is_answered(raw):
        if snap.is_required:
            raise HTTPException(400, f"Answer required for question {label}")
        return
    if snap.question_type == "scale":
        v = coerce_scale(raw)
        if v is None or not snap.scale_min <= v <= snap.scale_max:
            raise HTTPException(
                400, f"Answer for {label} must be an integer between {snap.scale_min} and {snap.scale_max}"
            )
    elif snap.question_type == "yesno":
        if coerce_yes_no(raw) is None:
            raise HTTPException(400, f"Answer for {label} must be yes or no")
    elif snap.question_type == "multiplechoice" and snap.options:
        unknown = [c for c in coerce_choices(raw) if c not in snap.options]
        if unknown:
            raise HTTPException(400, f"Unknown option(s) {unknown} for {label}")


def submit_feedback(db: Session, payload: SubmissionIn, now: Optional[datetime] = None) -> Response:
    now = as_utc(now or datetime.now(timezone.utc))

    # 1) form + active period (captured by value below)
    _form, form_vo, period = current_period(db, payload.form_id, now)

    # 2) course / term / section
    course = db.get(Course, payload.course_id)
    if not course or not course.is_active:
        raise HTTPException(404, "Course not found")
    term = (
        db.query(CourseTerm)
        .filter(
            CourseTerm.course_id == course.id,
            CourseTerm.year == payload.year,
            CourseTerm.semester == payload.semester,
        )
        .first()
    )
    if not term:
        raise HTTPException(400, f"year/semester {payload.year}/{payload.semester} is not offered by this course")
    if payload.section_id is not None:
        section = db.get(CourseSection, payload.section_id)
        if not section or section.term_id != term.id:
            raise HTTPException(400, "sectionId does not belong to the selected course year/semester")

    # 3) duplicate check (the unique constraint is the real guard)
    if find_existing(db, payload.roll_number, course.id, payload.year, payload.semester, period):
        logger.warning("duplicate submission roll=%s form=%s", payload.roll_number, payload.form_id)
        raise HTTPException(409, "Feedback already submitted for this course, year, semester and period")

    # 4) subjects: snapshot questions, align answers by question id
    seen: set = set()
    subject_rows: List[SubjectResponse] = []
    for position, item in enumerate(payload.subjects):
        if item.subject_id in seen:
            raise HTTPException(400, f"subjectId {item.subject_id} appears more than once")
        seen.add(item.subject_id)

        subject = db.get(Subject, item.subject_id)
        if not subject or not subject.is_active:
            raise HTTPException(404, f"Subject {item.subject_id} not found")
        if (subject.course_id, subject.year, subject.semester) != (course.id, payload.year, payload.semester):
            raise HTTPException(400, f"subjectId {item.subject_id} does not belong to the selected course year/semester")

        snapshots = [QuestionSnapshot.of(q, as_text=bool(subject.is_lab)) for q in form_vo.questions]
        answers = [item.answers.get(s.question_id) for s in snapshots]
        for snap, raw in zip(snapshots, answers):
            _check_answer(snap, raw, subject.subject_name)

        subject_rows.append(SubjectResponse(
            subject_id=subject.id,
            form_id=payload.form_id,
            position=position,
            questions=[s.to_stored() for s in snapshots],
            answers=answers,
        ))

    started = as_utc(payload.started_at) if payload.started_at else now
    response = Response(
        student_name=payload.student_name,
        student_phone=(payload.student_phone or "").strip() or None,
        roll_number=normalize_roll(payload.roll_number),
        course_id=course.id,
        year=payload.year,
        semester=payload.semester,
        section_id=payload.section_id,
        form_id=payload.form_id,
        period_start=period.start,
        period_end=period.end,
        created_at=min(started, now),
        submitted_at=now,
        subject_responses=subject_rows,
    )

    try:
        db.add(response)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("duplicate submission (constraint) roll=%s form=%s", payload.roll_number, payload.form_id)
        raise HTTPException(409, "Feedback already submitted for this course, year, semester and period")
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("could not save submission")
        raise HTTPException(500, "Could not save the submission") from e

    db.refresh(response)
    logger.info(
        "submission saved id=%s form=%s subjects=%d", response.id, payload.form_id, len(subject_rows)
    )
    return response
