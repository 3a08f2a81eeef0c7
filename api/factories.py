# api/factories.py
"""Builders for analytics domain objects used across the test-suite."""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from feedback_app.analytics.domain import (
    ActivationPeriod, FacultyRef, GlobalForm, QuestionDefinition, QuestionSnapshot,
    ResponseRecord, SectionAssignment, StandardForm, StudentInfo, SubjectRef, SubjectResponse,
)

T0 = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)


def question(qid: str, qtype: str, text: Optional[str] = None, **kw) -> QuestionDefinition:
    return QuestionDefinition(question_id=qid, question_text=text or f"Question {qid}", question_type=qtype, **kw)


def faculty(fid: str, name: str, **kw) -> FacultyRef:
    return FacultyRef(id=fid, name=name, **kw)


def subject(sid: str, name: str, default: Optional[FacultyRef] = None,
            sections: Sequence[Tuple[str, Optional[FacultyRef]]] = (), **kw) -> SubjectRef:
    return SubjectRef(
        id=sid,
        name=name,
        default_faculty=default,
        section_faculty=tuple(SectionAssignment(section_id=s, faculty=f) for s, f in sections),
        **kw,
    )


def standard_form(questions: Sequence[QuestionDefinition], periods: Sequence[ActivationPeriod] = (),
                  form_id: str = "form-1") -> StandardForm:
    return StandardForm(id=form_id, name="Mid-term feedback", questions=tuple(questions),
                        activation_periods=tuple(periods), is_active=True)


def global_form(questions: Sequence[QuestionDefinition], training_name: str = "Soft Skills Training",
                form_id: str = "form-g", assigned: Sequence[FacultyRef] = ()) -> GlobalForm:
    return GlobalForm(id=form_id, name="Training feedback", training_name=training_name,
                      questions=tuple(questions), assigned_faculty=tuple(assigned), is_active=True)


def subject_response(subj: Optional[SubjectRef], form, answers: Dict[str, object],
                     subject_id: Optional[str] = None) -> SubjectResponse:
    snaps = tuple(QuestionSnapshot.of(q) for q in form.questions)
    return SubjectResponse(
        subject_id=subject_id or (subj.id if subj else "missing-subject"),
        subject=subj,
        form_id=form.id,
        questions=snaps,
        answers=tuple(answers.get(s.question_id) for s in snaps),
    )


def record(rid: str, form, items: List[Tuple[Optional[SubjectRef], Dict[str, object]]], *,
           roll: Optional[str] = None, name: str = "Student", section_id: Optional[str] = None,
           course_id: str = "course-1", year: int = 1, semester: int = 1,
           submitted_at: datetime = T0, took: timedelta = timedelta(minutes=2),
           period: Optional[ActivationPeriod] = None) -> ResponseRecord:
    return ResponseRecord(
        id=rid,
        student=StudentInfo(name=name, roll_number=roll or f"ROLL-{rid}"),
        course_id=course_id,
        course_name="B.Tech CSE",
        year=year,
        semester=semester,
        section_id=section_id,
        section_name=section_id,
        form_id=form.id,
        period=period or ActivationPeriod(start=T0 - timedelta(days=1)),
        created_at=submitted_at - took,
        submitted_at=submitted_at,
        subject_responses=tuple(subject_response(s, form, a) for s, a in items),
    )
