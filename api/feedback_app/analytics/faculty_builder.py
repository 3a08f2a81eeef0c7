# api/feedback_app/analytics/faculty_builder.py
"""
Faculty-scoped analytics: filter the response set, resolve the accountable
faculty of every subject-response, then aggregate each question per faculty
bucket and over the whole filtered set.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from feedback_app.analytics.domain import (
    NOT_ASSIGNED_ID, AnalyticsFilters, FacultyRef, GlobalForm, QuestionDefinition,
    ResponseRecord, SubjectResponse,
)
from feedback_app.analytics.faculty_resolver import resolve_faculty
from feedback_app.analytics.question_aggregator import aggregate, collect_answers
from feedback_app.schemas.analytics import (
    AnalyticsOut, FacultyAnalyticsOut, FacultyOut, FormStatsOut, FormSummaryOut,
)

logger = logging.getLogger(__name__)

OVERALL_ID = "overall"

ScopedResponse = Tuple[ResponseRecord, List[Tuple[SubjectResponse, FacultyRef]]]


class AggregationOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    threshold: int = 80
    words_limit: int = 5
    groups_limit: int = 5
    samples_limit: int = 5


# -------------------- filtering -------------------- #

def _contains(haystack: Optional[str], needle: Optional[str]) -> bool:
    if not needle:
        return True
    return needle.strip().casefold() in (haystack or "").casefold()


def matches_response(record: ResponseRecord, filters: AnalyticsFilters) -> bool:
    """Response-level filters (everything except subject and faculty)."""
    if filters.course_id and record.course_id != filters.course_id:
        return False
    if filters.year is not None and record.year != filters.year:
        return False
    if filters.semester is not None and record.semester != filters.semester:
        return False
    if filters.section_id and record.section_id != filters.section_id:
        return False
    if filters.period is not None and not filters.period.contains(record.submitted_at):
        return False
    if not _contains(record.student.name, filters.student_name):
        return False
    if not _contains(record.student.roll_number, filters.roll_number):
        return False
    return True


def scope_response(
    record: ResponseRecord,
    form,
    filters: AnalyticsFilters,
) -> List[Tuple[SubjectResponse, FacultyRef]]:
    """
    In-scope subject-responses of one response with their resolved faculty;
    empty when the response itself is filtered out.
    """
    if not matches_response(record, filters):
        return []
    is_global = isinstance(form, GlobalForm)
    pairs = []
    for sr in record.subject_responses:
        if sr.form_id != form.id:
            continue
        if filters.subject_id and sr.subject_id != filters.subject_id:
            continue
        faculty = resolve_faculty(sr.subject, record.section_id)
        if filters.faculty_id and not is_global and faculty.id != filters.faculty_id:
            continue
        pairs.append((sr, faculty))
    return pairs


def filter_responses(
    responses: Iterable[ResponseRecord],
    form,
    filters: AnalyticsFilters,
) -> List[ScopedResponse]:
    """A response left with no in-scope subject-response is dropped."""
    scoped: List[ScopedResponse] = []
    for record in responses:
        pairs = scope_response(record, form, filters)
        if pairs:
            scoped.append((record, pairs))
    return scoped


# -------------------- aggregation -------------------- #

def analyze_questions(
    questions: Sequence[QuestionDefinition],
    subject_responses: Sequence[SubjectResponse],
    options: AggregationOptions,
) -> list:
    total = len(subject_responses)
    return [
        aggregate(
            q,
            collect_answers(q.question_id, subject_responses),
            total,
            threshold=options.threshold,
            words_limit=options.words_limit,
            groups_limit=options.groups_limit,
            samples_limit=options.samples_limit,
        )
        for q in questions
    ]


def faculty_out(ref: FacultyRef) -> FacultyOut:
    return FacultyOut(id=ref.id, name=ref.name, designation=ref.designation, department=ref.department)


def form_summary(form) -> FormSummaryOut:
    is_global = isinstance(form, GlobalForm)
    return FormSummaryOut(
        id=form.id,
        name=form.name,
        description=form.description,
        total_questions=len(form.questions),
        is_global=form.is_global,
        training_name=form.training_name if is_global else None,
        assigned_faculty=[faculty_out(f) for f in form.assigned_faculty] if is_global else [],
    )


class _FacultyBucket:
    """Accumulator owned by a single build call."""

    __slots__ = ("faculty", "subject_names", "subject_responses")

    def __init__(self, faculty: FacultyRef):
        self.faculty = faculty
        self.subject_names: List[str] = []
        self.subject_responses: List[SubjectResponse] = []

    def add(self, sr: SubjectResponse) -> None:
        if sr.subject_name not in self.subject_names:
            self.subject_names.append(sr.subject_name)
        self.subject_responses.append(sr)


def _bucket_order(bucket: _FacultyBucket):
    return (bucket.faculty.id == NOT_ASSIGNED_ID, bucket.faculty.name.casefold(), bucket.faculty.id)


def _faculty_groups(form, scoped: List[ScopedResponse], options: AggregationOptions) -> List[FacultyAnalyticsOut]:
    if isinstance(form, GlobalForm):
        # one synthetic group; subjects are not tied to individual faculty here
        bucket = _FacultyBucket(FacultyRef(id=OVERALL_ID, name=form.training_name))
        for _, pairs in scoped:
            for sr, _faculty in pairs:
                bucket.add(sr)
        buckets = [bucket]
    else:
        by_id: Dict[str, _FacultyBucket] = {}
        for _, pairs in scoped:
            for sr, faculty in pairs:
                bucket = by_id.get(faculty.id)
                if bucket is None:
                    bucket = by_id[faculty.id] = _FacultyBucket(faculty)
                bucket.add(sr)
        buckets = sorted(by_id.values(), key=_bucket_order)

    return [
        FacultyAnalyticsOut(
            faculty=faculty_out(b.faculty),
            subjects=b.subject_names,
            response_count=len(b.subject_responses),
            question_analytics=analyze_questions(form.questions, b.subject_responses, options),
        )
        for b in buckets
    ]


def _form_stats(form, scoped: List[ScopedResponse]) -> FormStatsOut:
    if not scoped:
        return FormStatsOut()
    records = [r for r, _ in scoped]
    subject_ids = {sr.subject_id for _, pairs in scoped for sr, _ in pairs}
    return FormStatsOut(
        total_responses=len(records),
        unique_students=len({r.student.roll_number.strip().upper() for r in records}),
        subjects=1 if isinstance(form, GlobalForm) else len(subject_ids),
        courses=len({r.course_id for r in records}),
        average_completion_time_ms=sum(r.completion_time_ms for r in records) / len(records),
    )


def build_analytics(
    responses: Iterable[ResponseRecord],
    form,
    filters: Optional[AnalyticsFilters] = None,
    options: Optional[AggregationOptions] = None,
) -> AnalyticsOut:
    """
    ``{form, formStats, questionAnalytics, facultyAnalytics}`` for the
    filtered response set. An empty set yields the same shape with zeros.
    """
    filters = filters or AnalyticsFilters()
    options = options or AggregationOptions()

    scoped = filter_responses(responses, form, filters)
    all_srs = [sr for _, pairs in scoped for sr, _ in pairs]
    logger.debug("form %s: %d responses / %d subject-responses in scope", form.id, len(scoped), len(all_srs))

    return AnalyticsOut(
        form=form_summary(form),
        form_stats=_form_stats(form, scoped),
        question_analytics=analyze_questions(form.questions, all_srs, options),
        faculty_analytics=_faculty_groups(form, scoped, options),
    )
