# api/feedback_app/services/exports.py
"""
Report rows for the CSV and workbook exports.

Both consume records one at a time (see analytics_data.iter_responses) so a
large response set is never materialized as a whole document.
"""
from __future__ import annotations

import logging
from datetime import datetime
from io import BytesIO
from typing import Dict, Iterable, Iterator, List, Optional, Tuple
from zoneinfo import ZoneInfo

from openpyxl import Workbook

from feedback_app.analytics.domain import AnalyticsFilters, GlobalForm, ResponseRecord, SubjectResponse
from feedback_app.analytics.faculty_builder import AggregationOptions, analyze_questions, scope_response
from feedback_app.analytics.question_aggregator import answer_as_text
from feedback_app.analytics.rating import format_rating, NO_RATING
from feedback_app.schemas.analytics import (
    MultipleChoiceAnalytics, ScaleAnalytics, TextAnalytics, YesNoAnalytics,
)

logger = logging.getLogger(__name__)

BASE_HEADERS = [
    "Student Name", "Phone Number", "Roll Number", "Course", "Year", "Semester",
    "Section", "Subject", "Faculty", "Submitted At",
]
GROUP_HEADERS = ["Year", "Course", "Semester", "Section", "Subject", "Faculty", "Responses"]
TOP_GROUPS_IN_CELL = 3


def question_headers(form) -> List[str]:
    return [f"Q{i}: {q.question_text}" for i, q in enumerate(form.questions, start=1)]


def format_timestamp(value: datetime, tz: ZoneInfo) -> str:
    return value.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S")


# -------------------- CSV (one row per subject-response) -------------------- #

def csv_rows(
    records: Iterable[ResponseRecord],
    form,
    filters: AnalyticsFilters,
    tz: ZoneInfo,
) -> Iterator[list]:
    yield BASE_HEADERS + question_headers(form)
    written = 0
    for record in records:
        for sr, faculty in scope_response(record, form, filters):
            row = [
                record.student.name,
                record.student.phone or "",
                record.student.roll_number,
                record.course_name or "",
                record.year,
                record.semester,
                record.section_name or "",
                sr.subject_name,
                faculty.name,
                format_timestamp(record.submitted_at, tz),
            ]
            row += [answer_as_text(sr.answer_for(q.question_id)) for q in form.questions]
            written += 1
            yield row
    logger.info("csv export form=%s rows=%d", form.id, written)


# -------------------- workbook (grouped summary) -------------------- #

GroupKey = Tuple[int, str, int, str, str, str]


def summary_cell(analytics) -> str:
    """One cell per question and group: rating, split, top choice or top answers."""
    if analytics.total_responses == 0:
        return NO_RATING
    if isinstance(analytics, ScaleAnalytics):
        return format_rating(analytics.average, analytics.scale_max)
    if isinstance(analytics, YesNoAnalytics):
        return f"Yes {analytics.yes_percentage:.1f}% / No {analytics.no_percentage:.1f}%"
    if isinstance(analytics, MultipleChoiceAnalytics):
        if not analytics.top_choice:
            return NO_RATING
        return f"{analytics.top_choice} ({analytics.choice_counts.get(analytics.top_choice, 0)})"
    if isinstance(analytics, TextAnalytics):
        groups = analytics.response_groups[:TOP_GROUPS_IN_CELL]
        return "; ".join(f"{g.representative} ({g.count})" for g in groups) or NO_RATING
    return ""


def group_subject_responses(
    records: Iterable[ResponseRecord],
    form,
    filters: AnalyticsFilters,
) -> Dict[GroupKey, List[SubjectResponse]]:
    """Year -> Course -> Semester -> Section -> Subject -> Faculty."""
    groups: Dict[GroupKey, List[SubjectResponse]] = {}
    for record in records:
        for sr, faculty in scope_response(record, form, filters):
            faculty_name = form.training_name if isinstance(form, GlobalForm) else faculty.name
            key = (
                record.year,
                record.course_name or "",
                record.semester,
                record.section_name or "",
                sr.subject_name,
                faculty_name,
            )
            groups.setdefault(key, []).append(sr)
    return groups


def build_workbook(
    records: Iterable[ResponseRecord],
    form,
    filters: AnalyticsFilters,
    options: Optional[AggregationOptions] = None,
) -> bytes:
    options = options or AggregationOptions()
    groups = group_subject_responses(records, form, filters)

    wb = Workbook(write_only=True)
    ws = wb.create_sheet("Summary")
    ws.append(GROUP_HEADERS + question_headers(form))
    for key in sorted(groups):
        srs = groups[key]
        analytics = analyze_questions(form.questions, srs, options)
        ws.append(list(key) + [len(srs)] + [summary_cell(a) for a in analytics])

    buf = BytesIO()
    wb.save(buf)
    logger.info("xlsx export form=%s groups=%d", form.id, len(groups))
    return buf.getvalue()
