# api/feedback_app/analytics/period_comparison.py
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from feedback_app.analytics.domain import ActivationPeriod, AnalyticsFilters, ResponseRecord
from feedback_app.analytics.faculty_builder import (
    AggregationOptions, build_analytics, form_summary,
)
from feedback_app.schemas.analytics import (
    ComparisonOut, FacultyComparisonRow, FacultyOut, FacultyPeriodCell, PeriodOut,
    PeriodResultOut,
)


def _period_out(period: ActivationPeriod) -> PeriodOut:
    return PeriodOut(start=period.start, end=period.end, is_open=period.is_open)


def compare_periods(
    responses: Sequence[ResponseRecord],
    form,
    periods: Sequence[ActivationPeriod],
    filters: Optional[AnalyticsFilters] = None,
    options: Optional[AggregationOptions] = None,
) -> ComparisonOut:
    """
    One independent build per period, in request order, with the period
    merged into the shared filters. A period with no responses is reported as
    ``hasData=False`` with zero-valued analytics; nothing is borrowed from
    another period.

    ``faculty_comparison`` aligns faculty across periods: every faculty seen
    in any period gets one cell per period, empty where it has no data.
    """
    filters = filters or AnalyticsFilters()

    results: List[PeriodResultOut] = []
    for period in periods:
        analytics = build_analytics(responses, form, filters.with_period(period), options)
        results.append(PeriodResultOut(
            period=_period_out(period),
            has_data=analytics.form_stats.total_responses > 0,
            analytics=analytics,
        ))

    # first-seen order across periods
    faculty_index: Dict[str, FacultyOut] = {}
    for res in results:
        for fa in res.analytics.faculty_analytics:
            faculty_index.setdefault(fa.faculty.id, fa.faculty)

    rows = []
    for faculty_id, faculty in faculty_index.items():
        cells = []
        for res in results:
            match = next((fa for fa in res.analytics.faculty_analytics if fa.faculty.id == faculty_id), None)
            if match is None or match.response_count == 0:
                cells.append(FacultyPeriodCell(period_start=res.period.start, has_data=False))
            else:
                cells.append(FacultyPeriodCell(
                    period_start=res.period.start,
                    has_data=True,
                    subjects=match.subjects,
                    response_count=match.response_count,
                    question_analytics=match.question_analytics,
                ))
        rows.append(FacultyComparisonRow(faculty=faculty, periods=cells))

    return ComparisonOut(form=form_summary(form), periods=results, faculty_comparison=rows)
