# api/feedback_app/api/v1/endpoints/analytics.py
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from feedback_app.analytics.domain import AnalyticsFilters
from feedback_app.analytics.faculty_builder import build_analytics
from feedback_app.analytics.period_comparison import compare_periods
from feedback_app.api.deps.filters import analytics_filters
from feedback_app.db.session import get_db
from feedback_app.schemas.analytics import AnalyticsOut, ComparisonOut, FacultyAnalyticsOut
from feedback_app.services.analytics_data import (
    aggregation_options, ensure_form, ensure_period, form_to_domain, load_responses,
)

router = APIRouter(prefix="/responses/analytics", tags=["analytics"])


def _run(db: Session, form_id: UUID, period_start: Optional[datetime], filters: AnalyticsFilters) -> AnalyticsOut:
    form_vo = form_to_domain(ensure_form(db, form_id))
    if period_start is not None:
        filters = filters.with_period(ensure_period(form_vo, period_start))
    records = load_responses(db, form_id, filters)
    return build_analytics(records, form_vo, filters, aggregation_options())


# 1) QUESTION ANALYTICS (overall + per faculty)
@router.get("/questions", response_model=AnalyticsOut)
def question_analytics(
    form_id: UUID = Query(..., alias="formId"),
    activation_period_start: Optional[datetime] = Query(None, alias="activationPeriodStart"),
    filters: AnalyticsFilters = Depends(analytics_filters),
    db: Session = Depends(get_db),
):
    return _run(db, form_id, activation_period_start, filters)


# 2) FACULTY TABLE ONLY
@router.get("/faculty-questions", response_model=List[FacultyAnalyticsOut])
def faculty_question_analytics(
    form_id: UUID = Query(..., alias="formId"),
    activation_period_start: Optional[datetime] = Query(None, alias="activationPeriodStart"),
    filters: AnalyticsFilters = Depends(analytics_filters),
    db: Session = Depends(get_db),
):
    return _run(db, form_id, activation_period_start, filters).faculty_analytics


# 3) PERIOD COMPARISON
@router.get("/compare", response_model=ComparisonOut)
def compare(
    form_id: UUID = Query(..., alias="formId"),
    periods: Optional[List[datetime]] = Query(
        None, description="Activation period starts to compare; all periods of the form when omitted"
    ),
    filters: AnalyticsFilters = Depends(analytics_filters),
    db: Session = Depends(get_db),
):
    form_vo = form_to_domain(ensure_form(db, form_id))
    if periods:
        selected = []
        for start in periods:
            p = ensure_period(form_vo, start)
            if p not in selected:
                selected.append(p)
    else:
        selected = list(form_vo.activation_periods)

    records = load_responses(db, form_id, filters) if selected else []
    return compare_periods(records, form_vo, selected, filters, aggregation_options())
