# api/feedback_app/api/v1/endpoints/exports.py
import csv
import io
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException, Query
from starlette.responses import StreamingResponse
from sqlalchemy.orm import Session

from feedback_app.analytics.domain import AnalyticsFilters
from feedback_app.api.deps.filters import analytics_filters
from feedback_app.core.config import settings
from feedback_app.db.session import SessionLocal, get_db
from feedback_app.services.analytics_data import (
    aggregation_options, ensure_form, ensure_period, form_to_domain, iter_responses,
)
from feedback_app.services.exports import build_workbook, csv_rows

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/responses/export", tags=["exports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _zone(tz: Optional[str]) -> ZoneInfo:
    name = tz or settings.EXPORT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(400, f"tz: unknown time zone {name!r}")


def _scope(db: Session, form_id: UUID, period_start: Optional[datetime], filters: AnalyticsFilters):
    form_vo = form_to_domain(ensure_form(db, form_id))
    if period_start is not None:
        filters = filters.with_period(ensure_period(form_vo, period_start))
    return form_vo, filters


# 1) CSV: one row per subject-response, streamed
@router.get("/csv")
def export_csv(
    form_id: UUID = Query(..., alias="formId"),
    activation_period_start: Optional[datetime] = Query(None, alias="activationPeriodStart"),
    tz: Optional[str] = Query(None, description="IANA zone for timestamps, e.g. Asia/Kolkata"),
    filters: AnalyticsFilters = Depends(analytics_filters),
    db: Session = Depends(get_db),
):
    form_vo, filters = _scope(db, form_id, activation_period_start, filters)
    zone = _zone(tz)

    def stream():
        output = io.StringIO()
        writer = csv.writer(output)
        # own session: the generator outlives the request-scoped one
        with SessionLocal() as s:
            for row in csv_rows(iter_responses(s, form_id, filters), form_vo, filters, zone):
                writer.writerow(row); yield output.getvalue(); output.seek(0); output.truncate(0)

    filename = f"feedback_responses_{form_id}.csv"
    return StreamingResponse(stream(), media_type="text/csv",
                             headers={"Content-Disposition": f'attachment; filename="{filename}"'})


# 2) WORKBOOK: grouped summary per Year/Course/Semester/Section/Subject/Faculty
@router.get("/xlsx")
def export_xlsx(
    form_id: UUID = Query(..., alias="formId"),
    activation_period_start: Optional[datetime] = Query(None, alias="activationPeriodStart"),
    filters: AnalyticsFilters = Depends(analytics_filters),
    db: Session = Depends(get_db),
):
    form_vo, filters = _scope(db, form_id, activation_period_start, filters)
    content = build_workbook(iter_responses(db, form_id, filters), form_vo, filters, aggregation_options())

    filename = f"feedback_report_{form_id}.xlsx"
    return StreamingResponse(iter([content]), media_type=XLSX_MEDIA_TYPE,
                             headers={"Content-Disposition": f'attachment; filename="{filename}"'})
