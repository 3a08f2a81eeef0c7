# api/feedback_app/api/deps/filters.py
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, Query

from feedback_app.analytics.domain import NOT_ASSIGNED_ID, AnalyticsFilters


def _faculty_id(value: Optional[str]) -> Optional[str]:
    if value is None or value == NOT_ASSIGNED_ID:
        return value
    try:
        return str(UUID(value))
    except ValueError:
        raise HTTPException(status_code=422, detail=f"facultyId must be a UUID or '{NOT_ASSIGNED_ID}'")


def analytics_filters(
    course_id: Optional[UUID] = Query(None, alias="courseId"),
    year: Optional[int] = Query(None, ge=1, le=4),
    semester: Optional[int] = Query(None, ge=1, le=2),
    section_id: Optional[UUID] = Query(None, alias="sectionId"),
    subject_id: Optional[UUID] = Query(None, alias="subjectId"),
    faculty_id: Optional[str] = Query(None, alias="facultyId", description="Faculty UUID or 'not-assigned'"),
    student_name: Optional[str] = Query(None, alias="studentName", max_length=200),
    roll_number: Optional[str] = Query(None, alias="rollNumber", max_length=50),
) -> AnalyticsFilters:
    """Shared query filters; the activation period is resolved per endpoint."""
    return AnalyticsFilters(
        course_id=str(course_id) if course_id else None,
        year=year,
        semester=semester,
        section_id=str(section_id) if section_id else None,
        subject_id=str(subject_id) if subject_id else None,
        faculty_id=_faculty_id(faculty_id),
        student_name=(student_name or "").strip() or None,
        roll_number=(roll_number or "").strip() or None,
    )
