# api/feedback_app/schemas/responses.py
from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from feedback_app.schemas.analytics import CamelModel


class AnswerOut(CamelModel):
    question_id: str
    question_text: str
    question_type: str
    answer: Any = None


class SubjectResponseOut(CamelModel):
    subject_id: str
    subject_name: str
    faculty_name: str
    answers: List[AnswerOut] = Field(default_factory=list)


class ResponseOut(CamelModel):
    id: str
    student_name: str
    student_phone: Optional[str] = None
    roll_number: str
    course_id: str
    course_name: Optional[str] = None
    year: int
    semester: int
    section_id: Optional[str] = None
    section_name: Optional[str] = None
    form_id: str
    period_start: datetime
    period_end: Optional[datetime] = None
    created_at: datetime
    submitted_at: datetime
    subject_responses: List[SubjectResponseOut] = Field(default_factory=list)


class ResponseListOut(CamelModel):
    responses: List[ResponseOut] = Field(default_factory=list)
    current_page: int
    total_pages: int
    total_responses: int
    has_next: bool
    has_prev: bool


class DailyCount(CamelModel):
    date: str  # YYYY-MM-DD (UTC)
    count: int


class StatsOverviewOut(CamelModel):
    total_responses: int
    total_faculty: int
    total_subjects: int
    total_courses: int
    total_forms: int
    recent_responses: int  # last 7 days
    daily_stats: List[DailyCount] = Field(default_factory=list)
