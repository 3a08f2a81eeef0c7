# api/feedback_app/schemas/submissions.py
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from feedback_app.schemas.analytics import CamelModel, FacultyOut, PeriodOut


class SubjectAnswersIn(CamelModel):
    subject_id: UUID
    # question id -> raw answer (string, number, bool or list for multi-select)
    answers: Dict[str, Any] = Field(default_factory=dict)


class SubmissionIn(CamelModel):
    form_id: UUID
    student_name: str = Field(..., min_length=1, max_length=200)
    student_phone: Optional[str] = Field(None, max_length=20)
    roll_number: str = Field(..., min_length=1, max_length=50)
    course_id: UUID
    year: int = Field(..., ge=1, le=4)
    semester: int = Field(..., ge=1, le=2)
    section_id: Optional[UUID] = None
    started_at: Optional[datetime] = Field(None, description="When the student opened the form")
    subjects: List[SubjectAnswersIn] = Field(..., min_length=1)

    @field_validator("student_name", "roll_number")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class SubmissionOut(CamelModel):
    id: str
    submitted_at: datetime
    period_start: datetime
    subject_count: int


class ResponseStatusOut(CamelModel):
    submitted: bool
    response_id: Optional[str] = None
    submitted_at: Optional[datetime] = None


class QuestionOut(CamelModel):
    id: str
    question_text: str
    question_type: str
    options: List[str] = Field(default_factory=list)
    is_required: bool
    scale_min: int
    scale_max: int


class FeedbackFormOut(CamelModel):
    id: str
    form_name: str
    description: Optional[str] = None
    is_global: bool
    training_name: Optional[str] = None
    assigned_faculty: List[FacultyOut] = Field(default_factory=list)
    questions: List[QuestionOut] = Field(default_factory=list)
    current_period: PeriodOut
