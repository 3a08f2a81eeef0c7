# api/feedback_app/analytics/domain.py
"""
Value types consumed by the analytics engine.

Everything here is ORM-free: the data-access layer converts rows into these
objects once per request and the engine only ever reads them.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

QuestionType = Literal["text", "textarea", "scale", "yesno", "multiplechoice"]
TEXT_TYPES = ("text", "textarea")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken as UTC; aware ones are converted."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# -------------------- questions -------------------- #

def _stored_int(value: Any, default: int) -> int:
    # 0 is a valid scale bound
    return default if value is None else int(value)


class _QuestionFields(BaseModel):
    question_id: str
    question_text: str
    question_type: QuestionType
    options: Tuple[str, ...] = ()
    is_required: bool = True
    scale_min: int = 1
    scale_max: int = 5


class QuestionDefinition(_QuestionFields):
    """Live, admin-owned question of a FeedbackForm."""
    model_config = ConfigDict(validate_assignment=True)


class QuestionSnapshot(_QuestionFields):
    """Immutable copy of a question embedded in a response at submit time."""
    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, definition: QuestionDefinition, as_text: bool = False) -> "QuestionSnapshot":
        data = definition.model_dump()
        if as_text and definition.question_type == "multiplechoice":
            # lab subjects answer multiple-choice questions as free text
            data.update(question_type="text", options=())
        return cls(**data)

    @classmethod
    def from_stored(cls, raw: dict) -> "QuestionSnapshot":
        return cls(
            question_id=str(raw.get("question_id") or ""),
            question_text=raw.get("question_text") or "",
            question_type=raw.get("question_type") or "text",
            options=tuple(raw.get("options") or ()),
            is_required=bool(raw.get("is_required", True)),
            scale_min=_stored_int(raw.get("scale_min"), 1),
            scale_max=_stored_int(raw.get("scale_max"), 5),
        )

    def to_stored(self) -> dict:
        return self.model_dump(mode="json")


# -------------------- periods -------------------- #

class ActivationPeriod(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: Optional[datetime] = None

    @field_validator("start", "end")
    @classmethod
    def normalize_utc(cls, v):
        return as_utc(v)

    @property
    def is_open(self) -> bool:
        return self.end is None

    def contains(self, moment: datetime) -> bool:
        """Closed periods are [start, end]; the open one is [start, +inf)."""
        moment = as_utc(moment)
        if moment < self.start:
            return False
        return self.end is None or moment <= self.end


# -------------------- faculty / subjects -------------------- #

class FacultyRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    designation: Optional[str] = None
    department: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return self.id == NOT_ASSIGNED_ID


NOT_ASSIGNED_ID = "not-assigned"
NOT_ASSIGNED = FacultyRef(id=NOT_ASSIGNED_ID, name="Not Assigned")


class SectionAssignment(BaseModel):
    model_config = ConfigDict(frozen=True)

    section_id: str
    faculty: Optional[FacultyRef] = None  # None when the faculty was deactivated


class SubjectRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    course_id: Optional[str] = None
    year: Optional[int] = None
    semester: Optional[int] = None
    is_lab: bool = False
    default_faculty: Optional[FacultyRef] = None
    section_faculty: Tuple[SectionAssignment, ...] = ()


# -------------------- forms -------------------- #

class _FormFields(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_active: bool = False
    questions: Tuple[QuestionDefinition, ...] = ()
    activation_periods: Tuple[ActivationPeriod, ...] = ()

    def find_period(self, start: datetime) -> Optional[ActivationPeriod]:
        start = as_utc(start)
        for p in self.activation_periods:
            if p.start == start:
                return p
        return None

    def active_period(self, now: Optional[datetime] = None) -> Optional[ActivationPeriod]:
        """Latest-starting period that contains ``now``."""
        now = as_utc(now or datetime.now(timezone.utc))
        candidates = [p for p in self.activation_periods if p.contains(now)]
        return max(candidates, key=lambda p: p.start) if candidates else None


class StandardForm(_FormFields):
    kind: Literal["standard"] = "standard"

    @property
    def is_global(self) -> bool:
        return False


class GlobalForm(_FormFields):
    kind: Literal["global"] = "global"
    training_name: str
    assigned_faculty: Tuple[FacultyRef, ...] = ()

    @property
    def is_global(self) -> bool:
        return True


FeedbackForm = Annotated[Union[StandardForm, GlobalForm], Field(discriminator="kind")]


# -------------------- responses -------------------- #

class StudentInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phone: Optional[str] = None
    roll_number: str


class SubjectResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject_id: str
    subject: Optional[SubjectRef] = None  # None when the subject no longer exists
    form_id: str
    questions: Tuple[QuestionSnapshot, ...] = ()
    answers: Tuple[Any, ...] = ()

    @property
    def subject_name(self) -> str:
        return self.subject.name if self.subject else "Unknown Subject"

    @property
    def has_length_mismatch(self) -> bool:
        return len(self.questions) != len(self.answers)

    def answer_for(self, question_id: str) -> Any:
        """Raw answer for a question id; positions past either list read as absent."""
        for idx, q in enumerate(self.questions):
            if q.question_id == question_id:
                return self.answers[idx] if idx < len(self.answers) else None
        return None


class ResponseRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    student: StudentInfo
    course_id: str
    course_name: Optional[str] = None
    year: int
    semester: int
    section_id: Optional[str] = None
    section_name: Optional[str] = None
    form_id: str
    period: ActivationPeriod
    created_at: datetime
    submitted_at: datetime
    subject_responses: Tuple[SubjectResponse, ...] = ()

    @field_validator("created_at", "submitted_at")
    @classmethod
    def normalize_utc(cls, v):
        return as_utc(v)

    @property
    def completion_time_ms(self) -> float:
        return max((self.submitted_at - self.created_at).total_seconds() * 1000.0, 0.0)


class AnalyticsFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    course_id: Optional[str] = None
    year: Optional[int] = None
    semester: Optional[int] = None
    section_id: Optional[str] = None
    subject_id: Optional[str] = None
    faculty_id: Optional[str] = None
    period: Optional[ActivationPeriod] = None
    student_name: Optional[str] = None
    roll_number: Optional[str] = None

    def with_period(self, period: Optional[ActivationPeriod]) -> "AnalyticsFilters":
        return self.model_copy(update={"period": period})
