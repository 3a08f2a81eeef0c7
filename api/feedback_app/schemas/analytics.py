# api/feedback_app/schemas/analytics.py
from datetime import datetime
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -------------------- per question -------------------- #

class WordCount(CamelModel):
    word: str
    count: int


class ResponseGroupOut(CamelModel):
    representative: str
    count: int


class ChoiceOption(CamelModel):
    text: str
    count: int
    percentage: float


class _QuestionAnalyticsBase(CamelModel):
    question_id: str
    question_text: str
    total_responses: int = 0
    response_rate: float = 0.0


class ScaleAnalytics(_QuestionAnalyticsBase):
    question_type: Literal["scale"] = "scale"
    scale_min: int = 1
    scale_max: int = 5
    min: int = 0
    max: int = 0
    average: float = 0.0
    distribution: Dict[int, int] = Field(default_factory=dict)
    rating_label: str = "N/A"


class YesNoAnalytics(_QuestionAnalyticsBase):
    question_type: Literal["yesno"] = "yesno"
    yes_count: int = 0
    no_count: int = 0
    yes_percentage: float = 0.0
    no_percentage: float = 0.0


class MultipleChoiceAnalytics(_QuestionAnalyticsBase):
    question_type: Literal["multiplechoice"] = "multiplechoice"
    choice_counts: Dict[str, int] = Field(default_factory=dict)
    options: List[ChoiceOption] = Field(default_factory=list)
    top_choice: Optional[str] = None


class TextAnalytics(_QuestionAnalyticsBase):
    question_type: Literal["text", "textarea"] = "text"
    frequent_words: List[WordCount] = Field(default_factory=list)
    sample_responses: List[str] = Field(default_factory=list)
    response_groups: List[ResponseGroupOut] = Field(default_factory=list)
    average_length: float = 0.0


# tagged by the questionType literal of each member
QuestionAnalytics = Union[ScaleAnalytics, YesNoAnalytics, MultipleChoiceAnalytics, TextAnalytics]


# -------------------- builder output -------------------- #

class FacultyOut(CamelModel):
    id: str
    name: str
    designation: Optional[str] = None
    department: Optional[str] = None


class FacultyAnalyticsOut(CamelModel):
    faculty: FacultyOut
    subjects: List[str] = Field(default_factory=list)
    response_count: int = 0
    question_analytics: List[QuestionAnalytics] = Field(default_factory=list)


class FormSummaryOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    total_questions: int
    is_global: bool
    training_name: Optional[str] = None
    assigned_faculty: List[FacultyOut] = Field(default_factory=list)


class FormStatsOut(CamelModel):
    total_responses: int = 0
    unique_students: int = 0
    subjects: int = 0
    courses: int = 0
    average_completion_time_ms: float = 0.0


class AnalyticsOut(CamelModel):
    form: FormSummaryOut
    form_stats: FormStatsOut
    question_analytics: List[QuestionAnalytics] = Field(default_factory=list)
    faculty_analytics: List[FacultyAnalyticsOut] = Field(default_factory=list)


# -------------------- period comparison -------------------- #

class PeriodOut(CamelModel):
    start: datetime
    end: Optional[datetime] = None
    is_open: bool


class PeriodResultOut(CamelModel):
    period: PeriodOut
    has_data: bool
    analytics: AnalyticsOut


class FacultyPeriodCell(CamelModel):
    period_start: datetime
    has_data: bool
    subjects: List[str] = Field(default_factory=list)
    response_count: int = 0
    question_analytics: Optional[List[QuestionAnalytics]] = None  # None = no data for that period


class FacultyComparisonRow(CamelModel):
    faculty: FacultyOut
    periods: List[FacultyPeriodCell] = Field(default_factory=list)


class ComparisonOut(CamelModel):
    form: FormSummaryOut
    periods: List[PeriodResultOut] = Field(default_factory=list)
    faculty_comparison: List[FacultyComparisonRow] = Field(default_factory=list)
