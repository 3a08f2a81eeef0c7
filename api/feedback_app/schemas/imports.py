# api/feedback_app/schemas/imports.py
from typing import List, Optional
from pydantic import BaseModel, Field

from feedback_app.schemas.analytics import CamelModel


class RowError(BaseModel):
    row: int = Field(..., description="Row number (1-based, header excluded)")
    message: str


class ImportSummary(BaseModel):
    inserted: int = 0
    updated: int = 0
    skipped: int = 0


class FacultyImportRow(CamelModel):
    # all optional: per-row problems are reported as RowError, not 422
    name: Optional[str] = None
    phone_number: Optional[str] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    course_name: Optional[str] = None
    year: Optional[int] = None
    semester: Optional[int] = None
    subject_name: Optional[str] = None
    subject_code: Optional[str] = None
    section_name: Optional[str] = None  # empty -> default faculty of the subject
    is_lab: bool = False


class FacultyImportIn(CamelModel):
    rows: List[FacultyImportRow] = Field(..., min_length=1)


class FacultyImportOut(BaseModel):
    faculty: ImportSummary
    subjects: ImportSummary
    errors: List[RowError] = []
