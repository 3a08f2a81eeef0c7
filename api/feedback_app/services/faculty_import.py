# api/feedback_app/services/faculty_import.py
"""
Bulk faculty/subject import.

Faculty are matched by phone number first, then by (name, department).
Subjects are scoped to (course, year, semester, subjectName). A row with a
section name assigns a per-section faculty, otherwise the subject's default
faculty; the other variant is cleared unless ``merge`` is set.
"""
from __future__ import annotations

import logging
import re
from typing import List, Optional, Set, Tuple

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from feedback_app.models.course import Course, CourseSection, CourseTerm
from feedback_app.models.faculty import Faculty
from feedback_app.models.subject import Subject, SubjectSectionFaculty
from feedback_app.schemas.imports import FacultyImportOut, FacultyImportRow, ImportSummary, RowError

logger = logging.getLogger(__name__)


def _norm(s: Optional[str]) -> str:
    return (s or "").strip()


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    digits = re.sub(r"[^\d+]", "", _norm(phone))
    return digits or None


def _validate(row: FacultyImportRow) -> Optional[str]:
    if not _norm(row.name):
        return "name is empty"
    if _norm(row.subject_name):
        if not _norm(row.course_name):
            return "courseName is required when subjectName is given"
        if row.year is None or not 1 <= row.year <= 4:
            return f"invalid year: {row.year!r}"
        if row.semester is None or not 1 <= row.semester <= 2:
            return f"invalid semester: {row.semester!r}"
    elif _norm(row.section_name):
        return "sectionName given without subjectName"
    return None


# -------------------- lookups -------------------- #

def match_faculty(db: Session, phone: Optional[str], name: str, department: Optional[str]) -> Optional[Faculty]:
    if phone:
        f = db.query(Faculty).filter(Faculty.phone_number == phone).first()
        if f:
            return f
    q = db.query(Faculty).filter(func.lower(Faculty.name) == name.lower())
    if department:
        q = q.filter(func.lower(Faculty.department) == department.lower())
    else:
        q = q.filter(Faculty.department.is_(None))
    return q.first()


def _course_by_name(db: Session, name: str) -> Optional[Course]:
    return db.query(Course).filter(func.lower(Course.course_name) == name.lower()).first()


def _get_or_create_term(db: Session, course: Course, year: int, semester: int) -> CourseTerm:
    term = (
        db.query(CourseTerm)
        .filter(CourseTerm.course_id == course.id, CourseTerm.year == year, CourseTerm.semester == semester)
        .first()
    )
    if term is None:
        term = CourseTerm(course_id=course.id, year=year, semester=semester)
        db.add(term)
        db.flush()
    return term


def _get_or_create_section(db: Session, term: CourseTerm, name: str) -> CourseSection:
    section = (
        db.query(CourseSection)
        .filter(CourseSection.term_id == term.id, func.lower(CourseSection.section_name) == name.lower())
        .first()
    )
    if section is None:
        section = CourseSection(term_id=term.id, section_name=name)
        db.add(section)
        db.flush()
    return section


def _get_or_create_subject(db: Session, course: Course, row: FacultyImportRow) -> Tuple[Subject, bool]:
    name = _norm(row.subject_name)
    subject = (
        db.query(Subject)
        .filter(
            Subject.course_id == course.id,
            Subject.year == row.year,
            Subject.semester == row.semester,
            func.lower(Subject.subject_name) == name.lower(),
        )
        .first()
    )
    created = subject is None
    if created:
        subject = Subject(course_id=course.id, year=row.year, semester=row.semester, subject_name=name)
        db.add(subject)
    if _norm(row.subject_code):
        subject.subject_code = _norm(row.subject_code).upper()
    subject.is_lab = bool(row.is_lab)
    subject.is_active = True
    db.flush()
    return subject, created


def _assign(db: Session, subject: Subject, faculty: Faculty, section: Optional[CourseSection], merge: bool) -> None:
    if section is None:
        subject.faculty_id = faculty.id
        if not merge:
            for a in list(subject.section_assignments):
                subject.section_assignments.remove(a)
    else:
        existing = next((a for a in subject.section_assignments if a.section_id == section.id), None)
        if existing is None:
            subject.section_assignments.append(
                SubjectSectionFaculty(section_id=section.id, faculty_id=faculty.id)
            )
        else:
            existing.faculty_id = faculty.id
        if not merge:
            subject.faculty_id = None
    db.flush()


# -------------------- import -------------------- #

def import_faculty(
    db: Session,
    rows: List[FacultyImportRow],
    dry_run: bool = False,
    merge: bool = False,
) -> FacultyImportOut:
    """
    With ``dry_run`` every change is flushed (so later rows see earlier ones)
    and then rolled back; the summary is the same as a real run.
    """
    errors: List[RowError] = []
    faculty_inserted: Set = set()
    faculty_updated: Set = set()
    subject_inserted: Set = set()
    subject_updated: Set = set()

    try:
        for idx, row in enumerate(rows, start=1):
            problem = _validate(row)
            if problem:
                errors.append(RowError(row=idx, message=problem))
                continue

            course = None
            if _norm(row.subject_name):
                course = _course_by_name(db, _norm(row.course_name))
                if course is None:
                    errors.append(RowError(row=idx, message=f"course not found: {_norm(row.course_name)!r}"))
                    continue

            # 1) faculty
            name = _norm(row.name)
            department = _norm(row.department) or None
            phone = normalize_phone(row.phone_number)
            faculty = match_faculty(db, phone, name, department)
            if faculty is None:
                faculty = Faculty(name=name, phone_number=phone, department=department,
                                  designation=_norm(row.designation) or None)
                db.add(faculty)
                db.flush()
                faculty_inserted.add(faculty.id)
            else:
                if phone and faculty.phone_number != phone:
                    clash = db.query(Faculty).filter(Faculty.phone_number == phone, Faculty.id != faculty.id).first()
                    if clash:
                        errors.append(RowError(row=idx, message=f"phone {phone} already belongs to {clash.name}"))
                        continue
                    faculty.phone_number = phone
                faculty.name = name
                if department:
                    faculty.department = department
                if _norm(row.designation):
                    faculty.designation = _norm(row.designation)
                faculty.is_active = True
                db.flush()
                if faculty.id not in faculty_inserted:
                    faculty_updated.add(faculty.id)

            if course is None:
                continue

            # 2) subject + assignment
            term = _get_or_create_term(db, course, row.year, row.semester)
            section = _get_or_create_section(db, term, _norm(row.section_name)) if _norm(row.section_name) else None
            subject, created = _get_or_create_subject(db, course, row)
            if created:
                subject_inserted.add(subject.id)
            elif subject.id not in subject_inserted:
                subject_updated.add(subject.id)
            _assign(db, subject, faculty, section, merge)

        if dry_run:
            db.rollback()
        else:
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("faculty import failed")
        raise HTTPException(status_code=500, detail=f"Database error while importing: {e}") from e

    for err in errors:
        logger.warning("import row %d skipped: %s", err.row, err.message)
    logger.info(
        "faculty import%s: faculty +%d/~%d subjects +%d/~%d skipped=%d",
        " (dry run)" if dry_run else "",
        len(faculty_inserted), len(faculty_updated),
        len(subject_inserted), len(subject_updated), len(errors),
    )
    return FacultyImportOut(
        faculty=ImportSummary(inserted=len(faculty_inserted), updated=len(faculty_updated), skipped=len(errors)),
        subjects=ImportSummary(inserted=len(subject_inserted), updated=len(subject_updated), skipped=len(errors)),
        errors=errors,
    )
