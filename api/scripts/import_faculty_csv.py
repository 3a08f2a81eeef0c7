#!/usr/bin/env python3
# api/scripts/import_faculty_csv.py
"""
Bulk faculty/subject import from a CSV file.

Run from api/:
    python -m scripts.import_faculty_csv faculty.csv [--dry-run] [--merge]

A bare file name is looked up in DATA_DIR. Accepted headers are either the
JSON field names (name, phoneNumber, courseName, ...) or the spreadsheet ones
(Name, Phone Number, Course, Year, Semester, Subject, Section, ...).
"""
import csv
import os
import sys
from typing import IO, List, Optional

from fastapi import HTTPException

from feedback_app.db.session import SessionLocal
from feedback_app.schemas.imports import FacultyImportRow
from feedback_app.services.faculty_import import import_faculty

DATA_DIR = os.getenv("DATA_DIR", os.path.join(os.path.dirname(__file__), "..", "..", "data"))

HEADER_ALIASES = {
    "name": "name", "faculty": "name", "faculty name": "name",
    "phone": "phone_number", "phone number": "phone_number", "phonenumber": "phone_number",
    "designation": "designation",
    "department": "department",
    "course": "course_name", "course name": "course_name", "coursename": "course_name",
    "year": "year",
    "semester": "semester",
    "subject": "subject_name", "subject name": "subject_name", "subjectname": "subject_name",
    "subject code": "subject_code", "subjectcode": "subject_code",
    "section": "section_name", "section name": "section_name", "sectionname": "section_name",
    "lab": "is_lab", "is lab": "is_lab", "islab": "is_lab",
}
TRUE_VALUES = {"1", "yes", "y", "true"}


def _int_or_none(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_row(raw: dict) -> FacultyImportRow:
    data = {}
    for header, value in raw.items():
        field = HEADER_ALIASES.get((header or "").strip().lower())
        if field is None or value is None:
            continue
        data[field] = value.strip()
    # bad numbers stay None and come back as row errors
    for field in ("year", "semester"):
        if field in data:
            data[field] = _int_or_none(data[field])
    data["is_lab"] = data.get("is_lab", "").lower() in TRUE_VALUES
    return FacultyImportRow(**data)


def read_rows(f: IO[str]) -> List[FacultyImportRow]:
    return [parse_row(r) for r in csv.DictReader(f)]


def _resolve(path: str) -> str:
    if os.path.exists(path):
        return path
    return os.path.join(DATA_DIR, path)


def main(argv: List[str]) -> int:
    args = [a for a in argv if not a.startswith("--")]
    if not args:
        print("usage: python -m scripts.import_faculty_csv <file.csv> [--dry-run] [--merge]")
        return 2
    dry_run = "--dry-run" in argv
    merge = "--merge" in argv

    path = _resolve(args[0])
    if not os.path.exists(path):
        print(f"[WARN] Not found: {path}")
        return 1
    with open(path, newline="", encoding="utf-8-sig") as f:
        rows = read_rows(f)
    print(f"[INFO] {len(rows)} rows read from {path}")

    db = SessionLocal()
    try:
        result = import_faculty(db, rows, dry_run=dry_run, merge=merge)
    except HTTPException as e:
        print(f"[ERROR] {e.detail}")
        return 1
    finally:
        db.close()

    print(f"[INFO] faculty  {result.faculty.model_dump()}")
    print(f"[INFO] subjects {result.subjects.model_dump()}")
    for err in result.errors:
        print(f"[WARN] row {err.row}: {err.message}")
    if dry_run:
        print("[INFO] dry run, nothing written")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
