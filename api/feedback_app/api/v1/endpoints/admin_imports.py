# api/feedback_app/api/v1/endpoints/admin_imports.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from feedback_app.db.session import get_db
from feedback_app.schemas.imports import FacultyImportIn, FacultyImportOut
from feedback_app.services.faculty_import import import_faculty

router = APIRouter(tags=["admin/imports"])


@router.post("/imports/faculty", response_model=FacultyImportOut)
def import_faculty_rows(
    payload: FacultyImportIn,
    dry_run: bool = Query(False, alias="dryRun", description="If true, validates and counts but writes nothing"),
    merge: bool = Query(False, description="Keep the other assignment variant instead of replacing it"),
    db: Session = Depends(get_db),
):
    return import_faculty(db, payload.rows, dry_run=dry_run, merge=merge)
