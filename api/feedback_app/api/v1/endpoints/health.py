# api/feedback_app/api/v1/endpoints/health.py
from fastapi import APIRouter, HTTPException

from feedback_app.db.session import check_db_connection

router = APIRouter(tags=["health"])

@router.get("/healthz")
def healthz():
    return {"status": "ok"}

@router.get("/health/db")
def health_db():
    if not check_db_connection():
        raise HTTPException(503, "Database unavailable")
    return {"db": "ok"}
