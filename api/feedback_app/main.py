# api/feedback_app/main.py
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feedback_app.core.config import settings
from feedback_app.core.logging_config import setup_logging
from feedback_app.api.v1.endpoints import (
    health, responses, analytics, exports, student, admin_forms, admin_imports,
)

API_V1_PREFIX = "/api/v1"

logger = setup_logging()

app = FastAPI(
    title=settings.APP_NAME,
    description="Student feedback collection and faculty-wise analytics",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Versioned routers (analytics/exports before the /responses/{id} routes)
app.include_router(health.router,    prefix=API_V1_PREFIX)
app.include_router(analytics.router, prefix=API_V1_PREFIX)
app.include_router(exports.router,   prefix=API_V1_PREFIX)
app.include_router(responses.router, prefix=API_V1_PREFIX)
app.include_router(student.router,   prefix=API_V1_PREFIX)

# Admin
app.include_router(admin_forms.router,   prefix=f"{API_V1_PREFIX}/admin")
app.include_router(admin_imports.router, prefix=f"{API_V1_PREFIX}/admin")


@app.get("/")
def root():
    return {
        "message": settings.APP_NAME,
        "version": "1.0.0",
        "docs": "/docs",
        "api_v1": API_V1_PREFIX,
    }

logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)
