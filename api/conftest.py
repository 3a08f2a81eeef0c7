# api/conftest.py
import os

# must be set before feedback_app.core.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from feedback_app.db.base import Base  # noqa: E402
from feedback_app.db.session import SessionLocal, engine  # noqa: E402


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    from feedback_app.main import app

    with TestClient(app) as c:
        yield c
