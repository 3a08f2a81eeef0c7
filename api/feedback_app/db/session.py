# api/feedback_app/db/session.py
import logging
import re

from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from feedback_app.core.config import settings

logger = logging.getLogger(__name__)


def _mask(u: str) -> str:
    """Hide the password part of a DB URL for logging."""
    return re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", u)


db_url = settings.db_url
logger.info("[DB] Using: %s", _mask(db_url))

if db_url.startswith("sqlite"):
    # Local/test runs: one shared in-memory connection across threads
    engine = create_engine(
        db_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def _sqlite_fk_on(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()
else:
    engine = create_engine(
        db_url,
        pool_size=5,              # concurrent connections
        max_overflow=10,          # up to 15 on peaks
        pool_timeout=30,
        pool_recycle=1800,        # recycle every 30 min
        pool_pre_ping=True,
        echo=False,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_connection() -> bool:
    try:
        with engine.connect() as conn:
            row = conn.execute(text("SELECT 1")).fetchone()
            if row and row[0] == 1:
                logger.info("[DB] connection ok")
                return True
            return False
    except SQLAlchemyError as e:
        logger.error("[DB] connection failed: %s", e)
        return False
