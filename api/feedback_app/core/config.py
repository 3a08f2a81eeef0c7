# api/feedback_app/core/config.py
from __future__ import annotations
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict

API_DIR = Path(__file__).resolve().parents[2]  # .../api
ENV_FILE = API_DIR / ".env"

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # App
    APP_NAME: str = "Student Feedback Analytics API"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # CORS (comma separated, e.g. CORS_ORIGINS=https://feedback.example.edu)
    CORS_ORIGINS: str = ""

    # DB URLs (either one is accepted)
    DATABASE_URL: str | None = None
    SQLALCHEMY_DATABASE_URI: str | None = None

    # Analytics tunables
    TEXT_SIMILARITY_THRESHOLD: int = 80
    FREQUENT_WORDS_LIMIT: int = 5
    TOP_RESPONSE_GROUPS: int = 5
    SAMPLE_RESPONSES_LIMIT: int = 5

    # Exports
    EXPORT_CHUNK_SIZE: int = 500
    EXPORT_TIMEZONE: str = "UTC"

    # Raw listing
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    @property
    def cors_list(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def db_url(self) -> str:
        """
        Unified SQLAlchemy URL. Accepts DATABASE_URL or SQLALCHEMY_DATABASE_URI
        and forces sslmode=require for Supabase hosts.
        """
        url = (self.DATABASE_URL or self.SQLALCHEMY_DATABASE_URI or "").strip()
        if not url:
            raise ValueError("Set DATABASE_URL or SQLALCHEMY_DATABASE_URI in the environment.")
        if ("supabase.co" in url or "supabase.com" in url) and "sslmode=" not in url:
            sep = "&" if "?" in url else "?"
            url = f"{url}{sep}sslmode=require"
        return url

@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
