"""
Runtime configuration helpers for the socialgram service.

Loads the managed backend URL, its anon key and the local session store
settings from the environment or the ``.env`` file in the project root.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root
BASE_DIR = Path(__file__).resolve().parents[1]

# Absolute path to .env
ENV_PATH = BASE_DIR / ".env"

# Load .env defaults without overriding environment variables provided by the platform
load_dotenv(dotenv_path=ENV_PATH, override=False)


class Settings(BaseSettings):
    # Required fields
    supabase_url: str = Field(..., alias="SUPABASE_URL")
    supabase_anon_key: str = Field(..., alias="SUPABASE_ANON_KEY")

    # Optional fields
    app_name: str = Field(default="socialgram", alias="APP_NAME")
    api_version: str = Field(default="0.1.0", alias="API_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    site_url: str = Field(default="http://localhost:8081", alias="SITE_URL")
    client_info: str = Field(default="socialgram-python", alias="CLIENT_INFO")
    request_timeout: float = Field(default=10.0, alias="REQUEST_TIMEOUT")

    # Persisted auth state
    session_database_url: str = Field(
        default=f"sqlite+pysqlite:///{BASE_DIR / 'socialgram_sessions.db'}",
        alias="SESSION_DATABASE_URL",
    )
    session_cookie_name: str = Field(default="socialgram_session", alias="SESSION_COOKIE_NAME")
    session_refresh_leeway_seconds: int = Field(default=60, alias="SESSION_REFRESH_LEEWAY_SECONDS")

    # Transient failure handling
    retry_max_attempts: int = Field(default=3, alias="RETRY_MAX_ATTEMPTS")
    retry_delay_seconds: float = Field(default=1.0, alias="RETRY_DELAY_SECONDS")

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
