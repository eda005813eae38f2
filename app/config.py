"""
Application configuration using pydantic-settings.

Values come from environment variables, with a project-level .env file as
fallback for local development.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

# Real environment variables win over .env entries
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    """EduQuote settings."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "EduQuote API"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Database (async driver, e.g. postgresql+asyncpg://...)
    database_url: str

    # Quotes
    quote_number_prefix: str = "TPQ"

    # Sender block printed on quote documents
    agency_name: str = "My Abroad Ally"
    agency_email: str = ""
    agency_phone: str = ""
    agency_address: str = ""

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Accept a JSON list or a comma-separated string."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("database_url")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        # Hosting providers hand out plain postgres:// URLs
        if v.startswith("postgres://"):
            v = "postgresql://" + v[len("postgres://"):]
        if v.startswith("postgresql://"):
            v = v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @field_validator("quote_number_prefix")
    @classmethod
    def clean_prefix(cls, v: str) -> str:
        return v.strip().upper() or "TPQ"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
