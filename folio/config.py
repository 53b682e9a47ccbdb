"""
Folio — Centralized configuration.

Loads all settings from .env and validates required keys.
Every other module reads its configuration from the `settings` singleton.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

# Load .env from project root (one level up from folio/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_ENV_PATH)

KNOWN_DIRECTORIES = ("owner", "remote", "local")


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Remote REST backend
    API_URL: str = "http://localhost:5000/api"
    HTTP_TIMEOUT_SECONDS: float = 5.0

    # Persisted key-value storage (SQLite file)
    STORAGE_PATH: str = "data/folio.db"

    # Owner identity, the only source of the owner role
    OWNER_EMAIL: str = "owner@example.com"
    OWNER_PASSWORD: str
    OWNER_NAME: str = "Portfolio Owner"
    OWNER_BIO: str = "Frontend Developer & Portfolio Owner"

    # Activity log
    ACTIVITY_LIMIT: int = 50

    # Priority-ordered account directories: "owner" | "remote" | "local"
    DIRECTORY_CHAIN: list[str] = list(KNOWN_DIRECTORIES)

    LOG_LEVEL: str = "INFO"

    @field_validator("DIRECTORY_CHAIN", mode="before")
    @classmethod
    def parse_chain(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, list):
            return v
        if isinstance(v, str) and v.strip():
            return [name.strip().lower() for name in v.split(",") if name.strip()]
        return list(KNOWN_DIRECTORIES)

    @field_validator("ACTIVITY_LIMIT", mode="before")
    @classmethod
    def parse_limit(cls, v: str | int) -> int:
        limit = int(v)
        if limit < 1:
            raise ValueError("ACTIVITY_LIMIT must be at least 1")
        return limit

    @field_validator("API_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


def _load_settings() -> Settings:
    """Load settings from environment, validating required keys."""
    owner_password = os.getenv("OWNER_PASSWORD", "")

    if not owner_password or owner_password.startswith("your-"):
        print("ERROR: OWNER_PASSWORD is missing or not set in .env", file=sys.stderr)
        sys.exit(1)

    return Settings(
        API_URL=os.getenv("API_URL", "http://localhost:5000/api"),
        HTTP_TIMEOUT_SECONDS=os.getenv("HTTP_TIMEOUT_SECONDS", "5"),
        STORAGE_PATH=os.getenv("STORAGE_PATH", "data/folio.db"),
        OWNER_EMAIL=os.getenv("OWNER_EMAIL", "owner@example.com"),
        OWNER_PASSWORD=owner_password,
        OWNER_NAME=os.getenv("OWNER_NAME", "Portfolio Owner"),
        OWNER_BIO=os.getenv("OWNER_BIO", "Frontend Developer & Portfolio Owner"),
        ACTIVITY_LIMIT=os.getenv("ACTIVITY_LIMIT", "50"),
        DIRECTORY_CHAIN=os.getenv("DIRECTORY_CHAIN", ""),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
    )


# Singleton — imported by all other modules as:
#   from folio.config import settings
settings = _load_settings()
