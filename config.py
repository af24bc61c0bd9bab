"""
Settings

Environment-driven configuration. Values are read once per process from the
environment (and a local .env file when present).
"""
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() not in {"0", "false", "no", ""}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Settings(BaseModel):
    database_url: Optional[str] = Field(default_factory=lambda: os.getenv("DATABASE_URL"))
    database_name: Optional[str] = Field(default_factory=lambda: os.getenv("DATABASE_NAME"))

    jwt_secret: str = Field(default_factory=lambda: os.getenv("JWT_SECRET", "dev-secret-change-me"))
    jwt_alg: str = Field(default_factory=lambda: os.getenv("JWT_ALG", "HS256"))
    # default 24h
    jwt_expire_minutes: int = Field(default_factory=lambda: _env_int("JWT_EXPIRE_MIN", 1440))

    enable_seed: bool = Field(default_factory=lambda: _env_flag("ENABLE_SEED"))
    admin_email: str = Field(default_factory=lambda: os.getenv("ADMIN_EMAIL", "admin@opeva.com"))
    admin_password: str = Field(default_factory=lambda: os.getenv("ADMIN_PASSWORD", "admin123"))

    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    port: int = Field(default_factory=lambda: _env_int("PORT", 8000))


@lru_cache
def get_settings() -> Settings:
    return Settings()
