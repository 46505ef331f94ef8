from __future__ import annotations

import os
from functools import lru_cache
from zoneinfo import ZoneInfo

from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(".env") or ".env"
load_dotenv(_env_path, override=False)

DEFAULT_PISTON_URL = "https://emkc.org/api/v2/piston"
DEFAULT_JDOODLE_URL = "https://api.jdoodle.com/v1"


def _split_csv(raw: str) -> list[str]:
    return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]


class Settings:
    """Central configuration (env driven)."""

    def __init__(self) -> None:
        # Database
        self.database_url: str = os.getenv("DATABASE_URL", "sqlite:///./practicehub.db")
        # Remote execution
        self.execution_backend: str = os.getenv("EXECUTION_BACKEND", "piston").strip().lower()
        self.piston_api_url: str = os.getenv("PISTON_API_URL", DEFAULT_PISTON_URL).rstrip("/")
        self.jdoodle_api_url: str = os.getenv("JDOODLE_API_URL", DEFAULT_JDOODLE_URL).rstrip("/")
        self.jdoodle_client_id: str = os.getenv("JDOODLE_CLIENT_ID", "")
        self.jdoodle_client_secret: str = os.getenv("JDOODLE_CLIENT_SECRET", "")
        self.execution_timeout_s: float = float(os.getenv("EXECUTION_TIMEOUT_S", "10"))
        # Auth
        self.jwt_secret: str = os.getenv("JWT_SECRET", "change-me-in-production")
        self.jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
        self.access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(7 * 24 * 60)))
        # Progress
        self.reference_timezone: str = os.getenv("REFERENCE_TIMEZONE", "UTC")
        # App meta
        self.app_name: str = "PracticeHub Backend"
        self.debug: bool = os.getenv("DEBUG", "False").lower() == "true"
        self.allow_origins: list[str] = _split_csv(
            os.getenv("ALLOW_ORIGINS", "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173")
        )

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.reference_timezone)

    def get_database_url(self) -> str:
        return self.database_url


@lru_cache()
def get_settings() -> Settings:
    return Settings()
