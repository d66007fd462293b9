from functools import lru_cache
import json
from pathlib import Path
import re

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"
BACKEND_DIR = Path(__file__).resolve().parents[2]

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _split_list(value: str) -> list[str]:
    stripped = value.strip()
    if stripped.startswith("["):
        try:
            parsed = json.loads(stripped)
            if isinstance(parsed, list):
                return [str(item).strip() for item in parsed if str(item).strip()]
        except json.JSONDecodeError:
            pass
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8")

    project_name: str = "CourseGrid API"
    api_prefix: str = "/api"
    environment: str = "development"
    log_level: str | None = None

    database_url: str = "sqlite+pysqlite:///./coursegrid.db"

    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    bcrypt_rounds: int = 12

    max_request_size_bytes: int = 1_000_000
    security_enable_hsts: bool = False
    security_hsts_max_age_seconds: int = 31536000

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Weekly meeting grid. Times are naive local wall-clock HH:MM strings.
    grid_day_start: str = "08:00"
    grid_day_end: str = "20:00"
    grid_slot_minutes: int = 50
    grid_gap_minutes: int = 10
    grid_blocked_start: str = "11:50"
    grid_blocked_end: str = "13:00"
    grid_days: list[str] = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday"]
    grid_seed_on_startup: bool = True

    default_section_capacity: int = 30

    @field_validator("cors_origins", "grid_days", mode="before")
    @classmethod
    def split_list_values(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return _split_list(value)
        return value

    @field_validator("grid_day_start", "grid_day_end", "grid_blocked_start", "grid_blocked_end")
    @classmethod
    def validate_grid_time(cls, value: str) -> str:
        value = value.strip()
        if not HHMM_PATTERN.match(value):
            raise ValueError("Grid times must be in HH:MM 24-hour format")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
