from functools import lru_cache
import json
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"

DEFAULT_LEVEL_TERM_DAYS: dict[str, list[str]] = {
    "L1T1": ["Saturday", "Sunday", "Monday", "Tuesday"],
    "L1T2": ["Saturday", "Sunday", "Monday", "Tuesday"],
    "L1T3": ["Saturday", "Sunday", "Monday", "Tuesday"],
    "L2T1": ["Sunday", "Monday", "Tuesday", "Wednesday"],
    "L2T2": ["Sunday", "Monday", "Tuesday", "Wednesday"],
    "L2T3": ["Sunday", "Monday", "Tuesday", "Wednesday"],
    "L3T1": ["Monday", "Tuesday", "Wednesday", "Thursday"],
    "L3T2": ["Monday", "Tuesday", "Wednesday", "Thursday"],
    "L3T3": ["Monday", "Tuesday", "Wednesday", "Thursday"],
    "L4T1": ["Sunday", "Monday", "Tuesday", "Wednesday"],
    "L4T2": ["Sunday", "Monday", "Tuesday", "Wednesday"],
    "L4T3": ["Sunday", "Monday", "Tuesday", "Wednesday"],
}


class Settings(BaseSettings):
    # Resolve to backend/.env so `uvicorn --app-dir backend` works from any cwd.
    model_config = SettingsConfigDict(env_file=str(BACKEND_ENV_FILE), env_file_encoding="utf-8")

    project_name: str = "Class Routine API"
    api_prefix: str = "/api"

    database_url: str = "sqlite+pysqlite:///./routine.db"

    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    log_level: str = "INFO"

    max_request_size_bytes: int = 2_500_000
    security_enable_hsts: bool = False
    security_hsts_max_age_seconds: int = 31536000

    # Unset means every auto-assign run shuffles with fresh entropy.
    auto_assign_seed: int | None = None
    level_term_day_constraints: dict[str, list[str]] = DEFAULT_LEVEL_TERM_DAYS

    schedule_log_page_max: int = 500

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.startswith("["):
                try:
                    parsed = json.loads(stripped)
                    if isinstance(parsed, list):
                        return [str(item).strip() for item in parsed if str(item).strip()]
                except json.JSONDecodeError:
                    pass
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("level_term_day_constraints", mode="before")
    @classmethod
    def parse_level_term_days(cls, value: str | dict) -> dict:
        if isinstance(value, str):
            parsed = json.loads(value)
            if not isinstance(parsed, dict):
                raise ValueError("level_term_day_constraints must be a JSON object")
            return parsed
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
