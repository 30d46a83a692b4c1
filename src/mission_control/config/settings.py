"""Application settings."""

from functools import lru_cache
import os
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "mission-control"
    host: str = "127.0.0.1"
    port: int = Field(default=3456, ge=1, le=65535)
    log_level: str = "INFO"
    # A non-empty URL selects PostgreSQL; otherwise the SQLite file is used.
    database_url: str = ""
    sqlite_path: Path = Path("data/mission-control.db")

    model_config = SettingsConfigDict(
        env_prefix="MISSION_CONTROL_",
        extra="ignore",
        env_file=(PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"),
        env_file_encoding="utf-8",
    )

    def resolved_database_url(self) -> str:
        return (self.database_url or os.getenv("DATABASE_URL", "")).strip()

    @property
    def backend(self) -> Literal["postgres", "sqlite"]:
        return "postgres" if self.resolved_database_url() else "sqlite"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
