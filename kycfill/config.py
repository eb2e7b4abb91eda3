"""Environment-driven configuration for kycfill."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Container for environment-driven settings."""

    openai_api_key: str | None = os.getenv("OPENAI_API_KEY")
    openai_base_url: str | None = os.getenv("OPENAI_BASE_URL")
    llm_model: str = os.getenv("KYCFILL_MODEL", "gpt-4o")
    llm_temperature: float = float(os.getenv("KYCFILL_TEMPERATURE", "0.0"))
    llm_timeout_seconds: float = float(os.getenv("KYCFILL_LLM_TIMEOUT", "30"))
    database_url: str | None = os.getenv("KYCFILL_DATABASE_URL")
    sqlite_path: str = os.getenv("KYCFILL_SQLITE_PATH", "./data/kycfill.db")
    dropdown_max_attempts: int = int(os.getenv("KYCFILL_DROPDOWN_MAX_ATTEMPTS", "5"))
    dropdown_settle_ms: int = int(os.getenv("KYCFILL_DROPDOWN_SETTLE_MS", "1000"))
    dropdown_backoff_ms: int = int(os.getenv("KYCFILL_DROPDOWN_BACKOFF_MS", "500"))
    fuzzy_threshold: float = float(os.getenv("KYCFILL_FUZZY_THRESHOLD", "0.95"))
    correct_phone_code: bool = _env_flag("KYCFILL_CORRECT_PHONE_CODE", default=True)
    browser_type: str = os.getenv("KYCFILL_BROWSER", "chromium")
    headless: bool = _env_flag("KYCFILL_HEADLESS", default=False)
    log_level: str = os.getenv("KYCFILL_LOG_LEVEL", "INFO")

    def resolved_database_url(self) -> str:
        """Return a SQLAlchemy-compatible database URL."""

        if self.database_url:
            return self.database_url

        sqlite_file = Path(self.sqlite_path)
        if not sqlite_file.is_absolute():
            sqlite_file = Path.cwd() / sqlite_file
        sqlite_file.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{sqlite_file.as_posix()}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
