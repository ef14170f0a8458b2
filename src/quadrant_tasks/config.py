# src/quadrant_tasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (API keys are only needed by /report and /import).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "QTASKS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv() -> None:
    """Load a local .env (never overrides variables already set)."""
    load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    # ---- Report generation (OpenAI-compatible) ----
    openai_api_key: Optional[str]
    openai_base_url: str
    report_model: str
    report_temperature: float

    # ---- GitLab import ----
    gitlab_token: Optional[str]
    gitlab_url: str
    gitlab_project_id: str

    # ---- HTTP ----
    http_timeout_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "quadrant-tasks")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/quadrant_tasks"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        openai_api_key = _first_env(_k("OPENAI_API_KEY"), "OPENAI_API_KEY", default=None)
        openai_base_url = _env(_k("OPENAI_BASE_URL"), "https://api.openai.com/v1")
        report_model = _env(_k("REPORT_MODEL"), "gpt-3.5-turbo").strip() or "gpt-3.5-turbo"
        report_temperature = _env_float(_k("REPORT_TEMPERATURE"), 0.7)

        gitlab_token = _first_env(_k("GITLAB_TOKEN"), "GITLAB_TOKEN", default=None)
        gitlab_url = (_env(_k("GITLAB_URL"), "https://gitlab.com") or "").strip()
        gitlab_project_id = _env(_k("GITLAB_PROJECT_ID"), "").strip()

        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 30.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            openai_api_key=openai_api_key,
            openai_base_url=openai_base_url,
            report_model=report_model,
            report_temperature=report_temperature,
            gitlab_token=gitlab_token,
            gitlab_url=gitlab_url,
            gitlab_project_id=gitlab_project_id,
            http_timeout_seconds=http_timeout_seconds,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Load settings once (reading .env first) and cache them."""
    global _SETTINGS
    if _SETTINGS is None:
        _load_dotenv()
        _SETTINGS = Settings.from_env()
    return _SETTINGS
