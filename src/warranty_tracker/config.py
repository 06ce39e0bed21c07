"""Configuration via environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class AlertPreferences:
    """Which expiry reminders are generated for each product."""

    thirty_day: bool = True
    seven_day: bool = True
    day_of: bool = True


def get_database_url() -> str | None:
    """Return the DATABASE_URL from the environment, if set."""
    return os.environ.get("DATABASE_URL") or None


def get_data_path() -> Path:
    """Return the WARRANTY_DATA_PATH, defaulting to ./data.

    Always resolves to an absolute path to avoid issues if the
    working directory changes during execution.
    """
    return Path(os.environ.get("WARRANTY_DATA_PATH", "./data")).resolve()


def get_document_store_path() -> Path:
    """Return the directory where uploaded invoices are kept."""
    return get_data_path() / "invoices"


def get_alert_preferences() -> AlertPreferences:
    """Build reminder preferences from environment variables.

    Optional: WARRANTY_ALERT_30_DAY, WARRANTY_ALERT_7_DAY,
    WARRANTY_ALERT_DAY_OF (each defaults to true).
    """
    return AlertPreferences(
        thirty_day=_get_bool("WARRANTY_ALERT_30_DAY", default=True),
        seven_day=_get_bool("WARRANTY_ALERT_7_DAY", default=True),
        day_of=_get_bool("WARRANTY_ALERT_DAY_OF", default=True),
    )


def get_anthropic_api_key() -> str:
    """Return the ANTHROPIC_API_KEY from the environment."""
    key = os.environ.get("ANTHROPIC_API_KEY")
    if not key:
        msg = "ANTHROPIC_API_KEY environment variable is required"
        raise ValueError(msg)
    return key


def get_llm_model() -> str:
    """Return the LLM model identifier.

    Defaults to claude-haiku-4-5-20251001.
    """
    return os.environ.get("LLM_MODEL", "claude-haiku-4-5-20251001")


def _get_bool(name: str, *, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    msg = f"{name} must be a boolean (true/false), got {raw!r}"
    raise ValueError(msg)
