"""
Runtime configuration, read once from the environment at startup and passed
to every collaborator explicitly.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from agent_analytics.errors import ConfigError

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash-preview-04-17"
DEFAULT_DUNE_API_BASE = "https://api.dune.com/api/v1"
DEFAULT_TIMEZONE = "Asia/Singapore"
DEFAULT_METRICS_PATH = Path(__file__).resolve().parent / "metrics.yaml"

REQUIRED_VARIABLES = ("DUNE_API_KEY", "GEMINI_API_KEY", "SLACK_WEBHOOK_URL")


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


def _as_number(env: Mapping[str, str], name: str, default: str, cast):
    raw = env.get(name) or default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got '{raw}'")


@dataclass(frozen=True)
class Settings:
    dune_api_key: str
    gemini_api_key: str
    slack_webhook_url: str
    gemini_model: str = DEFAULT_GEMINI_MODEL
    temperature: float = 0.1
    max_output_tokens: int = 1000
    dune_api_base: str = DEFAULT_DUNE_API_BASE
    http_timeout: float = 30.0
    cron_schedule: Optional[str] = None
    timezone: str = DEFAULT_TIMEZONE
    debug_logs: bool = False
    metrics_path: Path = DEFAULT_METRICS_PATH

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Builds settings from environment variables.

        Raises ConfigError naming every missing credential.
        """
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_VARIABLES if not (env.get(name) or "").strip()]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        cron_schedule = (env.get("CRON_SCHEDULE") or "").strip() or None
        metrics_path = env.get("METRICS_CONFIG")
        timezone = env.get("TZ") or DEFAULT_TIMEZONE
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigError(f"TZ is not a known timezone: '{timezone}'")

        return cls(
            dune_api_key=env["DUNE_API_KEY"].strip(),
            gemini_api_key=env["GEMINI_API_KEY"].strip(),
            slack_webhook_url=env["SLACK_WEBHOOK_URL"].strip(),
            gemini_model=env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            temperature=_as_number(env, "LLM_TEMPERATURE", "0.1", float),
            max_output_tokens=_as_number(env, "LLM_MAX_TOKENS", "1000", int),
            dune_api_base=(env.get("DUNE_API_BASE") or DEFAULT_DUNE_API_BASE).rstrip("/"),
            http_timeout=_as_number(env, "HTTP_TIMEOUT_SECONDS", "30", float),
            cron_schedule=cron_schedule,
            timezone=timezone,
            debug_logs=_as_bool(env.get("DEBUG_LOGS")),
            metrics_path=Path(metrics_path) if metrics_path else DEFAULT_METRICS_PATH,
        )
