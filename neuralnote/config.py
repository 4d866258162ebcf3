# config.py
import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from neuralnote.errors import ConfigurationError

# Load local .env (in hosted deploys env vars are injected automatically)
load_dotenv()

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "meta-llama/llama-3.1-8b-instruct:free"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the journaling service."""

    database_url: str = "sqlite:///neuralnote.db"
    frontend_origin: str | None = None

    # --- Enrichment (optional external text model) ---
    ai_provider: str = "local"
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    api_url: str = OPENROUTER_URL
    timeout_seconds: float = 10.0
    public_app_url: str = ""

    # --- Dashboard ---
    timezone: str = "UTC"
    window_days: int = 30
    recent_limit: int = 5

    log_level: str = "INFO"
    log_format: str = "text"
    allow_init_db: bool = False

    @property
    def enrichment_enabled(self) -> bool:
        return self.ai_provider != "local" and bool(self.api_key)

    @property
    def tzinfo(self) -> ZoneInfo:
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigurationError(f"Unknown timezone: {self.timezone!r}") from exc


def _int_env(name, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def _float_env(name, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def load_settings() -> Settings:
    """Build Settings from the process environment."""
    settings = Settings(
        database_url=os.getenv("DATABASE_URL") or "sqlite:///neuralnote.db",
        frontend_origin=os.getenv("FRONTEND_ORIGIN") or None,
        ai_provider=os.getenv("AI_PROVIDER", "local").strip().lower() or "local",
        api_key=os.getenv("OPENROUTER_API_KEY") or None,
        model=os.getenv("OPENROUTER_MODEL", DEFAULT_MODEL),
        api_url=os.getenv("AI_API_URL", OPENROUTER_URL),
        timeout_seconds=_float_env("AI_TIMEOUT_SECONDS", 10.0),
        public_app_url=os.getenv("PUBLIC_APP_URL", ""),
        timezone=os.getenv("APP_TIMEZONE", "UTC"),
        window_days=_int_env("DASHBOARD_WINDOW_DAYS", 30),
        recent_limit=_int_env("DASHBOARD_RECENT_LIMIT", 5),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_format=os.getenv("LOG_FORMAT", "text").lower(),
        allow_init_db=os.getenv("ALLOW_INIT_DB") == "1",
    )
    # Fail at startup rather than on the first dashboard request
    settings.tzinfo
    return settings
