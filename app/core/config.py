from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

PRODUCTION_WEBHOOK_URL = "https://n8n.srv1048087.hstgr.cloud/webhook/recruit-ai"
DEV_PROXY_PATH = "/api/analyze"


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    app_env: str
    analyze_webhook_url: str | None
    dev_server_url: str
    analyze_timeout_s: float
    max_upload_bytes: int
    log_level: str
    sentry_dsn: str | None
    rate_limit: str
    rate_limit_enabled: bool
    cors_allowed_origins: tuple[str, ...]

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


def resolve_analysis_endpoint(config: Settings) -> str:
    """Pick the webhook URL: explicit setting, then dev proxy, then production."""
    explicit = (config.analyze_webhook_url or "").strip()
    if explicit:
        return explicit
    if config.is_development:
        return config.dev_server_url.rstrip("/") + DEV_PROXY_PATH
    return PRODUCTION_WEBHOOK_URL


def load_settings() -> Settings:
    return Settings(
        app_env=(_get_env("APP_ENV", "production") or "production").strip().lower(),
        analyze_webhook_url=_get_env("ANALYZE_WEBHOOK_URL"),
        dev_server_url=_get_env("DEV_SERVER_URL", "http://127.0.0.1:8000") or "http://127.0.0.1:8000",
        analyze_timeout_s=_get_env_float("ANALYZE_TIMEOUT_S", 120.0),
        max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024),
        log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
        sentry_dsn=_get_env("SENTRY_DSN"),
        rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
        rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
        cors_allowed_origins=_get_env_list(
            "CORS_ALLOWED_ORIGINS",
            [
                "http://localhost:5173",
                "http://127.0.0.1:5173",
                "http://localhost:3000",
            ],
        ),
    )


settings = load_settings()

if settings.app_env not in {"development", "production", "test"}:
    raise RuntimeError("APP_ENV must be one of 'development', 'production' or 'test'.")

# Resolved once at import; later environment changes do not move the endpoint.
ANALYSIS_ENDPOINT = resolve_analysis_endpoint(settings)
