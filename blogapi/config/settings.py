"""Environment-backed application settings with strict validation."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS = (
    "DATABASE_URL",
    "MAX_LOGIN_ATTEMPTS",
    "LOCK_TIME_MINUTES",
    "VERIFICATION_CODE_EXPIRY",
    "ACCESS_TOKEN_EXPIRY",
    "REFRESH_TOKEN_EXPIRY",
    "JWT_SECRET",
    "REFRESH_SECRET",
)

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str) -> int:
    """Convert ``15m`` / ``12h`` / ``7d`` / ``900`` style durations to seconds."""
    match = _DURATION_RE.match(str(value))
    if not match:
        raise RuntimeError(f"Invalid duration: {value!r}")
    seconds = int(match.group(1)) * _DURATION_UNITS[match.group(2)]
    if seconds <= 0:
        raise RuntimeError(f"Duration must be positive: {value!r}")
    return seconds


def _read_env_var(name: str, env: Mapping[str, str | None]) -> str:
    value = env.get(name)
    if value is None or str(value).strip() == "":
        raise RuntimeError(f"Missing required environment variable: {name}")
    return str(value)


def _read_int(name: str, env: Mapping[str, str | None], default: int | None = None) -> int:
    raw = env.get(name)
    if raw is None or str(raw).strip() == "":
        if default is None:
            raise RuntimeError(f"Missing required environment variable: {name}")
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise RuntimeError(f"Environment variable {name} must be an integer") from None
    if value <= 0:
        raise RuntimeError(f"Environment variable {name} must be positive")
    return value


def _read_optional(name: str, env: Mapping[str, str | None]) -> str | None:
    value = env.get(name)
    if value is None or str(value).strip() == "":
        return None
    return str(value).strip()


@dataclass(frozen=True)
class AuthConfig:
    max_login_attempts: int
    lock_duration: timedelta
    verification_code_ttl: timedelta
    access_token_ttl_seconds: int
    refresh_token_ttl_seconds: int
    access_token_secret: str
    refresh_token_secret: str
    relogin_after: timedelta = timedelta(days=7)
    password_hash_rounds: int = 3
    login_rate_limit_max: int = 10
    login_rate_limit_window_seconds: int = 60


@dataclass(frozen=True)
class Settings:
    database_url: str
    app_env: str
    auth: AuthConfig
    email_api_key: str | None = None
    email_api_url: str = "https://api.resend.com/emails"
    email_from: str = "Blog API <no-reply@blogapi.local>"
    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_redirect_uri: str | None = None

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret and self.google_redirect_uri)


def load_settings(env: Mapping[str, str | None] | None = None) -> Settings:
    """Load and validate environment variables into a Settings object."""
    source_env = os.environ if env is None else env

    missing = [key for key in REQUIRED_ENV_VARS if not str(source_env.get(key) or "").strip()]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    app_env = str(source_env.get("APP_ENV", "development")).strip() or "development"

    auth = AuthConfig(
        max_login_attempts=_read_int("MAX_LOGIN_ATTEMPTS", source_env),
        lock_duration=timedelta(minutes=_read_int("LOCK_TIME_MINUTES", source_env)),
        verification_code_ttl=timedelta(minutes=_read_int("VERIFICATION_CODE_EXPIRY", source_env)),
        access_token_ttl_seconds=parse_duration(_read_env_var("ACCESS_TOKEN_EXPIRY", source_env)),
        refresh_token_ttl_seconds=parse_duration(_read_env_var("REFRESH_TOKEN_EXPIRY", source_env)),
        access_token_secret=_read_env_var("JWT_SECRET", source_env),
        refresh_token_secret=_read_env_var("REFRESH_SECRET", source_env),
        relogin_after=timedelta(days=_read_int("RELOGIN_AFTER_DAYS", source_env, default=7)),
        password_hash_rounds=_read_int("PASSWORD_HASH_ROUNDS", source_env, default=3),
        login_rate_limit_max=_read_int("LOGIN_RATE_LIMIT_MAX", source_env, default=10),
        login_rate_limit_window_seconds=_read_int("LOGIN_RATE_LIMIT_WINDOW_SECONDS", source_env, default=60),
    )
    if auth.access_token_secret == auth.refresh_token_secret:
        raise RuntimeError("JWT_SECRET and REFRESH_SECRET must differ")

    settings = Settings(
        database_url=_read_env_var("DATABASE_URL", source_env),
        app_env=app_env,
        auth=auth,
        email_api_key=_read_optional("EMAIL_API_KEY", source_env),
        email_api_url=_read_optional("EMAIL_API_URL", source_env) or Settings.email_api_url,
        email_from=_read_optional("EMAIL_FROM", source_env) or Settings.email_from,
        google_client_id=_read_optional("GOOGLE_CLIENT_ID", source_env),
        google_client_secret=_read_optional("GOOGLE_CLIENT_SECRET", source_env),
        google_redirect_uri=_read_optional("GOOGLE_REDIRECT_URI", source_env),
    )

    logger.info("Loaded application settings for env=%s", settings.app_env)
    return settings
