"""
Configuration helpers for the store backend.

Settings are read from the environment once per process (see get_settings) and
then handed to services explicitly, so routers/services never touch os.environ.
"""

from dataclasses import dataclass
from functools import lru_cache
import logging
import os
import secrets

logger = logging.getLogger(__name__)

_ALLOWED_JWT_ALGORITHMS = {"HS256", "HS384", "HS512"}
PASSWORD_RESET_TTL_SECONDS = 3600


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    jwt_secret: str
    jwt_algorithm: str
    jwt_expire_seconds: int
    frontend_url: str
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_from: str
    log_level: str
    password_reset_ttl_seconds: int = PASSWORD_RESET_TTL_SECONDS


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    app_env = (os.getenv("APP_ENV") or "dev").lower()

    secret = (os.getenv("JWT_SECRET") or "").strip()
    if not secret:
        if app_env == "prod":
            raise RuntimeError("JWT_SECRET must be configured when APP_ENV=prod.")
        logger.warning("JWT_SECRET not set; using a random per-process secret (sessions will not survive restarts)")
        secret = secrets.token_urlsafe(32)

    algorithm = (os.getenv("JWT_ALGORITHM") or "HS256").upper()
    if algorithm not in _ALLOWED_JWT_ALGORITHMS:
        logger.warning("JWT_ALGORITHM %r is not supported; falling back to HS256", algorithm)
        algorithm = "HS256"

    return Settings(
        app_env=app_env,
        database_url=os.getenv("DATABASE_URL", "sqlite:///./storeapi.db"),
        jwt_secret=secret,
        jwt_algorithm=algorithm,
        jwt_expire_seconds=max(60, _int(os.getenv("JWT_EXPIRE_SECONDS", "86400"), 86400)),
        frontend_url=os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/"),
        smtp_host=os.getenv("SMTP_HOST", ""),
        smtp_port=_int(os.getenv("SMTP_PORT", "465"), 465),
        smtp_user=os.getenv("SMTP_USER", ""),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_from=os.getenv("SMTP_FROM", os.getenv("SMTP_USER", "")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
