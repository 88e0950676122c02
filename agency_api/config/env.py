"""Environment variable resolution and the application configuration object.

The environment is read exactly once, by ``load_config()`` at process start.
The resulting ``AppConfig`` is passed into ``create_app()`` and from there
into each component constructor; nothing below the app factory reads
``os.environ`` directly.
"""

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_DATABASE_URL = "sqlite:///./agency_api.db"
DEFAULT_STAFF_SESSION_HEADER = "x-staff-session"


class AppConfig(BaseModel):
    """Immutable process configuration."""

    model_config = ConfigDict(frozen=True)

    env: str = "local"
    database_url: str = DEFAULT_LOCAL_DATABASE_URL
    db_pool: str = Field(default="nullpool", pattern=r"^(nullpool|queuepool)$")
    supabase_url: Optional[str] = None
    supabase_secret_key: Optional[str] = None
    supabase_publishable_key: Optional[str] = None
    supabase_jwt_secret: Optional[str] = None
    staff_session_header: str = DEFAULT_STAFF_SESSION_HEADER
    log_level: str = "INFO"
    json_logs: bool = True

    @property
    def is_production(self) -> bool:
        return self.env in {"prod", "production"}


def _first(environ: Mapping[str, str], *names: str) -> Optional[str]:
    """Return the first non-empty value among ``names``."""
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


def get_agency_env(environ: Mapping[str, str]) -> str:
    """Get environment name.

    Priority:
    1. AGENCY_ENV (canonical)
    2. ENVIRONMENT (platform default)
    3. Default: "local"

    Returns:
        Environment name (lowercase)
    """
    return (_first(environ, "AGENCY_ENV", "ENVIRONMENT") or "local").lower()


def get_supabase_secret_key(environ: Mapping[str, str]) -> Optional[str]:
    """Get Supabase secret (service role) key.

    Priority:
    1. SB_SECRET_KEY (new standard, Supabase UI 2024+)
    2. SUPABASE_SERVICE_ROLE_KEY (legacy)

    The secret key bypasses RLS. NEVER expose it to clients.
    """
    key = environ.get("SB_SECRET_KEY")
    if key:
        return key

    key = environ.get("SUPABASE_SERVICE_ROLE_KEY")
    if key:
        logger.info(
            "Using legacy SUPABASE_SERVICE_ROLE_KEY (consider migrating to SB_SECRET_KEY)"
        )
    return key or None


def get_supabase_publishable_key(environ: Mapping[str, str]) -> Optional[str]:
    """Get Supabase publishable (anon) key.

    Priority:
    1. SB_PUBLISHABLE_KEY (new standard, Supabase UI 2024+)
    2. SUPABASE_ANON_KEY (legacy)
    """
    key = environ.get("SB_PUBLISHABLE_KEY")
    if key:
        return key

    key = environ.get("SUPABASE_ANON_KEY")
    if key:
        logger.info(
            "Using legacy SUPABASE_ANON_KEY (consider migrating to SB_PUBLISHABLE_KEY)"
        )
    return key or None


def get_database_url(environ: Mapping[str, str], env: str) -> str:
    """Get database URL.

    Production fail-fast: DATABASE_URL is mandatory in prod/production.
    Development falls back to a local SQLite file.

    Raises:
        RuntimeError: If DATABASE_URL is missing in production
    """
    url = environ.get("DATABASE_URL")
    if url:
        return url

    if env in {"prod", "production"}:
        raise RuntimeError(
            "DATABASE_URL environment variable is required in production (AGENCY_ENV=prod/production). "
            "Check deployment configuration and secrets injection."
        )
    return DEFAULT_LOCAL_DATABASE_URL


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Build the process configuration from the environment.

    Args:
        environ: Mapping to read from (defaults to ``os.environ``)

    Returns:
        AppConfig

    Raises:
        RuntimeError: If production requirements are not met
    """
    if environ is None:
        environ = os.environ

    env = get_agency_env(environ)
    database_url = get_database_url(environ, env)

    supabase_url = environ.get("SUPABASE_URL") or None
    jwt_secret = environ.get("SUPABASE_JWT_SECRET") or None

    if env in {"prod", "production"} and not (supabase_url or jwt_secret):
        raise RuntimeError(
            "Platform token verification is not configured. "
            "Set SUPABASE_URL (remote verification) or SUPABASE_JWT_SECRET (local verification)."
        )

    return AppConfig(
        env=env,
        database_url=database_url,
        db_pool=(environ.get("DB_POOL") or "nullpool").lower(),
        supabase_url=supabase_url,
        supabase_secret_key=get_supabase_secret_key(environ),
        supabase_publishable_key=get_supabase_publishable_key(environ),
        supabase_jwt_secret=jwt_secret,
        staff_session_header=(
            environ.get("STAFF_SESSION_HEADER") or DEFAULT_STAFF_SESSION_HEADER
        ).lower(),
        log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        json_logs=(environ.get("AGENCY_JSON_LOGS", "true").lower() != "false"),
    )
