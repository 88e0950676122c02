"""Database engine builder.

Policy:
- Default pool: NullPool (the Supabase pooler does the pooling)
- pool_pre_ping=True
- Supabase host → sslmode=require unless the URL already pins one
- SQLite (local/dev/tests) → single shared connection, thread check disabled
"""

import logging
import re
from typing import Any, Optional

from sqlalchemy import Engine, NullPool, StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from agency_api.config.env import AppConfig

logger = logging.getLogger(__name__)


def is_supabase_host(url: str) -> bool:
    """Return True if the URL points to a Supabase-managed host.

    Matches:
      - *.supabase.co             (direct / session pooler)
      - *.pooler.supabase.com     (transaction pooler, port 6543)
    """
    return ".supabase.co" in url or ".pooler.supabase.com" in url


def _mask_password(url: str) -> str:
    """Mask password in database URL for safe logging."""
    return re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", url)


def build_engine(config: AppConfig, database_url: Optional[str] = None) -> Engine:
    """Build SQLAlchemy engine from configuration.

    Args:
        config: Application configuration
        database_url: Override for ``config.database_url``

    Returns:
        SQLAlchemy Engine instance.

    Raises:
        ValueError: If the configured pool mode is unknown.
    """
    url = database_url or config.database_url

    if url.startswith("sqlite"):
        sqlite_kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url == "sqlite://":
            sqlite_kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **sqlite_kwargs)
        logger.info("Database engine created", extra={"dialect": "sqlite"})
        return engine

    connect_args: dict[str, Any] = {}
    if is_supabase_host(url) and "sslmode=" not in url:
        connect_args["sslmode"] = "require"
    connect_args["application_name"] = "agency-api"

    if config.db_pool == "nullpool":
        engine = create_engine(
            url,
            poolclass=NullPool,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
    elif config.db_pool == "queuepool":
        engine = create_engine(
            url,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            connect_args=connect_args,
        )
    else:
        raise ValueError(f"Invalid DB_POOL value: {config.db_pool}. Use nullpool or queuepool.")

    logger.info(
        "Database engine created: %s",
        _mask_password(url),
        extra={"pool": config.db_pool},
    )
    return engine


def build_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    """Build SQLAlchemy sessionmaker (autocommit=False, autoflush=False)."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
