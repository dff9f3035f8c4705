"""
careops.infra.database.engine – async engine, session factory and schema bootstrap.

The engine and session factory are process-wide: the API builds them in its
lifespan and the CLI in main(); both dispose them with close_engine().

ensure_database_exists() creates the target database on first run by
connecting to the "postgres" maintenance database.
"""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Dict, Optional
from urllib.parse import urlparse, urlunparse

import asyncpg
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Registers appointments, leave_events, schedule_templates, template_visits, users on Base.metadata
import careops.infra.database.models  # noqa: F401
from careops.infra.database.models.base import Base

if TYPE_CHECKING:
    from careops.config import PostgresConfig

logger = logging.getLogger(__name__)

# Only names matching this are interpolated into CREATE DATABASE
_DBNAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _resolve(config: Optional["PostgresConfig"]) -> "PostgresConfig":
    if config is None:
        from careops.config import load_postgres_config
        config = load_postgres_config()
    return config


def _make_async_url(url: str) -> str:
    """Convert postgresql:// or postgres:// to postgresql+asyncpg://."""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return url.replace(prefix, "postgresql+asyncpg://", 1)
    return url


def _parse_db_name_and_postgres_url(url: str) -> tuple[str, str]:
    """Split a DSN into the target database name and a plain DSN for the "postgres" database."""
    parsed = urlparse(url.replace("postgresql+asyncpg://", "postgresql://", 1))
    dbname = (parsed.path or "").strip("/") or "postgres"
    admin_url = urlunparse(parsed._replace(path="/postgres"))
    return dbname, admin_url


async def ensure_database_exists(config: Optional["PostgresConfig"] = None) -> None:
    """CREATE DATABASE for the configured DSN when it is missing.

    Unreachable servers are left to init_db() to report.
    """
    dbname, admin_url = _parse_db_name_and_postgres_url(_resolve(config).url)
    if dbname == "postgres":
        return
    if not _DBNAME_PATTERN.match(dbname):
        logger.warning("ensure_database_exists: skipping unsafe database name %r", dbname)
        return
    try:
        conn = await asyncpg.connect(admin_url)
    except (OSError, asyncpg.PostgresError) as e:
        logger.debug("ensure_database_exists: cannot reach postgres (%s), skipping", e)
        return
    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", dbname)
        if exists is None:
            await conn.execute(f'CREATE DATABASE "{dbname}"')
            logger.info("Database created: %s", dbname)
    finally:
        await conn.close()


def build_engine(
    config: Optional["PostgresConfig"] = None,
    *,
    echo: Optional[bool] = None,
    use_null_pool: bool = False,
) -> AsyncEngine:
    """
    Create (once) and return the async engine.

    Args:
        config: PostgresConfig; loaded from env when None.
        echo: Override config.echo.
        use_null_pool: One connection per checkout, for the CLI where the
            event loop ends with the process.
    """
    global _engine
    if _engine is not None:
        return _engine

    config = _resolve(config)
    options: Dict[str, Any] = {
        "echo": config.echo if echo is None else echo,
        "connect_args": {
            "server_settings": {
                "application_name": config.application_name,
                "jit": "off",
            }
        },
    }
    if use_null_pool:
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
        )

    _engine = create_async_engine(_make_async_url(config.url), **options)
    logger.info(
        "AsyncEngine created (%s)",
        "NullPool" if use_null_pool else f"pool_size={config.pool_size} max_overflow={config.max_overflow}",
    )
    return _engine


def build_session_factory(
    engine: Optional[AsyncEngine] = None,
) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``. Objects stay usable after commit."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            engine or build_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def init_db(
    config: Optional["PostgresConfig"] = None,
    *,
    drop_all: bool = False,
) -> None:
    """Create the scheduling tables, indexes and constraints (dev/test; use migrations in production)."""
    engine = build_engine(config)
    async with engine.begin() as conn:
        if drop_all:
            logger.warning("Dropping all scheduling tables (drop_all=True)")
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialised: %s", ", ".join(sorted(Base.metadata.tables)))


async def close_engine() -> None:
    """Dispose the pool and forget the cached engine and session factory."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("AsyncEngine disposed")
    _engine = None
    _session_factory = None
