"""Database configuration — reads connection parameters from environment.

Supports two modes:
1. A single ``DATABASE_URL`` env var (takes precedence).
2. Individual ``PG_HOST``, ``PG_PORT``, ``PG_USER``, ``PG_PASSWORD``,
   ``PG_DATABASE`` env vars (convenient for docker-compose).

Both ``sync_url`` (used by Alembic migrations) and ``async_url`` (used by
the async SQLAlchemy engine at runtime) are exposed.

Connection pools come in two sizes.  The main pool serves request and
sweep transactions.  The event-log pool only serves the short commits of
``EventRepository.append_durable``, which run while the caller still holds
a main-pool connection.  Event appends never wait on the main pool.
"""

import os
from dataclasses import dataclass


def _build_url_from_parts() -> str:
    """Construct a PostgreSQL connection string from individual env vars."""
    host = os.getenv("PG_HOST", "localhost")
    port = os.getenv("PG_PORT", "5432")
    user = os.getenv("PG_USER", "renewals")
    password = os.getenv("PG_PASSWORD", "renewals")
    database = os.getenv("PG_DATABASE", "renewals")
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def get_sync_url() -> str:
    """Return a synchronous (psycopg2) connection URL for Alembic."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url.replace("postgresql+asyncpg://", "postgresql://")
    return _build_url_from_parts()


def get_async_url() -> str:
    """Return an asyncpg connection URL for the async SQLAlchemy engine."""
    url = os.getenv("DATABASE_URL")
    if url:
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url
    base = _build_url_from_parts()
    return base.replace("postgresql://", "postgresql+asyncpg://", 1)


@dataclass(frozen=True)
class PoolSettings:
    """Connection pool sizing for one engine."""

    pool_size: int
    max_overflow: int
    pool_timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.pool_size < 1:
            raise ValueError(f"pool_size must be at least 1, got {self.pool_size}")
        if self.max_overflow < 0:
            raise ValueError(f"max_overflow must not be negative, got {self.max_overflow}")


def get_pool_settings() -> PoolSettings:
    """Main pool: ``PG_POOL_SIZE`` (5), ``PG_MAX_OVERFLOW`` (10), ``PG_POOL_TIMEOUT`` (30s)."""
    return PoolSettings(
        pool_size=int(os.getenv("PG_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("PG_MAX_OVERFLOW", "10")),
        pool_timeout=float(os.getenv("PG_POOL_TIMEOUT", "30")),
    )


def get_event_pool_settings() -> PoolSettings:
    """Event-log pool: ``PG_EVENT_POOL_SIZE`` (2), ``PG_EVENT_MAX_OVERFLOW`` (3).

    Each event append holds its connection for one INSERT and COMMIT, so a
    handful of connections covers many concurrent requests.
    """
    return PoolSettings(
        pool_size=int(os.getenv("PG_EVENT_POOL_SIZE", "2")),
        max_overflow=int(os.getenv("PG_EVENT_MAX_OVERFLOW", "3")),
        pool_timeout=float(os.getenv("PG_POOL_TIMEOUT", "30")),
    )
