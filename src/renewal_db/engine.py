"""Async SQLAlchemy engines and session factories.

Two engines share one database URL: the main engine for request and sweep
transactions, and a small event-log engine for the self-committing appends
of ``EventRepository.append_durable``.  A step holds a main-pool connection
while it appends, so the event log must not draw from the same pool.

Both are created lazily on first call and reused across the process
lifetime.  Call ``dispose_engine()`` during graceful shutdown.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from renewal_db.config import (
    PoolSettings,
    get_async_url,
    get_event_pool_settings,
    get_pool_settings,
)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None
_event_engine: AsyncEngine | None = None
_event_session_factory: async_sessionmaker[AsyncSession] | None = None


def _create_engine(pool: PoolSettings) -> AsyncEngine:
    return create_async_engine(
        get_async_url(),
        echo=False,
        pool_size=pool.pool_size,
        max_overflow=pool.max_overflow,
        pool_timeout=pool.pool_timeout,
        pool_pre_ping=True,
    )


def _factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


def get_engine() -> AsyncEngine:
    """Return (and lazily create) the main async engine."""
    global _engine
    if _engine is None:
        _engine = _create_engine(get_pool_settings())
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return (and lazily create) the main session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = _factory(get_engine())
    return _session_factory


def get_event_engine() -> AsyncEngine:
    """Return (and lazily create) the event-log engine."""
    global _event_engine
    if _event_engine is None:
        _event_engine = _create_engine(get_event_pool_settings())
    return _event_engine


def get_event_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return (and lazily create) the session factory for durable event appends."""
    global _event_session_factory
    if _event_session_factory is None:
        _event_session_factory = _factory(get_event_engine())
    return _event_session_factory


async def dispose_engine() -> None:
    """Dispose both connection pools (call on app shutdown)."""
    global _engine, _session_factory, _event_engine, _event_session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
    if _event_engine is not None:
        await _event_engine.dispose()
        _event_engine = None
        _event_session_factory = None
