"""
Database engine and sessions.

One async engine per process (API or export worker), created lazily from
settings. Request handlers get a session through the ``DbSession``
dependency; export processing opens its own with ``get_db_context``.
"""

import ssl
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from commerce_exports.config import Settings, get_settings

# sslmode -> (check_hostname, verify_mode); modes not listed disable TLS
_SSL_MODES: dict[str, tuple[bool, ssl.VerifyMode]] = {
    "require": (False, ssl.CERT_NONE),
    "verify-ca": (False, ssl.CERT_REQUIRED),
    "verify-full": (True, ssl.CERT_REQUIRED),
}

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def split_ssl_options(url: str) -> tuple[str, dict]:
    """
    Move ``sslmode`` out of a PostgreSQL URL.

    asyncpg rejects ``sslmode`` as a query parameter; it takes an SSL
    context (or the string "prefer") through ``connect_args`` instead.

    Args:
        url: Database URL, possibly with ``?sslmode=...``

    Returns:
        Tuple of (URL without sslmode, connect_args)
    """
    parsed = urlparse(url)
    query = parse_qs(parsed.query)
    connect_args: dict = {}

    mode = query.pop("sslmode", [None])[0]
    if mode in _SSL_MODES:
        check_hostname, verify_mode = _SSL_MODES[mode]
        context = ssl.create_default_context()
        context.check_hostname = check_hostname
        context.verify_mode = verify_mode
        connect_args["ssl"] = context
    elif mode == "prefer":
        connect_args["ssl"] = "prefer"

    return urlunparse(parsed._replace(query=urlencode(query, doseq=True))), connect_args


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Process-wide async engine, created on first use."""
    global _engine

    if _engine is None:
        settings = settings or get_settings()
        url, connect_args = split_ssl_options(settings.database_url)
        _engine = create_async_engine(
            url,
            echo=settings.debug,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
    return _engine


def get_session_factory(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to the process engine.

    Export handlers receive this factory and open a short-lived session
    for every page they fetch.
    """
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(settings),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


async def _session_scope() -> AsyncGenerator[AsyncSession, None]:
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: session committed on success, rolled back on error."""
    async for session in _session_scope():
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db)]


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Session outside of a request.

    Usage:
        async with get_db_context() as db:
            job = await DataExportService(db).get_job(job_id)
    """
    async for session in _session_scope():
        yield session


async def init_db() -> None:
    """Check that the database answers; run on API and worker startup."""
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db() -> None:
    """Dispose of the engine; run on API and worker shutdown."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
