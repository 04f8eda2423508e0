from __future__ import annotations

import logging
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from miniapps_api.settings import get_settings

logger = logging.getLogger(__name__)

ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "postgresql+psycopg2": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}
# asyncpg rejects libpq-only query options.
DROPPED_QUERY_KEYS = {"channel_binding", "ssl", "sslmode"}


def normalize_database_url(database_url: str) -> str:
    """Point the URL at an async driver and translate libpq ssl options for asyncpg."""
    raw = str(database_url or "").strip()
    scheme, sep, rest = raw.partition("://")
    if not sep:
        return raw
    scheme = ASYNC_DRIVERS.get(scheme.lower(), scheme)
    if scheme.startswith("sqlite"):
        return f"{scheme}://{rest}"
    parts = urlsplit(f"{scheme}://{rest}")
    options = parse_qsl(parts.query, keep_blank_values=True)
    wants_ssl = any(key == "sslmode" and value not in ("disable", "allow") for key, value in options)
    kept = [(key, value) for key, value in options if key not in DROPPED_QUERY_KEYS]
    if wants_ssl:
        kept.append(("ssl", "true"))
    return urlunsplit(parts._replace(query=urlencode(kept)))


def is_sqlite_url(database_url: str) -> bool:
    return str(database_url or "").strip().lower().startswith("sqlite")


_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is not None:
        return _engine
    url = normalize_database_url(get_settings().database_url)
    if is_sqlite_url(url):
        # aiosqlite connections are bound to the loop that opened them.
        _engine = create_async_engine(url, poolclass=NullPool)
    else:
        _engine = create_async_engine(url, pool_pre_ping=True, pool_size=10, max_overflow=10)
    logger.info("Database engine created (%s)", url.split("://", 1)[0])
    return _engine


def get_sessionmaker() -> async_sessionmaker:
    global _sessionmaker
    if _sessionmaker is None:
        _sessionmaker = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _sessionmaker


async def dispose_engine() -> None:
    global _engine, _sessionmaker
    engine, _engine, _sessionmaker = _engine, None, None
    if engine is not None:
        await engine.dispose()


def reset_engine() -> None:
    """Forget the cached engine without awaiting disposal (tests, reconfiguration)."""
    global _engine, _sessionmaker
    _engine = None
    _sessionmaker = None
