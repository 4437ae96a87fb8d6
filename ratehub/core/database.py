import logging
from typing import Any, Iterable, List, Optional
from psycopg_pool import AsyncConnectionPool
from psycopg.rows import dict_row
from psycopg import OperationalError

from .config import settings

log = logging.getLogger(__name__)

pool: Optional[AsyncConnectionPool] = None


def _connection_kwargs():
    return {
        "sslmode": "disable" if settings.postgres_ssl is False else "require",
        "connect_timeout": 10,
        "application_name": "ratehub_backend",
    }


def _masked(conninfo: str) -> str:
    """Connection string with the password replaced, for logs."""
    if "@" not in conninfo:
        return "postgresql://****"
    credentials, _, location = conninfo.rpartition("@")
    return credentials.rsplit(":", 1)[0] + ":****@" + location


async def get_pool() -> AsyncConnectionPool:
    """Get or lazily open the shared connection pool."""
    global pool

    if pool is not None:
        return pool

    conninfo = settings.build_db_url()
    if not conninfo:
        raise RuntimeError(
            "Database configuration is missing. "
            "Set DATABASE_URL or POSTGRES_* environment variables."
        )

    log.info("Opening database pool %s", _masked(conninfo))
    candidate = AsyncConnectionPool(
        conninfo=conninfo,
        open=False,
        kwargs=_connection_kwargs(),
        min_size=1,
        max_size=settings.db_pool_max_size,
        timeout=30,
        max_idle=300,
        max_lifetime=3600,
    )
    try:
        await candidate.open(wait=True, timeout=30)
    except OperationalError:
        log.exception(
            "Database connection failed (host=%s db=%s user=%s cloud_sql=%s)",
            settings.postgres_host,
            settings.postgres_db,
            settings.postgres_user,
            settings.cloud_sql_connection_name,
        )
        await candidate.close()
        raise

    pool = candidate
    log.info("Database pool ready")
    return pool


async def close_pool():
    global pool

    if pool:
        log.info("Closing database pool")
        await pool.close()
        pool = None


async def fetch(query: str, params: Iterable[Any] | None = None) -> List[dict]:
    """Execute a SELECT query and return all rows as dictionaries"""
    pool_instance = await get_pool()
    async with pool_instance.connection() as conn:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(query, params or [])
            rows = await cur.fetchall()
            return [dict(r) for r in rows]


async def fetchrow(query: str, params: Iterable[Any] | None = None) -> Optional[dict]:
    """Execute a SELECT query and return a single row as a dictionary"""
    pool_instance = await get_pool()
    async with pool_instance.connection() as conn:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(query, params or [])
            row = await cur.fetchone()
            return dict(row) if row else None
