"""Database connection management."""

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool


class DatabaseConfig:
    """Database configuration."""

    def __init__(self, config: Dict[str, Any]) -> None:
        """Initialize database config from dict."""
        self.host = config.get("host", "localhost")
        self.port = config.get("port", 5432)
        self.database = config.get("database", "mediawatch")
        self.user = config.get("user", "mediawatch")
        self.sslmode = config.get("sslmode", "disable")

        # Handle password from environment variable if specified
        password_env = config.get("password_env")
        if password_env and os.environ.get(password_env):
            self.password = os.environ[password_env]
        else:
            self.password = config.get("password") or ""

    @property
    def connection_string(self) -> str:
        """Get libpq connection string."""
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
            sslmode=self.sslmode,
        )


_connection_pool: Optional[AsyncConnectionPool] = None


async def get_connection_pool(config: Dict[str, Any]) -> AsyncConnectionPool:
    """Get or create the process-wide connection pool."""
    global _connection_pool
    if _connection_pool is None:
        db_config = DatabaseConfig(config)
        pool = AsyncConnectionPool(
            db_config.connection_string,
            min_size=1,
            max_size=10,
            kwargs={"row_factory": dict_row},
            open=False,
        )
        await pool.open()
        _connection_pool = pool
    return _connection_pool


async def close_connection_pool() -> None:
    global _connection_pool
    if _connection_pool is not None:
        await _connection_pool.close()
        _connection_pool = None


@asynccontextmanager
async def get_connection(config: Dict[str, Any]) -> AsyncIterator[psycopg.AsyncConnection]:
    """Get a database connection from the pool."""
    pool = await get_connection_pool(config)
    async with pool.connection() as conn:
        yield conn
