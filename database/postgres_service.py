"""
PostgreSQL connection pool service.
Owns the shared writer pool that generated entity updates run against.
"""

import asyncpg
from typing import Optional
from dataclasses import dataclass, field
import logging

from config import POSTGRES_CONFIG

logger = logging.getLogger(__name__)


@dataclass
class DatabaseConfig:
    """Database configuration."""
    host: str = field(default_factory=lambda: POSTGRES_CONFIG["writer_host"])
    port: int = field(default_factory=lambda: POSTGRES_CONFIG["port"])
    user: str = field(default_factory=lambda: POSTGRES_CONFIG["user"])
    password: str = field(default_factory=lambda: POSTGRES_CONFIG["password"])
    database: str = field(default_factory=lambda: POSTGRES_CONFIG["database"])
    min_size: int = field(default_factory=lambda: POSTGRES_CONFIG["min_connections"])
    max_size: int = field(default_factory=lambda: POSTGRES_CONFIG["max_connections"])
    command_timeout: float = field(default_factory=lambda: POSTGRES_CONFIG["command_timeout"])


class PostgreSQLService:
    """PostgreSQL writer pool service."""

    def __init__(self, config: Optional[DatabaseConfig] = None):
        self.config = config or DatabaseConfig()
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self):
        """Connect to PostgreSQL and create the writer pool."""
        try:
            self.pool = await asyncpg.create_pool(
                host=self.config.host,
                port=self.config.port,
                user=self.config.user,
                password=self.config.password,
                database=self.config.database,
                min_size=self.config.min_size,
                max_size=self.config.max_size,
                command_timeout=self.config.command_timeout
            )
            logger.info(f"✅ Connected to PostgreSQL writer: {self.config.database}@{self.config.host}")

            # Test connection
            async with self.pool.acquire() as conn:
                version = await conn.fetchval('SELECT version()')
                logger.info(f"PostgreSQL version: {version.split(',')[0]}")

        except Exception as e:
            logger.error(f"❌ Failed to connect to PostgreSQL: {e}")
            raise

    async def close(self):
        """Close the connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Database connection pool closed")

    @property
    def is_connected(self) -> bool:
        return self.pool is not None

    def writer(self) -> asyncpg.Pool:
        """
        Shared write-capable handle.
        The pool acquires and releases a connection per statement.
        """
        if not self.is_connected:
            raise ConnectionError("Database not connected")
        return self.pool


# Global database instance
db_service = PostgreSQLService()
