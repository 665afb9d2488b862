"""
Database package: the shared PostgreSQL writer pool.
"""

from database.postgres_service import (
    DatabaseConfig,
    PostgreSQLService,
    db_service
)

__all__ = [
    'DatabaseConfig',
    'PostgreSQLService',
    'db_service'
]

__version__ = "1.0.0"
