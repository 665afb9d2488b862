"""
Schema compiler configuration.
PostgreSQL writer pool and entity compilation defaults.
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# PostgreSQL Configuration
POSTGRES_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "writer_host": os.getenv("DB_WRITER_HOST", os.getenv("DB_HOST", "localhost")),
    "port": int(os.getenv("DB_PORT", "5432")),
    "database": os.getenv("DB_NAME", "postgres"),
    "user": os.getenv("DB_USER", "postgres"),
    "password": os.getenv("DB_PASSWORD", "postgres"),
    "min_connections": int(os.getenv("DB_MIN_CONN", "1")),
    "max_connections": int(os.getenv("DB_MAX_CONN", "10")),
    "command_timeout": 60,  # seconds, enforced by the pool
}

# Entity compilation settings
SCHEMA_CONFIG = {
    "column_attribute": os.getenv("SCHEMA_COLUMN_ATTRIBUTE", "column"),
    "identifier_field": "id",
    "default_id_size": os.getenv("SCHEMA_ID_SIZE", "sm"),
}

# Logging Configuration
LOG_CONFIG = {
    "level": os.getenv("LOG_LEVEL", "INFO"),
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
}


def check_config():
    """Log the effective configuration."""
    import logging

    logger = logging.getLogger(__name__)

    if not os.getenv("DB_PASSWORD"):
        logger.debug("DB_PASSWORD not set, using the default password")

    logger.debug(
        f"PostgreSQL writer: {POSTGRES_CONFIG['database']}@{POSTGRES_CONFIG['writer_host']}"
        f":{POSTGRES_CONFIG['port']}"
    )
    logger.debug(
        f"Column attribute '{SCHEMA_CONFIG['column_attribute']}', "
        f"identifier '{SCHEMA_CONFIG['identifier_field']}'"
    )


# Run config check on import
check_config()
