#!/usr/bin/env python3
"""Create LinkHub tables from the SQLAlchemy models."""

from linkhub.config.database import Base, init_db
from linkhub.utils.logger import logger

if __name__ == "__main__":
    logger.info("Initializing database...")

    try:
        init_db()
        logger.info(f"✓ Database initialized ({', '.join(sorted(Base.metadata.tables))})")
    except Exception as e:
        logger.error(f"✗ Database initialization failed: {e}")
        raise
