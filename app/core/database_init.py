"""Development schema bootstrap.

Production databases are migrated with Alembic; this only creates missing
tables when ``AUTO_CREATE_SCHEMA`` is enabled.
"""

import logging

from sqlalchemy.engine import Engine

from app.models import Base

logger = logging.getLogger(__name__)


def init_database_schema(engine: Engine) -> None:
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to initialize database schema: {str(e)}")
        raise
    logger.info("Database schema initialized")
