"""Database sessions for task execution."""

import os
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


def get_db_session() -> Any:
    """Get database session for task execution.

    Raises:
        RuntimeError: If MYSQL_URL is not configured.
    """
    database_url = os.getenv("MYSQL_URL")
    if not database_url:
        raise RuntimeError("MYSQL_URL not configured")

    engine = create_engine(database_url, pool_pre_ping=True)
    SessionLocal = sessionmaker(bind=engine)
    return SessionLocal()
