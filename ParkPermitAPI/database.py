"""
Database configuration and session management.

This module builds the SQLAlchemy engine from the configured database URL and
provides the session dependency for FastAPI path operations.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ParkPermitAPI.config import database_url
from ParkPermitAPI.models import Base


def _engine_args(url: str) -> dict:
    # SQLite connections are shared across the TestClient's worker thread
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


DATABASE_URL = database_url()

# Create the SQLAlchemy engine
engine = create_engine(DATABASE_URL, **_engine_args(DATABASE_URL))

# Create a configured "Session" class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependency for getting the database session
def get_db():
    """
    Get a database session.

    This function is designed to be used as a FastAPI dependency. It yields a
    database session and ensures it is closed after the request is processed.

    Yields:
        sqlalchemy.orm.Session: A database session.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


__all__ = ["Base", "engine", "SessionLocal", "get_db"]
