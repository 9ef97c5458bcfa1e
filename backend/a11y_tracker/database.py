"""Database engine, session factory and declarative base."""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from a11y_tracker.config import settings


def _connect_args(database_url: str) -> dict:
    # SQLite connections are shared with FastAPI's worker threads
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    connect_args=_connect_args(settings.database_url),
    pool_pre_ping=True,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    FastAPI dependency yielding a database session.

    The session is always closed once the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
