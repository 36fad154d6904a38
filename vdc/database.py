# vdc/database.py
"""
Database handle, session management, and table creation.
Uses SQLAlchemy with PostgreSQL. The handle is built once at startup,
attached to app.state, and disposed on shutdown.
"""

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from vdc.exceptions import DatabaseUnavailableError
from vdc.utils.logger import get_logger

logger = get_logger(__name__)

Base = declarative_base()


class Database:
    """Engine + session factory for one process lifetime."""

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        engine_kwargs.setdefault("pool_pre_ping", True)   # Auto-reconnect if DB connection drops
        engine_kwargs.setdefault("echo", False)           # Set True to log all SQL queries (debug only)
        if not url.startswith("sqlite"):
            engine_kwargs.setdefault("pool_size", 10)
            engine_kwargs.setdefault("max_overflow", 20)
        self.engine = create_engine(url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def connect(self):
        """Verify the store is reachable. Raises DatabaseUnavailableError otherwise."""
        try:
            with self.engine.connect() as conn:
                solution = conn.execute(text("SELECT 1 + 1")).scalar()
        except SQLAlchemyError as e:
            raise DatabaseUnavailableError(f"Database connection failed: {e}") from e
        if solution != 2:
            raise DatabaseUnavailableError("Connection established but test query failed")

    def create_tables(self):
        """
        Creates all DB tables. Safe to call multiple times.
        Import all models here so SQLAlchemy knows about them.
        """
        import vdc.models  # noqa

        Base.metadata.create_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()


def get_db(request: Request):
    """FastAPI dependency — yields a DB session and closes it after request."""
    db = request.app.state.db.SessionLocal()
    try:
        yield db
    finally:
        db.close()
