"""Database session management with connection pooling"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from transfer_gateway.config import settings


def enforce_sqlite_foreign_keys(engine) -> None:
    """SQLite ignores ON DELETE rules unless each connection turns them on"""

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str):
    """Create an engine; SQLite gets thread sharing instead of a sized pool"""
    if database_url.startswith("sqlite"):
        sqlite_engine = create_engine(database_url, connect_args={"check_same_thread": False})
        enforce_sqlite_foreign_keys(sqlite_engine)
        return sqlite_engine

    # Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
