"""
Database engine and session configuration.

The engine is built from settings.DATABASE_URL:
- PostgreSQL in production (psycopg2 driver)
- SQLite for local runs and tests, with WAL mode enabled on every connection
"""
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from now_screening.config import settings

# Plain logging.getLogger avoids importing now_screening.utils here
logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL


def is_sqlite_url(url: str) -> bool:
    return url.startswith("sqlite")


def _set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
    """Enable WAL mode on every SQLite connection for better concurrency."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    result = cursor.fetchone()
    cursor.close()

    if result and result[0] != "wal":
        logger.warning(
            f"Failed to enable WAL mode. Got '{result[0]}' instead of 'wal'. "
            "Concurrent readers may block during snapshot replaces."
        )


def build_engine(url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite engines are shared across threads (store calls run in worker
    threads) and get the WAL pragma listener. Other backends use a
    pre-pinged connection pool.
    """
    if is_sqlite_url(url):
        new_engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=False,
        )
        event.listen(new_engine, "connect", _set_sqlite_pragma)
        return new_engine

    return create_engine(url, pool_pre_ping=True, echo=False)


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Yield a session and close it afterwards.

    Usage:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
