"""
Pytest configuration and fixtures for Now Screening tests.

Settings are read from the environment when now_screening is first
imported, so the test environment is set up before any project import.
"""
import os
import tempfile
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="now-screening-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'app.db'}"
os.environ["LOG_FILE"] = str(_TEST_DIR / "logs" / "test.log")
os.environ["WARMUP_ON_STARTUP"] = "false"
os.environ["DEDUPLICATE_REFRESH"] = "false"
os.environ.setdefault("DEFAULT_CITY", "cuttack")

import asyncio  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from now_screening.database.connection import Base  # noqa: E402
from now_screening.main import app, get_orchestrator  # noqa: E402
from now_screening.scrapers.base import ListingEntry  # noqa: E402
from now_screening.services.cache import CacheStore, Snapshot  # noqa: E402
from now_screening.services.orchestrator import RefreshOrchestrator  # noqa: E402


FIXED_NOW = datetime(2026, 10, 19, 8, 0, 0, tzinfo=timezone.utc)

SAMPLE_ENTRIES = [
    ListingEntry(title="Ballerina", href="https://in.bookmyshow.com/movies/cuttack/ballerina/ET00001"),
    ListingEntry(title="Sitaare Zameen Par", href="https://in.bookmyshow.com/movies/cuttack/sitaare-zameen-par/ET00002"),
    ListingEntry(title="How to Train Your Dragon", href="https://in.bookmyshow.com/movies/cuttack/how-to-train-your-dragon/ET00003"),
]


class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeExtractor:
    """Extractor double that records calls and returns canned entries."""

    def __init__(self, entries=None, error=None, delay: float = 0.0):
        self.entries = list(SAMPLE_ENTRIES if entries is None else entries)
        self.error = error
        self.delay = delay
        self.calls = []

    async def extract(self, city):
        self.calls.append(city)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.entries)


class FakeStore:
    """In-memory snapshot store with optional injected failures."""

    def __init__(self, clock=None, window: timedelta = timedelta(hours=24)):
        self.snapshots = {}
        self.clock = clock or FakeClock()
        self.window = window
        self.read_error = None
        self.persist_error = None
        self.replace_calls = []

    def read(self, city, now=None):
        if self.read_error is not None:
            raise self.read_error
        snapshot = self.snapshots.get(city)
        now = now or self.clock()
        if snapshot is None or not snapshot.is_fresh(now, self.window):
            return None
        return snapshot

    def replace(self, city, entries, captured_at=None):
        self.replace_calls.append(city)
        if self.persist_error is not None:
            raise self.persist_error
        snapshot = Snapshot(city=city, entries=tuple(entries), captured_at=captured_at or self.clock())
        self.snapshots[city] = snapshot
        return snapshot


@pytest.fixture
def sample_entries():
    return list(SAMPLE_ENTRIES)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


@pytest.fixture
def fake_store(clock):
    return FakeStore(clock=clock)


@pytest.fixture
def orchestrator(fake_store, fake_extractor, clock):
    """Orchestrator wired to in-memory doubles."""
    return RefreshOrchestrator(store=fake_store, extractor=fake_extractor, clock=clock)


@pytest.fixture
def client(orchestrator):
    """Create a test client with the orchestrator replaced by doubles."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def test_db():
    """
    Create an isolated test database for tests that need database isolation.

    This fixture creates a temporary SQLite database with WAL mode enabled,
    creates all tables, and cleans up after the test.

    Usage:
        def test_something(test_db):
            session = test_db()
            # ... use session
            session.close()
    """
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    test_engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
        echo=False,
    )

    @event.listens_for(test_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=test_engine)

    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    yield TestSessionLocal

    test_engine.dispose()
    for suffix in ["", "-wal", "-shm"]:
        file_path = Path(str(db_path) + suffix)
        if file_path.exists():
            file_path.unlink()


@pytest.fixture
def test_session(test_db):
    """
    Provide a database session for tests, with automatic cleanup.

    Usage:
        def test_something(test_session):
            test_session.add(...)
    """
    session = test_db()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def store(test_db, clock):
    """CacheStore on an isolated SQLite database with a 24h window."""
    return CacheStore(test_db, window=timedelta(hours=24), clock=clock)
