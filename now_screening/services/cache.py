"""
Cache Store for per-city listing snapshots.

Wraps the CRUD layer with:
- Snapshot: the immutable domain view of one city's listings
- Freshness filtering at read time (no background expiry)
- Atomic replace with rollback on any failure
- Translation of database errors into StoreReadError / StorePersistError
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from now_screening.config import settings
from now_screening.database.crud import (
    delete_stale_snapshots,
    get_snapshot_cities,
    get_snapshot_rows,
    replace_city_movies,
)
from now_screening.errors import StorePersistError, StoreReadError
from now_screening.scrapers.base import ListingEntry
from now_screening.utils.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_db_time(value: datetime) -> datetime:
    """Convert an aware (or naive UTC) datetime to the naive UTC stored in the database."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_db_time(value: datetime) -> datetime:
    """Attach UTC to a naive datetime read from the database."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def default_window() -> timedelta:
    return timedelta(hours=settings.FRESHNESS_WINDOW_HOURS)


@dataclass(frozen=True)
class Snapshot:
    """All listings for one city as of one capture time."""

    city: str
    entries: Tuple[ListingEntry, ...] = field(default_factory=tuple)
    captured_at: datetime = field(default_factory=utc_now)

    @property
    def count(self) -> int:
        return len(self.entries)

    def is_fresh(self, now: datetime, window: timedelta) -> bool:
        """A snapshot is fresh while it is younger than the window."""
        return now - self.captured_at < window

    def __str__(self) -> str:
        return (
            f"Snapshot(city={self.city}, count={self.count}, "
            f"captured_at={self.captured_at.isoformat()})"
        )


class CacheStore:
    """
    Persistent snapshot store keyed by city.

    Each call opens its own session from the factory, so a store instance
    can be shared between concurrent requests and worker threads.

    Attributes:
        window: Freshness window applied by read()
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        window: Optional[timedelta] = None,
        clock: Clock = utc_now,
    ):
        self._session_factory = session_factory
        self.window = window if window is not None else default_window()
        self._clock = clock

    def _session(self) -> Session:
        return self._session_factory()

    def read(self, city: str, now: Optional[datetime] = None) -> Optional[Snapshot]:
        """
        Return the city's snapshot if it is fresh.

        Args:
            city: City slug
            now: Reference time for the freshness check (defaults to clock)

        Returns:
            Snapshot, or None if absent or older than the window.

        Raises:
            StoreReadError: If the database query failed.
        """
        now = now or self._clock()
        fresh_after = to_db_time(now - self.window)

        session = self._session()
        try:
            result = get_snapshot_rows(session, city, fresh_after=fresh_after)
        except SQLAlchemyError as e:
            raise StoreReadError(city, f"{type(e).__name__}: {e}") from e
        finally:
            session.close()

        if result is None:
            return None

        captured_at, rows = result
        return Snapshot(
            city=city,
            entries=tuple(ListingEntry(title=title, href=href) for title, href in rows),
            captured_at=from_db_time(captured_at),
        )

    def replace(
        self,
        city: str,
        entries: Sequence[ListingEntry],
        captured_at: Optional[datetime] = None,
    ) -> Snapshot:
        """
        Atomically replace the city's snapshot.

        Args:
            city: City slug
            entries: New listings in extraction order
            captured_at: Capture time (defaults to clock)

        Returns:
            The snapshot as written.

        Raises:
            StorePersistError: If the transaction was rolled back; the
                previous snapshot is left unchanged.
        """
        captured_at = captured_at or self._clock()

        session = self._session()
        try:
            replace_city_movies(session, city, entries, to_db_time(captured_at))
        except SQLAlchemyError as e:
            raise StorePersistError(city, f"{type(e).__name__}: {e}") from e
        finally:
            session.close()

        return Snapshot(city=city, entries=tuple(entries), captured_at=from_db_time(to_db_time(captured_at)))

    def purge_stale(self, now: Optional[datetime] = None) -> int:
        """
        Delete snapshots that are no longer fresh.

        Stale snapshots are already invisible to read(); this only reclaims
        space.

        Returns:
            Number of city snapshots deleted.
        """
        now = now or self._clock()
        session = self._session()
        try:
            return delete_stale_snapshots(session, to_db_time(now - self.window))
        except SQLAlchemyError as e:
            raise StorePersistError(None, f"{type(e).__name__}: {e}") from e
        finally:
            session.close()

    def cities(self) -> List[str]:
        """Return every city with a stored snapshot, fresh or not."""
        session = self._session()
        try:
            return get_snapshot_cities(session)
        except SQLAlchemyError as e:
            raise StoreReadError(None, f"{type(e).__name__}: {e}") from e
        finally:
            session.close()
