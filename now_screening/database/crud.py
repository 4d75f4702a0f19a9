"""
Database CRUD operations for the listings cache.

Provides functions for:
- Reading a city's snapshot (header and rows in one statement)
- Replacing a city's snapshot inside a single transaction
- Purging snapshots older than a cutoff

All datetimes passed in and returned here are naive UTC.
"""
from datetime import datetime
from typing import List, Optional, Protocol, Sequence, Tuple

from sqlalchemy.orm import Session

from now_screening.database.models import CitySnapshot, Movie
from now_screening.utils.logging import get_logger

logger = get_logger(__name__)


class EntryLike(Protocol):
    title: str
    href: str


# =============================================================================
# Snapshot Reads
# =============================================================================


def get_snapshot_rows(
    session: Session,
    city: str,
    fresh_after: Optional[datetime] = None,
) -> Optional[Tuple[datetime, List[Tuple[str, str]]]]:
    """
    Load a city's snapshot header and rows with one SELECT.

    Header and rows are read with an outer join in a single statement, so a
    replace committing at the same time is seen either entirely or not at all.

    Args:
        session: Database session
        city: City slug
        fresh_after: If given, only a header captured strictly after this
                     time is returned

    Returns:
        (captured_at, [(title, href), ...]) ordered by extraction position,
        or None if the city has no (fresh) snapshot.
    """
    query = (
        session.query(CitySnapshot.captured_at, Movie.title, Movie.href)
        .outerjoin(Movie, Movie.city == CitySnapshot.city)
        .filter(CitySnapshot.city == city)
    )
    if fresh_after is not None:
        query = query.filter(CitySnapshot.captured_at > fresh_after)

    rows = query.order_by(Movie.position, Movie.id).all()
    if not rows:
        return None

    captured_at = rows[0][0]
    entries = [(title, href) for _, title, href in rows if href is not None]
    return captured_at, entries


def get_snapshot_cities(session: Session) -> List[str]:
    """Return all cities with a stored snapshot header, regardless of age."""
    return [row[0] for row in session.query(CitySnapshot.city).order_by(CitySnapshot.city).all()]


# =============================================================================
# Snapshot Writes
# =============================================================================


def replace_city_movies(
    session: Session,
    city: str,
    entries: Sequence[EntryLike],
    captured_at: datetime,
) -> CitySnapshot:
    """
    Replace a city's snapshot atomically.

    Deletes every movie row for the city, upserts the header and inserts the
    new rows, then commits once. Any failure rolls the whole transaction back
    and re-raises, leaving the previous snapshot in place.

    Args:
        session: Database session
        city: City slug
        entries: Listings in extraction order (objects with title and href)
        captured_at: Capture time for the new snapshot

    Returns:
        The committed CitySnapshot header
    """
    try:
        session.query(Movie).filter(Movie.city == city).delete(synchronize_session=False)

        header = session.query(CitySnapshot).filter(CitySnapshot.city == city).first()
        if header is None:
            header = CitySnapshot(city=city)
            session.add(header)
        header.captured_at = captured_at
        header.entry_count = len(entries)

        for position, entry in enumerate(entries):
            session.add(Movie(
                city=city,
                title=entry.title,
                href=entry.href,
                position=position,
                scraped_at=captured_at,
            ))
            # Flush per row so a bad row fails before commit
            session.flush()

        session.commit()
    except Exception:
        session.rollback()
        raise

    session.refresh(header)
    logger.info(f"Replaced snapshot for {city} with {len(entries)} movies")
    return header


def delete_stale_snapshots(session: Session, older_than: datetime) -> int:
    """
    Delete snapshots captured at or before a cutoff.

    Headers and their rows are removed in the same transaction.

    Args:
        session: Database session
        older_than: Cutoff time; snapshots with captured_at <= cutoff go

    Returns:
        Number of snapshot headers deleted
    """
    try:
        stale_cities = [
            row[0]
            for row in session.query(CitySnapshot.city)
            .filter(CitySnapshot.captured_at <= older_than)
            .all()
        ]
        if not stale_cities:
            return 0

        session.query(Movie).filter(Movie.city.in_(stale_cities)).delete(synchronize_session=False)
        deleted = (
            session.query(CitySnapshot)
            .filter(CitySnapshot.city.in_(stale_cities))
            .delete(synchronize_session=False)
        )
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Purged {deleted} stale snapshots: {', '.join(stale_cities)}")
    return deleted
