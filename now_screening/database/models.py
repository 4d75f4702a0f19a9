"""
SQLAlchemy ORM models for the listings cache.

Models:
- CitySnapshot: one header row per city holding the capture time
- Movie: one row per listing in the city's current snapshot

The header row lets an empty snapshot (a city with no listings) be cached
just like a populated one. Header and rows for a city are always written
in the same transaction.

Naming conventions:
- Tables: plural snake_case (city_snapshots, movies)
- Columns: snake_case (captured_at, scraped_at)
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from now_screening.database.connection import Base


def utc_now_naive() -> datetime:
    """Current UTC time without tzinfo, as stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CitySnapshot(Base):
    """
    Snapshot header for a city.

    Attributes:
        city: City slug as used in the listings URL (e.g. "cuttack")
        captured_at: When the snapshot was extracted (naive UTC)
        entry_count: Number of movie rows written with this header
    """

    __tablename__ = "city_snapshots"

    id = Column(Integer, primary_key=True, index=True)
    city = Column(String(100), nullable=False, unique=True, index=True)
    captured_at = Column(DateTime, nullable=False, default=utc_now_naive, index=True)
    entry_count = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<CitySnapshot(city='{self.city}', captured_at={self.captured_at}, "
            f"entry_count={self.entry_count})>"
        )


class Movie(Base):
    """
    A bookable movie listing for a city.

    Attributes:
        city: City slug
        title: Normalized movie title
        href: Absolute booking link
        position: Order in which the listing was extracted
        scraped_at: Capture time of the snapshot this row belongs to
    """

    __tablename__ = "movies"
    __table_args__ = (
        UniqueConstraint("city", "href", name="uq_movies_city_href"),
    )

    id = Column(Integer, primary_key=True, index=True)
    city = Column(String(100), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    href = Column(String(1000), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    scraped_at = Column(DateTime, nullable=False, default=utc_now_naive, index=True)

    def __repr__(self) -> str:
        title_display = self.title[:30] + "..." if len(self.title) > 30 else self.title
        return f"<Movie(id={self.id}, city='{self.city}', title='{title_display}')>"
