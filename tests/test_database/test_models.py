"""
Tests for SQLAlchemy ORM models.

Tests verify:
- Table names are plural snake_case
- Movie rows are unique per (city, href)
- Column limits and defaults
- __repr__ output
"""
import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError

from now_screening.database.models import CitySnapshot, Movie, utc_now_naive


class TestTableNames:
    """Tests for table naming conventions (plural snake_case)."""

    def test_city_snapshot_table_name(self):
        assert CitySnapshot.__tablename__ == "city_snapshots"

    def test_movie_table_name(self):
        assert Movie.__tablename__ == "movies"


class TestColumns:
    """Tests for column definitions."""

    def test_movie_columns(self):
        columns = {c.name for c in inspect(Movie).columns}
        assert columns == {"id", "city", "title", "href", "position", "scraped_at"}

    def test_city_snapshot_columns(self):
        columns = {c.name for c in inspect(CitySnapshot).columns}
        assert columns == {"id", "city", "captured_at", "entry_count"}

    def test_string_limits(self):
        assert Movie.__table__.c.title.type.length == 500
        assert Movie.__table__.c.href.type.length == 1000

    def test_utc_now_naive_has_no_tzinfo(self):
        assert utc_now_naive().tzinfo is None


class TestConstraints:
    """Tests for database constraints."""

    def test_same_href_in_one_city_rejected(self, test_session):
        test_session.add(Movie(city="cuttack", title="A", href="https://x/1", position=0))
        test_session.add(Movie(city="cuttack", title="B", href="https://x/1", position=1))

        with pytest.raises(IntegrityError):
            test_session.commit()

    def test_same_href_in_two_cities_allowed(self, test_session):
        test_session.add(Movie(city="cuttack", title="A", href="https://x/1", position=0))
        test_session.add(Movie(city="puri", title="A", href="https://x/1", position=0))
        test_session.commit()

        assert test_session.query(Movie).count() == 2

    def test_one_header_per_city(self, test_session):
        test_session.add(CitySnapshot(city="cuttack"))
        test_session.add(CitySnapshot(city="cuttack"))

        with pytest.raises(IntegrityError):
            test_session.commit()

    def test_defaults_applied(self, test_session):
        header = CitySnapshot(city="cuttack")
        movie = Movie(city="cuttack", title="A", href="https://x/1")
        test_session.add_all([header, movie])
        test_session.commit()

        assert header.entry_count == 0
        assert header.captured_at is not None
        assert movie.position == 0
        assert movie.scraped_at is not None


class TestRepr:
    """Tests for __repr__ output."""

    def test_movie_repr_truncates_long_titles(self):
        movie = Movie(city="cuttack", title="X" * 40, href="https://x/1")
        assert "..." in repr(movie)

    def test_city_snapshot_repr(self):
        header = CitySnapshot(city="cuttack", entry_count=3)
        assert "cuttack" in repr(header)
        assert "entry_count=3" in repr(header)
