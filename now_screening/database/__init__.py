"""
Database module - engine configuration, ORM models and CRUD helpers.
"""
from now_screening.database.connection import (
    Base,
    DATABASE_URL,
    SessionLocal,
    build_engine,
    engine,
    get_db,
    is_sqlite_url,
)
from now_screening.database.models import CitySnapshot, Movie, utc_now_naive
from now_screening.database.crud import (
    delete_stale_snapshots,
    get_snapshot_cities,
    get_snapshot_rows,
    replace_city_movies,
)

__all__ = [
    # Connection
    "Base",
    "DATABASE_URL",
    "SessionLocal",
    "build_engine",
    "engine",
    "get_db",
    "is_sqlite_url",
    # Models
    "CitySnapshot",
    "Movie",
    "utc_now_naive",
    # CRUD
    "delete_stale_snapshots",
    "get_snapshot_cities",
    "get_snapshot_rows",
    "replace_city_movies",
]
