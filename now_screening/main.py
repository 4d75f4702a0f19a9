"""
Now Screening - Main FastAPI Application

Answers "is movie X bookable in city Y, and where?" for the browser
extension:

    GET /movies?city=cuttack&query=Ballerina
    -> 200 {"city": "cuttack", "movies": [{"title": ..., "href": ...}], "count": 1}
    -> 500 {"error": "Failed to scrape movies: ..."}

Database Migrations:
    The schema is managed with Alembic. Apply it before starting:

        alembic upgrade head

    Startup verifies connectivity and warns about missing tables, but does
    NOT run migrations itself.

Warm-up:
    With WARMUP_ON_STARTUP=true (default) the cities in WARMUP_CITIES are
    loaded into the cache before the first request is served. A failed
    warm-up is logged and never blocks startup.

Logging:
    Configured on package import (see now_screening.utils.logging).
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

# Importing the package first initializes logging
from now_screening.config import settings
from now_screening.database import engine
from now_screening.errors import ExtractionError
from now_screening.services.orchestrator import RefreshOrchestrator, create_orchestrator
from now_screening.services.warmup import run_warmup
from now_screening.utils.logging import get_logger

logger = get_logger(__name__)

EXPECTED_TABLES = ("city_snapshots", "movies")


def verify_database() -> None:
    """
    Verify database connectivity and schema on startup.

    Checks that:
    1. The database is reachable
    2. Alembic has been run (alembic_version table exists)
    3. The cache tables exist

    Missing tables are logged as warnings; an unreachable database is
    logged and re-raised.
    """
    try:
        with engine.connect() as conn:
            existing_tables = set(inspect(conn).get_table_names())
    except Exception as e:
        logger.error(f"Database verification failed: {e}")
        raise

    if "alembic_version" not in existing_tables:
        logger.warning(
            "Alembic version table not found. "
            "Run 'alembic upgrade head' to apply migrations."
        )
        return

    missing_tables = set(EXPECTED_TABLES) - existing_tables
    if missing_tables:
        logger.warning(
            f"Missing tables: {sorted(missing_tables)}. "
            "Run 'alembic upgrade head' to apply pending migrations."
        )
    else:
        logger.info("Database verification successful. All expected tables exist.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
        - Verifies database connectivity and schema
        - Builds the orchestrator shared by all requests
        - Warms the cache for WARMUP_CITIES (if enabled)
    """
    verify_database()

    orchestrator = create_orchestrator()
    app.state.orchestrator = orchestrator

    if settings.WARMUP_ON_STARTUP:
        try:
            result = await run_warmup(orchestrator, settings.WARMUP_CITIES)
            logger.info(f"Initial movie extraction completed: {result}")
        except Exception as e:
            logger.error(f"Warm-up failed: {type(e).__name__}: {e}")

    yield


app = FastAPI(
    title="Now Screening",
    description="Cached movie listings lookup per city",
    version="0.1.0",
    lifespan=lifespan,
)

# The consumer is a browser extension running on third-party pages
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


def get_orchestrator(request: Request) -> RefreshOrchestrator:
    """Dependency returning the orchestrator built at startup."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = create_orchestrator()
        request.app.state.orchestrator = orchestrator
    return orchestrator


def normalize_city(city: Optional[str]) -> str:
    """Trim and lowercase a city slug, falling back to DEFAULT_CITY."""
    cleaned = (city or "").strip().lower()
    return cleaned or settings.DEFAULT_CITY


@app.get("/movies")
async def get_movies(
    city: Optional[str] = Query(None, description="City slug, e.g. 'cuttack'"),
    query: Optional[str] = Query(None, description="Movie title to search for"),
    orchestrator: RefreshOrchestrator = Depends(get_orchestrator),
):
    """
    Return the bookable movies for a city, optionally ranked by a title query.

    The snapshot comes from the cache while it is fresh; otherwise the
    listings page is extracted again. A query filters and orders the
    movies by approximate title match.
    """
    city = normalize_city(city)

    try:
        result = await orchestrator.find_movies(city, query)
    except ExtractionError as e:
        return JSONResponse(
            status_code=500,
            content={"error": f"Failed to scrape movies: {e.message}"},
        )

    logger.info(
        f"Returning {result.count} movies for {city} "
        f"({'cache' if result.from_cache else 'fresh'}, query={query!r})"
    )
    return result.to_response()


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
