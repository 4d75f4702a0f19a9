"""
Warm-up Scheduler for the listings cache.

Runs the refresh pipeline for a fixed list of cities at process start so
the first real requests hit a warm cache.

Key features:
- Sequential execution, one browser at a time
- Error isolation: one city's failure doesn't stop the others
- Summary logging
"""
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from now_screening.config import settings
from now_screening.errors import ExtractionError
from now_screening.services.orchestrator import RefreshOrchestrator
from now_screening.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class WarmupResult:
    """Result of a warm-up run."""

    cities_attempted: int = 0
    cities_cached: int = 0
    cities_refreshed: int = 0
    cities_failed: int = 0
    cities_unpersisted: int = 0
    total_movies: int = 0
    failed_cities: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __str__(self) -> str:
        return (
            f"WarmupResult(attempted={self.cities_attempted}, "
            f"cached={self.cities_cached}, refreshed={self.cities_refreshed}, "
            f"failed={self.cities_failed}, movies={self.total_movies}, "
            f"duration={self.duration_seconds:.1f}s)"
        )

    @property
    def cities_succeeded(self) -> int:
        return self.cities_cached + self.cities_refreshed

    @property
    def is_success(self) -> bool:
        """Check if every attempted city ended up with a snapshot."""
        return self.cities_failed == 0 and self.cities_attempted > 0


async def run_warmup(
    orchestrator: RefreshOrchestrator,
    cities: Optional[Sequence[str]] = None,
) -> WarmupResult:
    """
    Warm the cache for each city, one after another.

    Cities with a fresh snapshot are skipped (no extraction). Extraction
    failures are logged and recorded, then the next city is tried.

    Args:
        orchestrator: Pipeline to run per city
        cities: City slugs (defaults to settings.WARMUP_CITIES)

    Returns:
        WarmupResult with per-city outcome counts
    """
    cities = list(settings.WARMUP_CITIES if cities is None else cities)

    start_time = time.time()
    result = WarmupResult(started_at=datetime.now(timezone.utc))

    logger.info(f"Starting initial movie extraction for cities: {', '.join(cities) or '(none)'}")

    for city in cities:
        result.cities_attempted += 1
        try:
            refresh = await orchestrator.get_snapshot(city)
        except ExtractionError as e:
            logger.error(f"Failed to extract movies for {city}: {e}")
            result.cities_failed += 1
            result.failed_cities.append(city)
            continue
        except Exception as e:
            logger.exception(f"Unexpected error warming up {city}: {type(e).__name__}: {e}")
            result.cities_failed += 1
            result.failed_cities.append(city)
            continue

        result.total_movies += refresh.snapshot.count
        if refresh.from_cache:
            result.cities_cached += 1
            logger.info(
                f"Found {refresh.snapshot.count} cached movies for {city} "
                "(still fresh), skipping extraction"
            )
        else:
            result.cities_refreshed += 1
            if not refresh.persisted:
                result.cities_unpersisted += 1
            logger.info(f"Extracted {refresh.snapshot.count} movies for {city}")

    result.duration_seconds = time.time() - start_time
    result.completed_at = datetime.now(timezone.utc)
    _log_warmup_summary(result)
    return result


def _log_warmup_summary(result: WarmupResult) -> None:
    """Log a summary of the warm-up results."""
    logger.info("=" * 60)
    logger.info("WARM-UP SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Cities attempted: {result.cities_attempted}")
    logger.info(f"Served from cache: {result.cities_cached}")
    logger.info(f"Freshly extracted: {result.cities_refreshed}")
    logger.info(f"Cities failed: {result.cities_failed}")

    if result.failed_cities:
        logger.info(f"Failed cities: {', '.join(result.failed_cities)}")
    if result.cities_unpersisted:
        logger.info(f"Extracted but not cached: {result.cities_unpersisted}")

    logger.info(f"Total movies: {result.total_movies}")
    logger.info(f"Duration: {result.duration_seconds:.1f} seconds")
    logger.info("=" * 60)
