"""
Refresh Orchestrator for city listings.

Decides per request whether the cached snapshot can be served or whether
the listings page has to be extracted again.

Request flow:
    CHECK_CACHE -> SERVE_CACHED
    CHECK_CACHE -> EXTRACT -> PERSIST -> SERVE_FRESH

Key rules:
- A fresh cached snapshot is served without extraction or write
- A failed cache read counts as a cache miss
- A failed extraction fails the request; stale data is never served
- A failed cache write is logged and the fresh entries are served anyway
- Store calls run in a worker thread so other requests keep flowing
"""
import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

from now_screening.config import settings
from now_screening.database.connection import SessionLocal
from now_screening.errors import StorePersistError, StoreReadError
from now_screening.scrapers.base import ListingEntry
from now_screening.scrapers.bookmyshow import PlaywrightExtractor
from now_screening.services.cache import CacheStore, Clock, Snapshot, utc_now
from now_screening.services.matching import match
from now_screening.utils.logging import get_logger

logger = get_logger(__name__)

SOURCE_CACHE = "cache"
SOURCE_FRESH = "fresh"


class Extractor(Protocol):
    async def extract(self, city: str) -> List[ListingEntry]:
        ...


class SnapshotStore(Protocol):
    def read(self, city: str, now=None) -> Optional[Snapshot]:
        ...

    def replace(self, city: str, entries: Sequence[ListingEntry], captured_at=None) -> Snapshot:
        ...


@dataclass
class RefreshResult:
    """Outcome of one pipeline run for a city."""

    snapshot: Snapshot
    source: str = SOURCE_CACHE
    persisted: bool = True

    @property
    def from_cache(self) -> bool:
        return self.source == SOURCE_CACHE


@dataclass
class MovieSearchResult:
    """Response shape for a movie lookup."""

    city: str
    movies: List[ListingEntry] = field(default_factory=list)
    from_cache: bool = False

    @property
    def count(self) -> int:
        return len(self.movies)

    def to_response(self) -> dict:
        return {
            "city": self.city,
            "movies": [movie.to_dict() for movie in self.movies],
            "count": self.count,
        }


class RefreshOrchestrator:
    """
    Serves city snapshots from the cache, extracting on miss.

    Args:
        store: Snapshot store (read / replace)
        extractor: Listing extractor (async extract)
        clock: Returns the current aware UTC time
        deduplicate: Share one in-flight extraction between concurrent
                     cache misses for the same city
    """

    def __init__(
        self,
        store: SnapshotStore,
        extractor: Extractor,
        clock: Clock = utc_now,
        deduplicate: bool = False,
    ):
        self.store = store
        self.extractor = extractor
        self._clock = clock
        self.deduplicate = deduplicate
        self._in_flight: Dict[str, "asyncio.Future[RefreshResult]"] = {}

    async def get_snapshot(self, city: str) -> RefreshResult:
        """
        Return a fresh snapshot for the city.

        Raises:
            ExtractionError: If the cache missed and extraction failed.
        """
        now = self._clock()
        cached = await self._read_cache(city, now)
        if cached is not None:
            logger.info(f"Cache hit for {city} ({cached.count} movies)")
            return RefreshResult(snapshot=cached, source=SOURCE_CACHE, persisted=True)

        logger.info(f"No fresh cache for {city}, extracting...")
        if self.deduplicate:
            return await self._refresh_shared(city)
        return await self.refresh(city)

    async def refresh(self, city: str) -> RefreshResult:
        """
        Extract the city's listings and persist them, ignoring the cache.

        Raises:
            ExtractionError: If extraction failed; the cache is untouched.
        """
        entries = await self.extractor.extract(city)
        captured_at = self._clock()
        snapshot = Snapshot(city=city, entries=tuple(entries), captured_at=captured_at)

        persisted = await self._persist(snapshot)
        return RefreshResult(snapshot=snapshot, source=SOURCE_FRESH, persisted=persisted)

    async def find_movies(self, city: str, query: Optional[str] = None) -> MovieSearchResult:
        """
        Run the full pipeline: snapshot lookup, then approximate title search.

        Args:
            city: City slug
            query: Optional free-text title query

        Returns:
            MovieSearchResult; an empty movie list is a valid answer.

        Raises:
            ExtractionError: If no snapshot could be obtained.
        """
        result = await self.get_snapshot(city)
        movies = match(result.snapshot.entries, query)
        return MovieSearchResult(city=city, movies=movies, from_cache=result.from_cache)

    async def _read_cache(self, city: str, now) -> Optional[Snapshot]:
        try:
            return await asyncio.to_thread(self.store.read, city, now)
        except StoreReadError as e:
            logger.error(f"Error querying cache for {city}: {e}")
            return None

    async def _persist(self, snapshot: Snapshot) -> bool:
        try:
            await asyncio.to_thread(
                self.store.replace, snapshot.city, snapshot.entries, snapshot.captured_at
            )
        except StorePersistError as e:
            logger.error(f"Failed to save {snapshot.count} movies for {snapshot.city}: {e}")
            return False

        logger.info(f"Saved {snapshot.count} movies to cache for {snapshot.city}")
        return True

    async def _refresh_shared(self, city: str) -> RefreshResult:
        """Join an in-flight refresh for the city, or start one."""
        pending = self._in_flight.get(city)
        if pending is not None:
            logger.info(f"Joining in-flight extraction for {city}")
            return await asyncio.shield(pending)

        future: "asyncio.Future[RefreshResult]" = asyncio.get_running_loop().create_future()
        self._in_flight[city] = future
        try:
            result = await self.refresh(city)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so a refresh nobody joined does not log a warning
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            del self._in_flight[city]


def create_orchestrator(
    store: Optional[SnapshotStore] = None,
    extractor: Optional[Extractor] = None,
) -> RefreshOrchestrator:
    """
    Build an orchestrator wired to the configured database and browser.

    Args:
        store: Override the default CacheStore on SessionLocal
        extractor: Override the default PlaywrightExtractor

    Returns:
        RefreshOrchestrator using settings.DEDUPLICATE_REFRESH
    """
    return RefreshOrchestrator(
        store=store if store is not None else CacheStore(SessionLocal),
        extractor=extractor if extractor is not None else PlaywrightExtractor(),
        deduplicate=settings.DEDUPLICATE_REFRESH,
    )
