"""
CLI commands for Now Screening.

Provides command-line interface for:
- Warming the cache (for cron jobs)
- Refreshing or looking up a single city
- Purging stale snapshots
- Running the HTTP service

Usage:
    python -m now_screening.cli warmup
    python -m now_screening.cli refresh cuttack
    python -m now_screening.cli lookup cuttack "ballerina"
    python -m now_screening.cli --help
"""
import argparse
import asyncio
import json
import sys

from now_screening.config import settings
from now_screening.errors import ExtractionError, StoreError
from now_screening.services.orchestrator import create_orchestrator
from now_screening.services.warmup import run_warmup
from now_screening.utils.logging import get_logger

logger = get_logger(__name__)


def cmd_warmup(args: argparse.Namespace) -> int:
    """
    Warm the cache for the configured (or given) cities.

    Returns:
        0 if at least one city succeeded or there was nothing to do
        1 if every city failed
    """
    cities = [c.strip().lower() for c in args.city] if args.city else settings.WARMUP_CITIES
    logger.info("Starting warm-up from CLI")
    print("Starting warm-up...")

    result = asyncio.run(run_warmup(create_orchestrator(), cities))

    # Print summary to stdout (for cron logs)
    print("\n" + "=" * 50)
    print("WARM-UP COMPLETE")
    print("=" * 50)
    print(f"Cities attempted: {result.cities_attempted}")
    print(f"Served from cache: {result.cities_cached}")
    print(f"Freshly extracted: {result.cities_refreshed}")
    print(f"Cities failed: {result.cities_failed}")
    print(f"Movies: {result.total_movies}")
    print(f"Duration: {result.duration_seconds:.1f} seconds")

    if result.failed_cities:
        print(f"\nFailed cities: {', '.join(result.failed_cities)}")

    print("=" * 50)

    if result.cities_succeeded > 0:
        print("\nWarm-up completed successfully.")
        return 0
    elif result.cities_attempted == 0:
        print("\nNo cities to warm up.")
        return 0
    else:
        print("\nWarm-up failed - all cities failed.")
        return 1


def cmd_refresh(args: argparse.Namespace) -> int:
    """Extract one city's listings now, ignoring the cache."""
    city = args.city.strip().lower()
    orchestrator = create_orchestrator()

    try:
        result = asyncio.run(orchestrator.refresh(city))
    except ExtractionError as e:
        print(f"Refresh failed: {e}", file=sys.stderr)
        return 1

    print(f"Extracted {result.snapshot.count} movies for {city}.")
    if not result.persisted:
        print("Warning: snapshot could not be saved to the cache.", file=sys.stderr)
    return 0


def cmd_lookup(args: argparse.Namespace) -> int:
    """Run the lookup pipeline and print the JSON response."""
    city = args.city.strip().lower() or settings.DEFAULT_CITY
    orchestrator = create_orchestrator()

    try:
        result = asyncio.run(orchestrator.find_movies(city, args.query))
    except ExtractionError as e:
        print(json.dumps({"error": f"Failed to scrape movies: {e.message}"}), file=sys.stderr)
        return 1

    print(json.dumps(result.to_response(), indent=2, ensure_ascii=False))
    return 0


def cmd_purge(args: argparse.Namespace) -> int:
    """Delete snapshots older than the freshness window."""
    orchestrator = create_orchestrator()

    try:
        deleted = orchestrator.store.purge_stale()
    except StoreError as e:
        logger.error(f"Purge failed: {e}")
        print(f"Purge failed: {e}", file=sys.stderr)
        return 1

    print(f"Deleted {deleted} stale city snapshots.")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP service with uvicorn."""
    import uvicorn

    uvicorn.run(
        "now_screening.main:app",
        host=args.host or settings.HOST,
        port=args.port or settings.PORT,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="now-screening",
        description="Now Screening CLI"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    warmup_parser = subparsers.add_parser(
        "warmup",
        help="Warm the cache for WARMUP_CITIES"
    )
    warmup_parser.add_argument(
        "--city",
        action="append",
        help="City to warm up (repeatable, overrides WARMUP_CITIES)"
    )
    warmup_parser.set_defaults(func=cmd_warmup)

    refresh_parser = subparsers.add_parser(
        "refresh",
        help="Extract one city's listings now"
    )
    refresh_parser.add_argument("city", help="City slug, e.g. cuttack")
    refresh_parser.set_defaults(func=cmd_refresh)

    lookup_parser = subparsers.add_parser(
        "lookup",
        help="Look up movies for a city"
    )
    lookup_parser.add_argument("city", help="City slug, e.g. cuttack")
    lookup_parser.add_argument("query", nargs="?", default=None, help="Movie title to search for")
    lookup_parser.set_defaults(func=cmd_lookup)

    purge_parser = subparsers.add_parser(
        "purge",
        help="Delete stale city snapshots"
    )
    purge_parser.set_defaults(func=cmd_purge)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service"
    )
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
