"""
Services Package

Pipeline services for the listings lookup.

Exports:
    - normalize_title: Normalize titles and queries identically
    - fuzzy_score: Subsequence score of a query against a title
    - match: Rank snapshot entries against a query
    - Snapshot: One city's listings at one capture time
    - CacheStore: Persistent snapshot store with atomic replace
    - RefreshOrchestrator: Cache-or-extract decision per request
    - RefreshResult / MovieSearchResult: Pipeline outcomes
    - create_orchestrator: Orchestrator wired to the configured database and browser
    - WarmupResult / run_warmup: Startup cache warm-up
"""
from now_screening.services.matching import fuzzy_score, match, normalize_title, rank
from now_screening.services.cache import CacheStore, Snapshot, utc_now
from now_screening.services.orchestrator import (
    MovieSearchResult,
    RefreshOrchestrator,
    RefreshResult,
    create_orchestrator,
)
from now_screening.services.warmup import WarmupResult, run_warmup

__all__ = [
    # Matching
    "fuzzy_score",
    "match",
    "normalize_title",
    "rank",
    # Cache
    "CacheStore",
    "Snapshot",
    "utc_now",
    # Orchestrator
    "MovieSearchResult",
    "RefreshOrchestrator",
    "RefreshResult",
    "create_orchestrator",
    # Warm-up
    "WarmupResult",
    "run_warmup",
]
