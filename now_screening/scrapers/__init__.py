"""
Scraper Package

Listing extractors and their shared utilities.

Exports:
    - ListingEntry: Immutable (title, href) record
    - ExtractionRule: Site-specific URL/selector configuration
    - wait_until_ready: Bounded poll-with-backoff readiness wait
    - make_absolute_url: Convert relative URLs to absolute
    - get_user_agent / get_launch_options: Browser configuration
    - BOOKMYSHOW_RULE: Default extraction rule
    - PlaywrightExtractor: Headless-browser extractor
    - parse_listings: Rendered HTML to entries
"""
from now_screening.scrapers.base import (
    BROWSER_ARGS,
    ExtractionRule,
    ListingEntry,
    get_launch_options,
    get_user_agent,
    make_absolute_url,
    wait_until_ready,
)
from now_screening.scrapers.bookmyshow import (
    BOOKMYSHOW_RULE,
    PlaywrightExtractor,
    parse_listings,
)

__all__ = [
    # Types
    "ListingEntry",
    "ExtractionRule",
    # Browser configuration
    "BROWSER_ARGS",
    "get_launch_options",
    "get_user_agent",
    # Utilities
    "make_absolute_url",
    "wait_until_ready",
    # Extractors
    "BOOKMYSHOW_RULE",
    "PlaywrightExtractor",
    "parse_listings",
]
