"""
Scraper Base Utilities

Shared pieces for listing extractors:
- ListingEntry: the immutable (title, href) record every extractor returns
- ExtractionRule: site-specific URL and selector configuration
- Browser launch options and User-Agent
- Bounded poll-with-backoff readiness wait
- URL utilities
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import quote, urljoin

from now_screening.config import settings
from now_screening.utils.logging import get_logger

logger = get_logger(__name__)

# Chromium flags for running inside containers
BROWSER_ARGS: List[str] = [
    "--disable-gpu",
    "--no-sandbox",
    "--disable-dev-shm-usage",
]

# Readiness polling defaults
READY_POLL_INITIAL = 0.25  # seconds before the second check
READY_POLL_BACKOFF = 2.0
READY_POLL_MAX_INTERVAL = 2.0

ReadyPredicate = Callable[[], Awaitable[bool]]


@dataclass(frozen=True)
class ListingEntry:
    """A bookable listing.

    Attributes:
        title: Normalized movie title
        href: Absolute booking URL
    """

    title: str
    href: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "href": self.href}


@dataclass(frozen=True)
class ExtractionRule:
    """Site-specific mapping from a city to its listings page and links.

    Attributes:
        name: Source name used in logs (e.g. "bookmyshow")
        url_template: Listings page URL with a {city} placeholder
        link_selector_template: CSS selector for listing anchors with a {city} placeholder
        title_selector: Nested element preferred for the title; the anchor
                        text is used when it is missing
    """

    name: str
    url_template: str
    link_selector_template: str
    title_selector: str = "h3"

    def url_for(self, city: str) -> str:
        return self.url_template.format(city=quote(city, safe=""))

    def selector_for(self, city: str) -> str:
        return self.link_selector_template.format(city=escape_css_string(city))


def escape_css_string(value: str) -> str:
    """Escape a value for use inside a double-quoted CSS attribute selector."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\a ")
        .replace("\r", "\\d ")
    )


def get_user_agent() -> str:
    """Return the User-Agent the headless browser presents."""
    return settings.USER_AGENT


def get_launch_options(headless: Optional[bool] = None) -> Dict[str, Any]:
    """Keyword arguments for ``playwright.chromium.launch``."""
    return {
        "headless": settings.HEADLESS if headless is None else headless,
        "args": list(BROWSER_ARGS),
    }


def make_absolute_url(base_url: str, relative_url: str) -> str:
    """Convert a relative URL to an absolute URL.

    Examples:
        >>> make_absolute_url("https://in.bookmyshow.com/explore/home/cuttack", "/movies/cuttack/x/ET1")
        'https://in.bookmyshow.com/movies/cuttack/x/ET1'
        >>> make_absolute_url("https://in.bookmyshow.com/", "https://cdn.example.com/a")
        'https://cdn.example.com/a'
    """
    return urljoin(base_url, relative_url)


async def wait_until_ready(
    predicate: ReadyPredicate,
    max_wait: float,
    initial_interval: float = READY_POLL_INITIAL,
    backoff: float = READY_POLL_BACKOFF,
    max_interval: float = READY_POLL_MAX_INTERVAL,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Poll ``predicate`` with exponential backoff until it is true or time runs out.

    The listings page renders asynchronously and exposes no readiness
    signal, so the extractor polls for the content it needs instead of
    sleeping for a fixed time. Exceptions raised by the predicate count
    as "not ready yet".

    Args:
        predicate: Async callable returning True once the page is usable
        max_wait: Upper bound in seconds for the whole wait
        initial_interval: Delay before the second check
        backoff: Multiplier applied to the delay after each failed check
        max_interval: Cap for a single delay
        sleep: Awaitable sleep, injectable for tests
        clock: Monotonic clock, injectable for tests

    Returns:
        True if the predicate succeeded, False if max_wait elapsed first.
    """
    deadline = clock() + max_wait
    interval = initial_interval

    while True:
        try:
            if await predicate():
                return True
        except Exception as e:
            logger.debug(f"Readiness check raised {type(e).__name__}: {e}")

        remaining = deadline - clock()
        if remaining <= 0:
            return False

        await sleep(min(interval, remaining, max_interval))
        interval *= backoff
