"""
Listings extractor for in.bookmyshow.com

Renders the city's explore page in a headless Chromium (Playwright) and
parses the listing anchors with BeautifulSoup.

Site Structure:
- Listings page: https://in.bookmyshow.com/explore/home/{city}
- Each bookable movie is an <a href=".../movies/{city}/{slug}/{id}">
- The movie title sits in a nested <h3>; some cards only have anchor text
- Cards are rendered client-side after the body becomes visible

Every call launches its own browser and always closes it, including on
timeout and cancellation.
"""
import asyncio
from typing import List, Optional

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from now_screening.config import settings
from now_screening.errors import ExtractionError
from now_screening.scrapers.base import (
    ExtractionRule,
    ListingEntry,
    ReadyPredicate,
    get_launch_options,
    get_user_agent,
    make_absolute_url,
    wait_until_ready,
)
from now_screening.utils.text import normalize_title
from now_screening.utils.logging import get_logger

logger = get_logger(__name__)

BOOKMYSHOW_RULE = ExtractionRule(
    name="bookmyshow",
    url_template=settings.LISTINGS_URL_TEMPLATE,
    link_selector_template='a[href*="/movies/{city}/"]',
    title_selector="h3",
)


def parse_listings(html: str, city: str, page_url: str, rule: ExtractionRule = BOOKMYSHOW_RULE) -> List[ListingEntry]:
    """Parse rendered listings HTML into entries.

    Anchors without an href or a title are skipped, and repeated links keep
    only their first occurrence.

    Args:
        html: Rendered page HTML
        city: City slug the selector is scoped to
        page_url: URL the page was loaded from, for resolving relative links
        rule: Extraction rule to apply

    Returns:
        Entries in document order.
    """
    soup = BeautifulSoup(html, "html.parser")
    entries: List[ListingEntry] = []
    seen_hrefs = set()

    for link in soup.select(rule.selector_for(city)):
        raw_href = (link.get("href") or "").strip()
        if not raw_href:
            continue

        href = make_absolute_url(page_url, raw_href)
        if href in seen_hrefs:
            continue

        heading = link.select_one(rule.title_selector)
        source = heading if heading is not None else link
        title = normalize_title(source.get_text(" ", strip=True))
        if not title:
            continue

        seen_hrefs.add(href)
        entries.append(ListingEntry(title=title, href=href))

    return entries


def make_links_rendered_predicate(page: Page, selector: str) -> ReadyPredicate:
    """Build a readiness check that passes once a listing anchor exists."""

    async def links_rendered() -> bool:
        return await page.locator(selector).count() > 0

    return links_rendered


class PlaywrightExtractor:
    """
    Extracts a city's listings with a fresh headless browser per call.

    Attributes:
        rule: Site-specific extraction rule
        timeout: Overall bound for one extraction, in seconds
        settle_delay: Maximum wait for client-side rendering, in seconds
        headless: Run Chromium without a window
    """

    def __init__(
        self,
        rule: ExtractionRule = BOOKMYSHOW_RULE,
        timeout: Optional[float] = None,
        settle_delay: Optional[float] = None,
        headless: Optional[bool] = None,
    ):
        self.rule = rule
        self.timeout = settings.EXTRACTION_TIMEOUT if timeout is None else timeout
        self.settle_delay = settings.SETTLE_DELAY if settle_delay is None else settle_delay
        self.headless = headless

    async def extract(self, city: str) -> List[ListingEntry]:
        """
        Extract the listings for a city.

        Args:
            city: City slug (e.g. "cuttack")

        Returns:
            Entries in page order; may be empty.

        Raises:
            ExtractionError: On timeout, navigation, browser or parse failure.
        """
        logger.info(f"Extracting listings for {city} from {self.rule.name}")
        try:
            entries = await asyncio.wait_for(self._run(city), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Extraction for {city} timed out after {self.timeout}s")
            raise ExtractionError(city, f"timed out after {self.timeout}s", e) from e
        except PlaywrightError as e:
            logger.error(f"Extraction for {city} failed: {e}")
            raise ExtractionError(city, str(e), e) from e
        except Exception as e:
            logger.error(f"Extraction for {city} failed: {type(e).__name__}: {e}")
            raise ExtractionError(city, f"{type(e).__name__}: {e}", e) from e

        logger.info(f"Extracted {len(entries)} listings for {city}")
        return entries

    async def _run(self, city: str) -> List[ListingEntry]:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(**get_launch_options(self.headless))
            try:
                context = await browser.new_context(user_agent=get_user_agent())
                page = await context.new_page()
                return await self._scrape_page(page, city)
            finally:
                await browser.close()

    async def _scrape_page(self, page: Page, city: str) -> List[ListingEntry]:
        url = self.rule.url_for(city)
        timeout_ms = self.timeout * 1000

        await page.goto(url, timeout=timeout_ms)
        await page.wait_for_selector("body", state="visible", timeout=timeout_ms)

        selector = self.rule.selector_for(city)
        ready = await wait_until_ready(
            make_links_rendered_predicate(page, selector),
            max_wait=self.settle_delay,
        )
        if not ready:
            logger.warning(
                f"No listing links rendered for {city} within {self.settle_delay}s, "
                "parsing page as-is"
            )

        html = await page.content()
        return parse_listings(html, city, page.url or url, self.rule)
