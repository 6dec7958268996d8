"""Paginated listing crawler."""

from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging
from datetime import UTC, datetime
from typing import Awaitable, Callable
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .config import DEFAULT_START_URL
from .errors import FetchError
from .extraction import FetchedPage, ListingStrategy
from .fetcher import FetchClient
from .models import CrawlResult, ListingRecord

logger = logging.getLogger(__name__)


class CrawlState(enum.Enum):
    IDLE = "idle"
    FETCHING_PAGE = "fetching_page"
    EXTRACTING = "extracting"
    CHECK_NEXT = "check_next"
    DONE = "done"
    ABORTED = "aborted"


def _is_next_link(anchor) -> bool:
    rel = anchor.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    if "next" not in [r.lower() for r in rel]:
        return False
    disabled = str(anchor.get("aria-disabled", "false")).strip().lower()
    return disabled != "true"


def find_next_page_url(html: str, base_url: str) -> str | None:
    """Absolute URL of an enabled "Next page" link, or None."""
    if not html:
        return None
    soup = BeautifulSoup(html, "lxml")
    for anchor in soup.select('a[aria-label="Next page"]'):
        if not _is_next_link(anchor):
            continue
        href = (anchor.get("href") or "").strip()
        if href:
            return urljoin(base_url, href)
    return None


class ListingCrawler:
    """Walk the listing pages one at a time and collect unique product cards.

    Each page is fetched, run through the strategy cascade (first non-empty
    result wins), deduplicated against everything seen so far and stamped
    with its page number. Pagination stops at a page with no cards, at a
    missing or disabled "Next page" link, or at `max_pages`.
    """

    def __init__(
        self,
        fetcher: FetchClient,
        strategies: list[ListingStrategy],
        *,
        start_url: str = DEFAULT_START_URL,
        max_pages: int = 10,
        page_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ):
        if not strategies:
            raise ValueError("At least one listing strategy is required")
        if max_pages < 1:
            raise ValueError(f"max_pages must be >= 1, got {max_pages}")
        self.fetcher = fetcher
        self.strategies = list(strategies)
        self.start_url = start_url
        self.max_pages = max_pages
        self.page_delay = page_delay
        self._sleep = sleep or asyncio.sleep
        self.state = CrawlState.IDLE
        self._records: list[ListingRecord] = []
        self._pages_seen: set[int] = set()

    @property
    def pages_covered(self) -> int:
        """Distinct pages that contributed records so far in the current run."""
        return len(self._pages_seen)

    def _transition(self, state: CrawlState) -> None:
        logger.debug(f"Crawler state {self.state.value} -> {state.value}")
        self.state = state

    async def extract_page(self, page: FetchedPage) -> list[ListingRecord]:
        """Run the strategy cascade and return the first non-empty result."""
        for strategy in self.strategies:
            records = await strategy.extract(page)
            if records:
                logger.debug(f"Strategy {strategy.name} extracted {len(records)} cards from {page.url}")
                return records
            logger.debug(f"Strategy {strategy.name} found nothing on {page.url}")
        return []

    async def crawl(self) -> CrawlResult:
        """Run one crawl. Raises FetchError if any page cannot be fetched."""
        self._transition(CrawlState.IDLE)
        self._records = []
        self._pages_seen = set()
        seen_ids: set[str] = set()

        url: str | None = self.start_url
        page_number = 1
        while url:
            self._transition(CrawlState.FETCHING_PAGE)
            logger.info(f"Scraping page {page_number}: {url}")
            try:
                html = await self.fetcher.fetch(url)
            except FetchError:
                self._transition(CrawlState.ABORTED)
                logger.error(f"Crawl aborted on page {page_number}")
                raise

            self._transition(CrawlState.EXTRACTING)
            page = FetchedPage(url=url, html=html)
            extracted = await self.extract_page(page)
            if not extracted:
                logger.info(f"No products found on page {page_number}, stopping")
                break

            added = 0
            for record in extracted:
                if record.product_id in seen_ids:
                    continue
                seen_ids.add(record.product_id)
                self._records.append(dataclasses.replace(record, page_number=page_number))
                added += 1
            if added:
                self._pages_seen.add(page_number)
            logger.info(f"Found {added} new products on page {page_number} ({len(extracted)} cards)")

            self._transition(CrawlState.CHECK_NEXT)
            next_url = find_next_page_url(page.markup, url)
            if not next_url:
                logger.info("No next page found")
                break
            if page_number >= self.max_pages:
                logger.info(f"Reached page cap of {self.max_pages}")
                break

            url = next_url
            page_number += 1
            if self.page_delay > 0:
                await self._sleep(self.page_delay)

        self._transition(CrawlState.DONE)
        result = CrawlResult(
            records=tuple(self._records),
            source_url=self.start_url,
            scraped_at=datetime.now(UTC),
        )
        logger.info(f"Crawl finished: {len(result)} products across {result.pages_covered} pages")
        return result
