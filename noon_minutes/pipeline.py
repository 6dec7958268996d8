"""Crawl commit policy and component wiring."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import PERSIST_THRESHOLD, Settings
from .crawler import ListingCrawler
from .errors import CacheMiss, InsufficientDataError
from .extraction import get_detail_strategies, get_listing_strategies
from .extraction.rendered import PageRenderer
from .fetcher import FetchClient
from .models import CrawlResult
from .resolver import DetailResolver
from .snapshot import FileSnapshotCache, SnapshotCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitOutcome:
    """What a crawl request returns: the chosen result and where it came from."""

    result: CrawlResult
    persisted: bool
    from_snapshot: bool
    fresh_pages_covered: int


def commit_or_fallback(
    result: CrawlResult,
    cache: SnapshotCache,
    threshold: int = PERSIST_THRESHOLD,
) -> CommitOutcome:
    """Persist a crawl that covers enough pages, otherwise serve the snapshot.

    Raises InsufficientDataError when the crawl is below the threshold and
    there is no snapshot to fall back on.
    """
    pages = result.pages_covered
    if pages >= threshold:
        cache.write(result)
        logger.info(f"Crawl covered {pages} pages (threshold {threshold}); snapshot updated")
        return CommitOutcome(result=result, persisted=True, from_snapshot=False, fresh_pages_covered=pages)

    logger.warning(f"Crawl covered only {pages} of {threshold} pages; falling back to snapshot")
    try:
        snapshot = cache.read()
    except CacheMiss:
        raise InsufficientDataError(pages, threshold) from None
    return CommitOutcome(result=snapshot, persisted=False, from_snapshot=True, fresh_pages_covered=pages)


async def crawl_and_commit(
    crawler: ListingCrawler,
    cache: SnapshotCache,
    threshold: int = PERSIST_THRESHOLD,
) -> CommitOutcome:
    """Run a crawl and apply the commit policy. FetchError propagates untouched."""
    result = await crawler.crawl()
    return commit_or_fallback(result, cache, threshold)


def build_fetcher(settings: Settings) -> FetchClient:
    return FetchClient(
        max_retries=settings.max_retries,
        base_backoff_ms=settings.base_backoff_ms,
        timeout=settings.timeout_seconds,
    )


def build_crawler(settings: Settings, fetcher: FetchClient | None = None) -> ListingCrawler:
    return ListingCrawler(
        fetcher or build_fetcher(settings),
        get_listing_strategies(include_rendered=settings.render_fallback),
        start_url=settings.start_url,
        max_pages=settings.max_pages,
        page_delay=settings.page_delay,
    )


def build_resolver(settings: Settings, fetcher: FetchClient | None = None) -> DetailResolver:
    return DetailResolver(
        fetcher or build_fetcher(settings),
        get_detail_strategies(overrides={"heuristic": {"keyword": settings.description_keyword}}),
        product_url_template=settings.product_url_template,
        renderer=PageRenderer() if settings.render_fallback else None,
    )


def build_cache(settings: Settings) -> SnapshotCache:
    return FileSnapshotCache(settings.snapshot_path)
