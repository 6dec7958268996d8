"""Rendered-DOM listing strategy and the shared page renderer.

Client-side rendered pages carry no product cards in their static markup.
This strategy loads the page in headless Chromium and reads the cards from
the live DOM, applying the same id, token and image rules as the static
strategies. It is the slowest strategy and runs last.
"""

from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright_stealth import Stealth

from ..fetcher import pick_user_agent
from ..models import ListingRecord
from ..utils import extract_product_id, is_cdn_image, text_lines
from .base import FetchedPage, ListingStrategy, build_listing_record
from .browser_pool import get_browser_context

logger = logging.getLogger(__name__)

PRODUCT_ANCHOR_SELECTOR = 'a[href*="/now-product/"]'

_COLLECT_ANCHORS_JS = """
els => els.map(a => ({
    href: a.getAttribute('href') || '',
    text: a.innerText || '',
    images: Array.from(a.querySelectorAll('img'))
        .map(img => img.getAttribute('src') || img.currentSrc || '')
        .filter(Boolean),
}))
""".strip()


class PageRenderer:
    """Open URLs in a pooled browser context and hand back the loaded page."""

    def __init__(
        self,
        *,
        context_factory: Callable[..., Any] | None = None,
        timeout_ms: int = 45000,
        wait_timeout_ms: int = 15000,
        settle_ms: int = 800,
        stealth: bool = True,
        rng: random.Random | None = None,
    ):
        self._context_factory = context_factory or get_browser_context
        self.timeout_ms = timeout_ms
        self.wait_timeout_ms = wait_timeout_ms
        self.settle_ms = settle_ms
        self.stealth = stealth
        self._rng = rng

    @asynccontextmanager
    async def open(self, url: str, wait_selector: str | None = None) -> AsyncIterator[Page]:
        async with self._context_factory(user_agent=pick_user_agent(self._rng)) as context:
            page = await context.new_page()
            if self.stealth:
                await Stealth().apply_stealth_async(page)

            logger.info(f"Rendering {url}...")
            await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
            if wait_selector:
                try:
                    await page.wait_for_selector(
                        wait_selector, timeout=self.wait_timeout_ms, state="attached"
                    )
                except PlaywrightTimeoutError:
                    # Empty result pages never show the selector; let extraction decide.
                    logger.debug(f"No {wait_selector!r} on rendered {url}")
            await page.wait_for_timeout(self.settle_ms)
            yield page

    async def render(self, url: str, wait_selector: str | None = None) -> str:
        """Return the fully rendered document markup of `url`."""
        async with self.open(url, wait_selector) as page:
            return await page.content()


def records_from_anchors(anchors: list[dict[str, Any]]) -> list[ListingRecord]:
    """Apply the listing card rules to anchor data collected from a live DOM."""
    records: list[ListingRecord] = []
    seen: set[str] = set()
    for anchor in anchors:
        if not isinstance(anchor, dict):
            continue
        product_id = extract_product_id(anchor.get("href"))
        if not product_id or product_id in seen:
            continue

        image_url = next(
            (src.strip() for src in anchor.get("images") or [] if isinstance(src, str) and is_cdn_image(src)),
            "",
        )
        record = build_listing_record(product_id, text_lines(anchor.get("text")), image_url)
        if record is None:
            continue
        seen.add(product_id)
        records.append(record)
    return records


class RenderedListingStrategy(ListingStrategy):
    name = "rendered"
    priority = 90

    def __init__(self, renderer: PageRenderer | None = None):
        self.renderer = renderer or PageRenderer()

    async def extract(self, page: FetchedPage) -> list[ListingRecord]:
        try:
            async with self.renderer.open(page.url, PRODUCT_ANCHOR_SELECTOR) as live:
                anchors = await live.eval_on_selector_all(PRODUCT_ANCHOR_SELECTOR, _COLLECT_ANCHORS_JS)
                page.rendered_html = await live.content()
        except PlaywrightError as exc:
            logger.warning(f"Rendered extraction of {page.url} failed: {exc}")
            return []

        if not isinstance(anchors, list):
            return []
        return records_from_anchors(anchors)
