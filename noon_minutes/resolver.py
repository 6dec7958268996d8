"""Detail page resolver."""

from __future__ import annotations

import asyncio
import logging

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from .config import DEFAULT_PRODUCT_URL
from .errors import FetchError
from .extraction import DetailStrategy
from .extraction.base import DETAIL_FIELDS
from .extraction.detail import extract_delivery, extract_prices
from .extraction.rendered import PageRenderer
from .fetcher import FetchClient
from .models import DetailRecord

logger = logging.getLogger(__name__)


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return not any(isinstance(v, str) and v.strip() for v in value)
    return False


class DetailResolver:
    """Resolve one product's detail page into a DetailRecord.

    Every field is taken from the first strategy (in priority order) that
    produced a non-empty value; fields nobody resolves stay empty. When a
    renderer is configured and the static page yields neither a name nor a
    description, the page is rendered in a browser and the cascade re-run.
    """

    def __init__(
        self,
        fetcher: FetchClient,
        strategies: list[DetailStrategy],
        *,
        product_url_template: str = DEFAULT_PRODUCT_URL,
        renderer: PageRenderer | None = None,
    ):
        if not strategies:
            raise ValueError("At least one detail strategy is required")
        self.fetcher = fetcher
        self.strategies = list(strategies)
        self.product_url_template = product_url_template
        self.renderer = renderer

    def product_url(self, product_id: str) -> str:
        return self.product_url_template.format(product_id=product_id)

    def extract(self, product_id: str, html: str, fallback_image_url: str | None = None) -> DetailRecord:
        """Run the field-level cascade over `html`. Pure function of its inputs."""
        soup = BeautifulSoup(html or "", "lxml")

        merged: dict[str, object] = {}
        for strategy in self.strategies:
            fields = strategy.extract(soup, html or "")
            for key in DETAIL_FIELDS:
                if key not in merged and not _is_empty(fields.get(key)):
                    merged[key] = fields[key]
            if len(merged) == len(DETAIL_FIELDS):
                break

        price, original_price = extract_prices(soup)
        features = merged.get("features") or []
        return DetailRecord(
            product_id=product_id,
            name=str(merged.get("name", "")),
            size=str(merged.get("size", "")),
            price=price,
            original_price=original_price,
            description=str(merged.get("description", "")),
            features=[f for f in features if isinstance(f, str) and f.strip()],
            image_url=str(merged.get("image_url") or fallback_image_url or ""),
            delivery=extract_delivery(soup),
        )

    async def resolve(self, product_id: str, fallback_image_url: str | None = None) -> DetailRecord:
        """Fetch and resolve one product. Raises FetchError if the page is unreachable."""
        product_id = (product_id or "").strip()
        if not product_id:
            raise ValueError("product_id is required")

        url = self.product_url(product_id)
        html = await self.fetcher.fetch(url)
        record = self.extract(product_id, html, fallback_image_url)

        if self.renderer is not None and not record.name and not record.description:
            logger.warning(f"Static detail page for {product_id} yielded nothing, rendering")
            try:
                rendered = await self.renderer.render(url, wait_selector="h1")
            except PlaywrightError as exc:
                logger.warning(f"Rendered detail fallback for {product_id} failed: {exc}")
            else:
                record = self.extract(product_id, rendered, fallback_image_url)

        return record

    async def resolve_many(
        self,
        product_ids: list[str],
        concurrency: int = 4,
        fallback_images: dict[str, str] | None = None,
    ) -> dict[str, DetailRecord | FetchError]:
        """Resolve several products concurrently; failures are returned, not raised."""
        semaphore = asyncio.Semaphore(max(1, concurrency))
        fallback_images = fallback_images or {}

        async def resolve_one(product_id: str) -> DetailRecord:
            async with semaphore:
                return await self.resolve(product_id, fallback_images.get(product_id))

        unique_ids = list(dict.fromkeys(product_ids))
        results = await asyncio.gather(*(resolve_one(pid) for pid in unique_ids), return_exceptions=True)

        resolved: dict[str, DetailRecord | FetchError] = {}
        for product_id, result in zip(unique_ids, results):
            if isinstance(result, FetchError):
                logger.warning(f"Detail fetch for {product_id} failed: {result}")
                resolved[product_id] = result
            elif isinstance(result, BaseException):
                raise result
            else:
                resolved[product_id] = result
        return resolved
