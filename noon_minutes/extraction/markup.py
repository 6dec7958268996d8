"""Structured-markup listing strategy (BeautifulSoup over the static page)."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from ..models import ListingRecord
from ..utils import extract_product_id, is_cdn_image, text_lines
from .base import FetchedPage, ListingStrategy, build_listing_record

logger = logging.getLogger(__name__)


class MarkupListingStrategy(ListingStrategy):
    """Read product cards from the parsed document tree."""

    name = "markup"
    priority = 10

    async def extract(self, page: FetchedPage) -> list[ListingRecord]:
        return self.parse(page.markup)

    @staticmethod
    def parse(html: str) -> list[ListingRecord]:
        if not html:
            return []
        soup = BeautifulSoup(html, "lxml")

        records: list[ListingRecord] = []
        seen: set[str] = set()
        for anchor in soup.select('a[href*="/now-product/"]'):
            product_id = extract_product_id(anchor.get("href"))
            if not product_id or product_id in seen:
                continue

            image_url = ""
            for img in anchor.select("img[src]"):
                src = img.get("src")
                if is_cdn_image(src):
                    image_url = src.strip()
                    break

            tokens = text_lines(anchor.get_text("\n", strip=True))
            record = build_listing_record(product_id, tokens, image_url)
            if record is None:
                logger.debug(f"Skipping card {product_id}: too few tokens {tokens!r}")
                continue
            seen.add(product_id)
            records.append(record)

        return records
