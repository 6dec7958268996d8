"""Pattern-based listing strategy: regular expressions over raw markup.

Used when the structured strategy finds nothing, e.g. when the markup is
too broken for the parser to recover product anchors.
"""

from __future__ import annotations

import html as htmllib
import re

from ..models import ListingRecord
from ..utils import extract_product_id, is_cdn_image, markup_to_lines
from .base import FetchedPage, ListingStrategy, build_listing_record

_CARD_RE = re.compile(
    r"<a\b[^>]*?\bhref\s*=\s*[\"']([^\"']*/now-product/[^\"']+/)[\"'][^>]*>(.*?)</a\s*>",
    re.IGNORECASE | re.DOTALL,
)
_IMG_SRC_RE = re.compile(r"<img\b[^>]*?\bsrc\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)


class PatternListingStrategy(ListingStrategy):
    name = "pattern"
    priority = 20

    async def extract(self, page: FetchedPage) -> list[ListingRecord]:
        return self.parse(page.markup)

    @staticmethod
    def parse(html: str) -> list[ListingRecord]:
        records: list[ListingRecord] = []
        seen: set[str] = set()
        for match in _CARD_RE.finditer(html or ""):
            product_id = extract_product_id(htmllib.unescape(match.group(1)))
            if not product_id or product_id in seen:
                continue
            card_html = match.group(2)

            image_url = ""
            for src in _IMG_SRC_RE.findall(card_html):
                src = htmllib.unescape(src)
                if is_cdn_image(src):
                    image_url = src.strip()
                    break

            record = build_listing_record(product_id, markup_to_lines(card_html), image_url)
            if record is None:
                continue
            seen.add(product_id)
            records.append(record)
        return records
