"""Detail page strategies, one per known template variant.

Each strategy resolves whatever fields it can; the resolver merges them
field by field in priority order. Prices and the delivery estimate are read
the same way on every template and live in module-level helpers.
"""

from __future__ import annotations

import html as htmllib
import re

from bs4 import BeautifulSoup, Tag

from ..utils import clean_text, is_gallery_image, looks_like_price, markup_to_lines, strip_currency
from .base import DetailStrategy

DELIVERY_RE = re.compile(r"\bArrives in\b")
_BARE_DELIVERY_RE = re.compile(r"Arrives in:?", re.IGNORECASE)

BLOCK_TAGS = ("div", "section", "article", "p")
DELIVERY_STOP_TAGS = frozenset(BLOCK_TAGS + ("li",))


def _first_text(soup: BeautifulSoup | Tag, selector: str) -> str:
    el = soup.select_one(selector)
    return clean_text(el.get_text(" ", strip=True)) if el else ""


def _list_items(container: Tag) -> list[str]:
    items = (clean_text(li.get_text(" ", strip=True)) for li in container.find_all("li"))
    return [item for item in items if item]


def _gallery_image(soup: BeautifulSoup) -> str:
    for img in soup.find_all("img", src=True):
        src = img.get("src")
        if is_gallery_image(src):
            return src.strip()
    return ""


class PrimaryTemplateStrategy(DetailStrategy):
    """Selectors for the current product page template."""

    name = "primary_template"
    priority = 10

    DESCRIPTION_PATH = "body > div.layout_pageWrapper__W_ZgS > div:nth-child(2) > div:nth-child(4)"
    SIZE_SELECTOR = "div[class*='ProductDetails_infoWrapper'] > div"

    def extract(self, soup: BeautifulSoup, html: str) -> dict[str, object]:
        fields: dict[str, object] = {
            "name": _first_text(soup, "h1"),
            "size": _first_text(soup, self.SIZE_SELECTOR),
            "image_url": _gallery_image(soup),
        }
        if block := soup.select_one(self.DESCRIPTION_PATH):
            fields["description"] = clean_text(block.get_text(" ", strip=True))
            if ul := block.find("ul"):
                fields["features"] = _list_items(ul)
        return fields


class AlternateTemplateStrategy(DetailStrategy):
    """Older template: description and features inside an inline-styled block."""

    name = "alternate_template"
    priority = 20

    CONTAINER_SELECTOR = "div[style*='margin-top: 20px']"

    def extract(self, soup: BeautifulSoup, html: str) -> dict[str, object]:
        for container in soup.select(self.CONTAINER_SELECTOR):
            p = container.find("p")
            description = clean_text((p or container).get_text(" ", strip=True))
            if not description:
                continue
            return {"description": description, "features": _list_items(container)}
        return {}


class HeuristicStrategy(DetailStrategy):
    """Last resort: keyword-bearing text block and the first non-empty list.

    Blocks are scanned in document order and the first one that matches
    without a matching block inside it wins. Page wrappers match too, since
    their text includes every block below them, so a plain "first match"
    would return the whole page body.
    """

    name = "heuristic"
    priority = 30

    MIN_DESCRIPTION_LENGTH = 30

    def __init__(self, keyword: str = "fruit"):
        self.keyword = keyword.lower()

    def _matches(self, block: Tag) -> bool:
        text = clean_text(block.get_text(" ", strip=True))
        return len(text) > self.MIN_DESCRIPTION_LENGTH and self.keyword in text.lower()

    def extract(self, soup: BeautifulSoup, html: str) -> dict[str, object]:
        fields: dict[str, object] = {}

        # Outer wrappers contain every block below them; take the innermost match.
        for block in soup.find_all(BLOCK_TAGS):
            if not self._matches(block):
                continue
            if any(self._matches(inner) for inner in block.find_all(BLOCK_TAGS)):
                continue
            fields["description"] = clean_text(block.get_text(" ", strip=True))
            break

        for lst in soup.find_all(["ul", "ol"]):
            if items := _list_items(lst):
                fields["features"] = items
                break
        return fields


_H1_RE = re.compile(r"<h1[^>]*>(.*?)</h1\s*>", re.IGNORECASE | re.DOTALL)
_GALLERY_SRC_RE = re.compile(r"src\s*=\s*[\"']([^\"']*/p/pzsku/[^\"']*)[\"']", re.IGNORECASE)
_LONG_PARAGRAPH_RE = re.compile(r"<p[^>]*>([^<]{50,})</p\s*>", re.IGNORECASE)
_SHORT_DIV_RE = re.compile(r"<div[^>]*>([^<]{2,50})</div\s*>", re.IGNORECASE)
_SIZE_RE = re.compile(r"\d+(?:[.,]\d+)?\s*(?:kg|g|ml|l|packs?|pcs?|pieces?)\b", re.IGNORECASE)


class RawPatternStrategy(DetailStrategy):
    """Regular expressions over the raw markup, for pages the parser mangles."""

    name = "raw_pattern"
    priority = 40

    def extract(self, soup: BeautifulSoup, html: str) -> dict[str, object]:
        fields: dict[str, object] = {}
        if match := _H1_RE.search(html):
            fields["name"] = " ".join(markup_to_lines(match.group(1)))
        if match := _GALLERY_SRC_RE.search(html):
            fields["image_url"] = htmllib.unescape(match.group(1)).strip()
        if match := _LONG_PARAGRAPH_RE.search(html):
            fields["description"] = clean_text(htmllib.unescape(match.group(1)))
        for match in _SHORT_DIV_RE.finditer(html):
            text = clean_text(htmllib.unescape(match.group(1)))
            if _SIZE_RE.search(text):
                fields["size"] = text
                break
        return fields


def _price_candidate(span: Tag) -> str:
    text = clean_text(span.get_text(" ", strip=True))
    return strip_currency(text) if looks_like_price(text) else ""


def extract_prices(soup: BeautifulSoup) -> tuple[str, str]:
    """Return (price, original_price) from price-like spans in document order.

    A span is read with its full text, so a currency marker split into its
    own child span still yields a price. A wrapper span whose descendants
    already read as prices is skipped so the same amount is not counted twice.
    """
    candidates: list[str] = []
    for span in soup.find_all("span"):
        candidate = _price_candidate(span)
        if not candidate:
            continue
        if any(_price_candidate(inner) for inner in span.find_all("span")):
            continue
        candidates.append(candidate)
    price = candidates[0] if candidates else ""
    original_price = candidates[1] if len(candidates) > 1 else ""
    return price, original_price


def extract_delivery(soup: BeautifulSoup) -> str:
    """Return the delivery estimate text.

    Starts at the element holding the "Arrives in" phrase and climbs while
    that element holds nothing but the phrase, stopping at the first block
    container.
    """
    for node in soup.find_all(string=DELIVERY_RE):
        el = node.parent
        if el is None or el.name in {"script", "style", "title"}:
            continue
        text = clean_text(el.get_text(" ", strip=True))
        while _BARE_DELIVERY_RE.fullmatch(text) and el.name not in DELIVERY_STOP_TAGS:
            parent = el.parent
            if parent is None or parent.name in {"body", "html", "[document]"}:
                break
            el = parent
            text = clean_text(el.get_text(" ", strip=True))
        return text
    return ""
