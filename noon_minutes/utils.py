"""Shared text helpers for listing and detail extraction."""

import html as htmllib
import re
from urllib.parse import urlparse

CURRENCY_PREFIX = "AED"
CURRENCY_MARKERS = ("AED", "د.إ")

CDN_HOST = "f.nooncdn.com"
GALLERY_IMAGE_MARKER = "/p/pzsku/"

# Short marketing words that show up as badges on product cards.
PROMO_TOKENS = frozenset({"ADD", "OFF", "ON", "SALE", "NEW", "HOT"})

MIN_CARD_TOKENS = 3

PRODUCT_PATH_RE = re.compile(r"/now-product/([^/?#\"']+)/")

_ONE_OR_TWO_DIGITS = re.compile(r"^\d{1,2}$")
_ONE_OR_TWO_LETTERS = re.compile(r"^[A-Za-z]{1,2}$")
_PRICE_TOKEN = re.compile(r"^(?:AED|د\.إ)?\s*(\d+(?:[.,]\d+)?)$", re.IGNORECASE)
_BARE_NUMBER = re.compile(r"^\d+(?:[.,]\d+)?$")


def clean_text(value: str | None) -> str:
    """Collapse whitespace (including nbsp) and strip."""
    if not value:
        return ""
    return " ".join(value.replace("\xa0", " ").split())


def text_lines(raw: str | None) -> list[str]:
    """Split text into non-empty, whitespace-normalized lines."""
    if not raw:
        return []
    return [line for line in (clean_text(part) for part in raw.splitlines()) if line]


def markup_to_lines(fragment: str) -> list[str]:
    """Turn a raw HTML fragment into text lines, one per text node."""
    without_scripts = re.sub(
        r"<(script|style)\b[^>]*>.*?</\1>", "\n", fragment, flags=re.DOTALL | re.IGNORECASE
    )
    text = re.sub(r"<[^>]*>", "\n", without_scripts)
    return text_lines(htmllib.unescape(text))


def extract_product_id(href: str | None) -> str | None:
    """Return the product id from a `/now-product/<id>/` path, if any."""
    if not href:
        return None
    if match := PRODUCT_PATH_RE.search(href):
        return match.group(1).strip() or None
    return None


def is_cdn_image(src: str | None) -> bool:
    if not src:
        return False
    return urlparse(src.strip()).netloc.lower() == CDN_HOST


def is_gallery_image(src: str | None) -> bool:
    return bool(src) and GALLERY_IMAGE_MARKER in src


def is_discarded_token(token: str) -> bool:
    """Whether a card text token is promotional noise rather than product data."""
    if token.upper() in PROMO_TOKENS:
        return True
    if "%" in token:
        return True
    if token.startswith(CURRENCY_PREFIX):
        return True
    if _ONE_OR_TWO_DIGITS.match(token):
        return True
    if _ONE_OR_TWO_LETTERS.match(token):
        return True
    return False


def filter_tokens(tokens: list[str]) -> list[str]:
    return [t for t in tokens if t and not is_discarded_token(t)]


def is_price_token(token: str) -> bool:
    return bool(_PRICE_TOKEN.match(token.strip()))


def strip_currency(price_text: str | None) -> str:
    """Remove currency markers from a price string.

    Handles formats like:
    - "AED 12.99"
    - "12.99 AED"
    - "د.إ 4.50"
    """
    if not price_text:
        return ""
    text = price_text
    for marker in CURRENCY_MARKERS:
        text = text.replace(marker, "")
    return clean_text(text)


def looks_like_price(text: str) -> bool:
    """Price-like inline text on a detail page.

    Either carries a currency marker next to a digit, or is a bare decimal
    number. Free text that merely contains digits ("Arrives in 15 mins") is
    not a price.
    """
    text = clean_text(text)
    if not text:
        return False
    if any(marker in text for marker in CURRENCY_MARKERS):
        return any(ch.isdigit() for ch in text)
    return bool(_BARE_NUMBER.match(text))


def classify_card_tokens(tokens: list[str]) -> dict[str, str] | None:
    """Map a product card's text tokens onto listing fields.

    Returns None when fewer than three tokens survive the promotional
    filter. Survivors 0, 1 and 2 become origin, name and size; the first two
    price-like survivors become price and original price.
    """
    survivors = filter_tokens(tokens)
    if len(survivors) < MIN_CARD_TOKENS:
        return None

    prices = [strip_currency(t) for t in survivors if is_price_token(t)]
    return {
        "origin": survivors[0],
        "name": survivors[1],
        "size": survivors[2],
        "price": prices[0] if prices else "",
        "original_price": prices[1] if len(prices) > 1 else "",
    }
