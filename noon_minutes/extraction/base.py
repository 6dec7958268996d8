"""Base classes for listing and detail extraction strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from bs4 import BeautifulSoup

from ..models import ListingRecord
from ..utils import classify_card_tokens

DETAIL_FIELDS = ("name", "size", "image_url", "description", "features")


@dataclass
class FetchedPage:
    """A listing page as fetched, plus its rendered markup once rendered."""

    url: str
    html: str
    rendered_html: str | None = None

    @property
    def markup(self) -> str:
        return self.rendered_html if self.rendered_html is not None else self.html


def build_listing_record(product_id: str, tokens: list[str], image_url: str = "") -> ListingRecord | None:
    """Shared card rule: classify tokens, drop cards with too little text."""
    fields = classify_card_tokens(tokens)
    if fields is None:
        return None
    return ListingRecord(product_id=product_id, image_url=image_url, **fields)


class ListingStrategy(ABC):
    """Abstract base class for listing page extraction strategies.

    Strategies are tried in ascending `priority`; the first one that returns
    a non-empty list wins.
    """

    name: str
    priority: int = 100

    @abstractmethod
    async def extract(self, page: FetchedPage) -> list[ListingRecord]:
        """Extract product cards from the page. Subclasses must implement this."""
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} priority={self.priority}>"


class DetailStrategy(ABC):
    """Abstract base class for detail page strategies.

    A detail strategy returns a partial field map; the resolver takes each
    field from the first strategy that produced a non-empty value.
    """

    name: str
    priority: int = 100

    @abstractmethod
    def extract(self, soup: BeautifulSoup, html: str) -> dict[str, object]:
        """Return whichever of DETAIL_FIELDS this strategy can resolve."""
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r} priority={self.priority}>"
