"""Data models for the crawler."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class ListingRecord:
    """One product as seen on a listing page."""

    product_id: str
    origin: str = ""
    name: str = ""
    size: str = ""
    price: str = ""
    original_price: str = ""
    image_url: str = ""
    page_number: int = 1

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "productId": self.product_id,
            "origin": self.origin,
            "name": self.name,
            "size": self.size,
            "price": self.price,
            "originalPrice": self.original_price,
            "imageUrl": self.image_url,
            "pageNumber": self.page_number,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ListingRecord:
        """Build a record from its serialized form.

        Accepts the snake_case spellings used by older snapshot files
        (`product_id`, `original_price`, `image_url`, `page`).
        """
        product_id = _text(data.get("productId", data.get("product_id")))
        if not product_id:
            raise ValueError(f"Record without product id: {data!r}")

        raw_page = data.get("pageNumber", data.get("page", 1))
        try:
            page_number = max(1, int(raw_page))
        except (TypeError, ValueError):
            page_number = 1

        return cls(
            product_id=product_id,
            origin=_text(data.get("origin")),
            name=_text(data.get("name")),
            size=_text(data.get("size")),
            price=_text(data.get("price")),
            original_price=_text(data.get("originalPrice", data.get("original_price"))),
            image_url=_text(data.get("imageUrl", data.get("image_url"))),
            page_number=page_number,
        )


@dataclass
class DetailRecord:
    """Resolved detail view for one product."""

    product_id: str
    name: str = ""
    size: str = ""
    price: str = ""
    original_price: str = ""
    description: str = ""
    features: list[str] = field(default_factory=list)
    image_url: str = ""
    delivery: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "productId": self.product_id,
            "name": self.name,
            "size": self.size,
            "price": self.price,
            "originalPrice": self.original_price,
            "description": self.description,
            "features": list(self.features),
            "imageUrl": self.image_url,
            "delivery": self.delivery,
        }


@dataclass(frozen=True)
class CrawlResult:
    """Result of one crawl run."""

    records: tuple[ListingRecord, ...]
    source_url: str = ""
    scraped_at: datetime | None = None

    @property
    def pages_covered(self) -> int:
        """Number of distinct pages that contributed at least one record."""
        return len({r.page_number for r in self.records})

    def __len__(self) -> int:
        return len(self.records)

    def to_records(self) -> list[dict]:
        """Serialize as the ordered array persisted in a snapshot."""
        return [r.to_dict() for r in self.records]

    @classmethod
    def from_records(cls, items: list[dict], *, source_url: str = "") -> CrawlResult:
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise ValueError("Snapshot payload must be a list of record objects")
        return cls(
            records=tuple(ListingRecord.from_dict(item) for item in items),
            source_url=source_url,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "source_url": self.source_url,
            "scraped_at": self.scraped_at.isoformat() if self.scraped_at else None,
            "pagesCovered": self.pages_covered,
            "totalProducts": len(self.records),
            "products": self.to_records(),
        }
