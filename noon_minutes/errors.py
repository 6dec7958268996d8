"""Error types raised by the crawler, resolver and snapshot cache."""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for all errors raised by this package."""


class FetchError(ScraperError):
    """A URL could not be fetched after all retry attempts."""

    def __init__(self, url: str, last_cause: BaseException | str | None = None):
        self.url = url
        self.last_cause = last_cause
        super().__init__(f"Failed to fetch {url}: {last_cause}")


class InsufficientDataError(ScraperError):
    """A crawl finished below the persistence threshold and no snapshot exists."""

    def __init__(self, pages_covered: int, threshold: int):
        self.pages_covered = pages_covered
        self.threshold = threshold
        super().__init__(
            f"Not enough data scraped ({pages_covered} of {threshold} pages) "
            "and no previous snapshot found"
        )


class CacheMiss(ScraperError):
    """The snapshot cache holds nothing to read."""

    def __init__(self, location: str = "snapshot"):
        self.location = location
        super().__init__(f"No snapshot available at {location}")
