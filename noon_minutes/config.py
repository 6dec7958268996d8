"""Runtime settings, overridable through environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_START_URL = "https://minutes.noon.com/uae-en/search/?f[category]=fruits_vegetables"
DEFAULT_PRODUCT_URL = "https://minutes.noon.com/uae-en/now-product/{product_id}/"
DEFAULT_SNAPSHOT_PATH = Path(__file__).parent.parent / "output" / "noon_products.json"

PERSIST_THRESHOLD = 5


def _env_int(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {value}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


@dataclass
class Settings:
    """Crawler, resolver and cache settings."""

    start_url: str = DEFAULT_START_URL
    product_url_template: str = DEFAULT_PRODUCT_URL
    snapshot_path: Path = field(default_factory=lambda: DEFAULT_SNAPSHOT_PATH)
    max_pages: int = 10
    persist_threshold: int = PERSIST_THRESHOLD
    max_retries: int = 3
    base_backoff_ms: int = 2000
    timeout_seconds: float = 30.0
    page_delay: float = 2.0
    render_fallback: bool = True
    description_keyword: str = "fruit"

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from NOON_* environment variables."""
        return cls(
            start_url=os.environ.get("NOON_START_URL", DEFAULT_START_URL),
            product_url_template=os.environ.get("NOON_PRODUCT_URL", DEFAULT_PRODUCT_URL),
            snapshot_path=Path(os.environ.get("NOON_SNAPSHOT_PATH", str(DEFAULT_SNAPSHOT_PATH))),
            max_pages=_env_int("NOON_MAX_PAGES", 10, minimum=1),
            persist_threshold=_env_int("NOON_PERSIST_THRESHOLD", PERSIST_THRESHOLD, minimum=1),
            max_retries=_env_int("NOON_MAX_RETRIES", 3, minimum=1),
            base_backoff_ms=_env_int("NOON_BACKOFF_MS", 2000),
            timeout_seconds=_env_float("NOON_TIMEOUT", 30.0),
            page_delay=_env_float("NOON_PAGE_DELAY", 2.0),
            render_fallback=_env_bool("NOON_RENDER_FALLBACK", True),
            description_keyword=os.environ.get("NOON_DESCRIPTION_KEYWORD", "fruit"),
        )
