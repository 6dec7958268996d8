"""Single-slot store for the last known-good crawl result."""

from __future__ import annotations

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from .errors import CacheMiss
from .models import CrawlResult

logger = logging.getLogger(__name__)


class SnapshotCache(ABC):
    """Read/write capability for the persisted snapshot."""

    @abstractmethod
    def read(self) -> CrawlResult:
        """Return the snapshot, or raise CacheMiss."""
        ...

    @abstractmethod
    def write(self, result: CrawlResult) -> None:
        """Replace the snapshot wholesale."""
        ...

    @abstractmethod
    def read_bytes(self) -> bytes:
        """Return the persisted bytes verbatim, or raise CacheMiss."""
        ...


def encode_snapshot(result: CrawlResult) -> bytes:
    return json.dumps(result.to_records(), ensure_ascii=False, indent=2).encode("utf-8")


def decode_snapshot(data: bytes, *, location: str = "snapshot") -> CrawlResult:
    try:
        payload = json.loads(data.decode("utf-8"))
        return CrawlResult.from_records(payload)
    except (UnicodeDecodeError, ValueError) as exc:
        logger.warning(f"Unreadable snapshot at {location}: {exc}")
        raise CacheMiss(location) from exc


class FileSnapshotCache(SnapshotCache):
    """Snapshot kept as a JSON array file, replaced atomically on write."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def read_bytes(self) -> bytes:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            raise CacheMiss(str(self.path)) from None

    def read(self) -> CrawlResult:
        return decode_snapshot(self.read_bytes(), location=str(self.path))

    def write(self, result: CrawlResult) -> None:
        data = encode_snapshot(result)
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.replace(tmp_path, self.path)
        logger.info(f"Saved snapshot of {len(result)} products to {self.path}")


class InMemorySnapshotCache(SnapshotCache):
    """Snapshot held in process memory."""

    def __init__(self, initial: CrawlResult | None = None):
        self._data: bytes | None = encode_snapshot(initial) if initial is not None else None
        self.writes = 0

    def read_bytes(self) -> bytes:
        if self._data is None:
            raise CacheMiss("memory")
        return self._data

    def read(self) -> CrawlResult:
        return decode_snapshot(self.read_bytes(), location="memory")

    def write(self, result: CrawlResult) -> None:
        self._data = encode_snapshot(result)
        self.writes += 1
