"""HTTP fetch client with rotating identity headers and linear backoff retries."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

import httpx

from .errors import FetchError

logger = logging.getLogger(__name__)

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:124.0) Gecko/20100101 Firefox/124.0",
)

Sleep = Callable[[float], Awaitable[None]]


def pick_user_agent(rng: random.Random | None = None) -> str:
    """Pick an identity header uniformly at random from the pool."""
    return (rng or random).choice(USER_AGENTS)


def default_headers(user_agent: str) -> dict[str, str]:
    return {
        "user-agent": user_agent,
        "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "accept-language": "en-US,en;q=0.9,ar;q=0.5",
    }


class FetchClient:
    """Fetch pages over HTTP, retrying failures with a linear backoff.

    `max_retries` is the total number of attempts per call. After the n-th
    failed attempt the client waits `base_backoff_ms * n` milliseconds, so a
    URL that always fails with `max_retries=3` costs
    `base_backoff_ms * (1 + 2 + 3)` of waiting before `FetchError` is raised.

    One `httpx.AsyncClient` is opened lazily and reused for the client's
    lifetime; the identity headers are still drawn per request. Use it as an
    async context manager, or call `aclose()` when done.
    """

    def __init__(
        self,
        *,
        max_retries: int = 3,
        base_backoff_ms: int = 2000,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep | None = None,
        rng: random.Random | None = None,
    ):
        if max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {max_retries}")
        self.max_retries = max_retries
        self.base_backoff_ms = base_backoff_ms
        self.timeout = timeout
        self._transport = transport
        self._sleep = sleep or asyncio.sleep
        self._rng = rng
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> FetchClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                follow_redirects=True,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def fetch(
        self,
        url: str,
        max_retries: int | None = None,
        base_backoff_ms: int | None = None,
    ) -> str:
        """Return the body of `url`, or raise FetchError once retries are exhausted."""
        attempts = self.max_retries if max_retries is None else max_retries
        backoff_ms = self.base_backoff_ms if base_backoff_ms is None else base_backoff_ms
        if attempts < 1:
            raise ValueError(f"max_retries must be >= 1, got {attempts}")

        last_cause: BaseException | None = None
        for attempt in range(1, attempts + 1):
            try:
                return await self._get(url)
            except httpx.HTTPError as exc:
                last_cause = exc
                logger.warning(f"Fetch attempt {attempt}/{attempts} for {url} failed: {_describe(exc)}")

            await self._sleep(backoff_ms * attempt / 1000)

        raise FetchError(url, last_cause)

    async def _get(self, url: str) -> str:
        headers = default_headers(pick_user_agent(self._rng))
        resp = await self._http().get(url, headers=headers)
        resp.raise_for_status()
        return resp.text


def _describe(exc: httpx.HTTPError) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    if isinstance(exc, httpx.TimeoutException):
        return f"timeout ({exc.__class__.__name__})"
    return str(exc) or exc.__class__.__name__
