"""HTTP helpers: body caps and per-domain rate limiting."""

import asyncio
import logging
import random
import time
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from urllib.parse import urlsplit

import httpx

logger = logging.getLogger(__name__)

FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml"
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


async def read_capped(response: httpx.Response, limit: int) -> bytes:
    """Read a streamed response body, silently truncating at ``limit`` bytes."""
    chunks = []
    size = 0
    async for chunk in response.aiter_bytes():
        remaining = limit - size
        if len(chunk) >= remaining:
            chunks.append(chunk[:remaining])
            break
        chunks.append(chunk)
        size += len(chunk)
    return b"".join(chunks)


def decode_body(response: httpx.Response, body: bytes) -> str:
    return body.decode(response.encoding or "utf-8", errors="replace")


async def fetch_capped(
    client: httpx.AsyncClient,
    url: str,
    limit: int,
    timeout: float,
    headers: dict = None,
    max_redirects: Optional[int] = None,
) -> httpx.Response:
    """
    GET ``url`` and return a response whose ``content`` is capped.

    With ``max_redirects`` set, redirects are followed here rather than by
    the client, and a chain longer than ``max_redirects`` hops raises
    httpx.TooManyRedirects.

    Raises httpx.HTTPStatusError for non-2xx statuses and
    httpx.TimeoutException if the whole exchange exceeds ``timeout``.
    """
    stream_kwargs = {"headers": headers}
    if max_redirects is not None:
        stream_kwargs["follow_redirects"] = False

    async def _fetch() -> httpx.Response:
        target = url
        hops = 0
        while True:
            async with client.stream("GET", target, **stream_kwargs) as response:
                if max_redirects is not None and response.is_redirect:
                    if hops >= max_redirects:
                        raise httpx.TooManyRedirects(
                            f"More than {max_redirects} redirect(s) from {url}",
                            request=response.request,
                        )
                    hops += 1
                    target = response.next_request.url
                    continue
                response.raise_for_status()
                body = await read_capped(response, limit)
            return httpx.Response(
                status_code=response.status_code,
                headers=response.headers,
                content=body,
                request=response.request,
            )

    try:
        return await asyncio.wait_for(_fetch(), timeout=timeout)
    except asyncio.TimeoutError:
        raise httpx.ReadTimeout(f"Timed out after {timeout}s", request=httpx.Request("GET", url))


class DomainRateLimiter:
    """
    Limit request rate and parallelism per host.

    At most ``parallelism`` requests run concurrently against one host, and
    consecutive request starts are spaced ``delay`` seconds apart plus a
    random jitter in ``[-jitter, +jitter]``.
    """

    def __init__(self, delay: float = 1.0, jitter: float = 0.5, parallelism: int = 2) -> None:
        self.delay = delay
        self.jitter = jitter
        self.parallelism = parallelism
        self._semaphores = defaultdict(lambda: asyncio.Semaphore(self.parallelism))
        self._locks = defaultdict(asyncio.Lock)
        self._next_slot = defaultdict(float)

    def _gap(self) -> float:
        if self.jitter:
            return max(0.0, self.delay + random.uniform(-self.jitter, self.jitter))
        return self.delay

    @asynccontextmanager
    async def limit(self, url: str) -> AsyncIterator[None]:
        """Hold a request slot for the host of ``url``."""
        domain = urlsplit(url).hostname or ""
        async with self._semaphores[domain]:
            async with self._locks[domain]:
                wait_time = self._next_slot[domain] - time.monotonic()
                if wait_time > 0:
                    logger.debug("Rate limiting %s, waiting %.2fs", domain, wait_time)
                    await asyncio.sleep(wait_time)
                self._next_slot[domain] = time.monotonic() + self._gap()
            yield
