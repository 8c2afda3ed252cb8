# transport.py
"""
Streaming transport for the Board API
–––––––––––––––––––––––––––––––––––––
• LineTransport       – protocol the channel supervisor talks to
• HttpLineTransport   – httpx implementation over NDJSON endpoints
• auth_headers()      – bearer + NDJSON accept headers shared with api.py

A transport only knows how to open one stream and hand back its lines; all
retry and state bookkeeping lives in channel.StreamChannel.
"""

from __future__ import annotations

import contextlib
import logging
from typing import AsyncContextManager, AsyncIterator, Dict, Protocol

import httpx

from . import config as _cfg

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Connect failure, non-200 stream response or mid-stream I/O error."""


class LineTransport(Protocol):
    def stream(self, url: str, token: str) -> AsyncContextManager[AsyncIterator[str]]:
        """Open *url* and yield an async iterator over its text lines.

        Entering the context confirms the stream is open; leaving the
        iterator normally means the remote side closed the stream.
        """
        ...


def auth_headers(token: str, *, ndjson: bool = True) -> Dict[str, str]:
    headers = {"Authorization": f"Bearer {token}"}
    if ndjson:
        headers["Accept"] = "application/x-ndjson"
    return headers


async def _wrap_lines(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    try:
        async for line in lines:
            yield line
    except (httpx.HTTPError, httpx.StreamError) as exc:
        raise TransportError(f"stream interrupted: {exc}") from exc


class HttpLineTransport:
    """NDJSON streaming over a shared ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(_cfg.COMMAND_TIMEOUT, connect=_cfg.CONNECT_TIMEOUT, read=None)
        )

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    @contextlib.asynccontextmanager
    async def stream(self, url: str, token: str) -> AsyncIterator[AsyncIterator[str]]:
        logger.debug("stream() opening %s", url)
        try:
            async with self._client.stream("GET", url, headers=auth_headers(token)) as response:
                if response.status_code != 200:
                    body = (await response.aread()).decode("utf-8", "replace")
                    raise TransportError(f"HTTP {response.status_code} from {url}: {body[:200]}")
                logger.debug("stream() open – status=%d", response.status_code)
                yield _wrap_lines(response.aiter_lines())
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
