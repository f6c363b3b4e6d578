"""Async HTTP client utilities."""

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import aiohttp

from ..exceptions import FormatError, NetworkError


class AsyncHTTPClient:
    """Reusable async HTTP client.

    Only connection establishment is bounded by ``connect_timeout``; transfers
    themselves have no overall deadline. The connection pool is unbounded so
    callers decide how many requests run at once.
    """

    def __init__(self, headers: Optional[Dict[str, str]] = None, connect_timeout: float = 30.0,
                 session: Optional[aiohttp.ClientSession] = None):
        self.default_headers = headers or {}
        self.connect_timeout = connect_timeout
        self.session = session
        self._owns_session = False

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(
                headers=self.default_headers,
                timeout=aiohttp.ClientTimeout(total=None, sock_connect=self.connect_timeout),
                connector=aiohttp.TCPConnector(limit=0),
            )
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        if self.session is not None and self._owns_session:
            await self.session.close()
            self.session = None
            self._owns_session = False

    @asynccontextmanager
    async def stream(self, url: str, item: str = "resource") -> AsyncIterator[aiohttp.ClientResponse]:
        """GET ``url`` and yield the response once a 2xx status is confirmed."""
        if self.session is None:
            raise RuntimeError("AsyncHTTPClient used outside of 'async with'")
        try:
            async with self.session.get(url) as resp:
                if not 200 <= resp.status < 300:
                    raise NetworkError(f"Failed to download {item}", url=url, status=resp.status)
                yield resp
        except aiohttp.ClientError as e:
            raise NetworkError(f"Failed to download {item}: {e}", url=url) from e
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Timed out connecting while downloading {item}", url=url) from e

    async def get_json(self, url: str, item: str = "metadata") -> Dict[str, Any]:
        """GET a JSON object."""
        async with self.stream(url, item) as resp:
            body = await resp.read()
        try:
            data = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise FormatError(f"Invalid JSON in {item} at {url}: {e}") from e
        if not isinstance(data, dict):
            raise FormatError(f"Expected JSON object at {url}")
        return data
