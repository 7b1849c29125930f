import asyncio
import logging
import pathlib
from typing import Any, Optional

import aiofiles
import aiohttp

from . import __version__
from .errors import LauncherIOError, TransportError

log = logging.getLogger(__name__)

USER_AGENT = f"mclauncher/{__version__}"
CHUNK_SIZE = 8192
DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=None, connect=30, sock_read=60)


class ContentFetcher:
    """Retrieves bytes over HTTP. One aiohttp session is shared by every request
    and opened lazily; per-request timeouts are the only time limit."""

    def __init__(self, timeout: aiohttp.ClientTimeout = DEFAULT_TIMEOUT):
        self._timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> 'ContentFetcher':
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={'User-Agent': USER_AGENT},
            )
        return self._session

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def fetch(self, url: str, dest_path: pathlib.Path) -> None:
        """Streams the body of a GET request into dest_path."""
        session = self._get_session()
        log.debug(f"GET {url}")
        try:
            async with session.get(url) as response:
                if not response.ok:
                    raise TransportError(url, f"HTTP {response.status} {response.reason}", status=response.status)
                async with aiofiles.open(dest_path, 'wb') as f:
                    async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                        await f.write(chunk)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(url, str(e) or type(e).__name__) from e
        except OSError as e:
            raise LauncherIOError(dest_path, str(e)) from e

    async def get_json(self, url: str, params: Optional[dict] = None) -> Any:
        """GETs a JSON document (used for API queries that are not cached on disk)."""
        session = self._get_session()
        log.debug(f"GET {url} {params or ''}")
        try:
            async with session.get(url, params=params) as response:
                if not response.ok:
                    raise TransportError(url, f"HTTP {response.status} {response.reason}", status=response.status)
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(url, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise TransportError(url, f"response is not valid JSON: {e}") from e
