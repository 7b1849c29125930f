"""Execution of download items: the fetch, verify and materialize pipeline.

Every item goes through the same steps. An item whose destination already
exists is done without touching the network. Otherwise the body is streamed
into a temporary file next to the destination, checked against its hash when
one is declared, and then either moved into place or unpacked. Nothing is
ever written directly to a destination path, so a destination either does not
exist or holds a complete, verified copy.
"""

import asyncio
import json
import logging
import os
import pathlib
import tempfile
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterable, Optional

import aiofiles
import aiofiles.os

from .archive import extract_archive, require_container_format
from .errors import LauncherIOError, ParseError
from .hashing import HashSpec, verify_file
from .http import ContentFetcher

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadItem:
    """One unit of work.

    When `extract` is true `destination_path` names the directory the archive
    unpacks to; the archive itself is expanded into that directory's parent.
    """
    source_url: str
    destination_path: pathlib.Path
    hash: Optional[HashSpec] = None
    extract: bool = False


@dataclass(frozen=True)
class ProgressEvent:
    completed: int
    total: int
    url: str

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 100.0
        return self.completed / self.total * 100


async def load_json_file(path: pathlib.Path) -> Any:
    try:
        async with aiofiles.open(path, 'r', encoding='utf-8') as f:
            content = await f.read()
    except OSError as e:
        raise LauncherIOError(path, f"could not read: {e}") from e
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        log.error(f"Failed to parse {path}: {e}")
        raise ParseError(str(path), f"invalid JSON: {e}") from e


class DownloadExecutor:
    def __init__(self, fetcher: ContentFetcher):
        self.fetcher = fetcher

    async def execute(self, item: DownloadItem) -> bool:
        """Materializes a single item. Returns False on a cache hit and True
        when something was downloaded."""
        dest = item.destination_path
        if await aiofiles.os.path.exists(dest):
            log.debug(f"{dest} already present, skipping {item.source_url}")
            return False

        container = require_container_format(item.source_url) if item.extract else None

        parent = dest.parent
        try:
            await aiofiles.os.makedirs(parent, exist_ok=True)
        except OSError as e:
            raise LauncherIOError(parent, f"could not create directory: {e}") from e

        temp_path = await self._make_temp_file(parent, dest.name)
        try:
            await self.fetcher.fetch(item.source_url, temp_path)

            if item.hash is not None:
                await verify_file(temp_path, item.hash, display_path=dest)

            if container is not None:
                await extract_archive(temp_path, container, parent)
                if not await aiofiles.os.path.exists(dest):
                    log.warning(f"Archive from {item.source_url} did not produce {dest}; it will be fetched again next time.")
            else:
                try:
                    await aiofiles.os.replace(temp_path, dest)
                except OSError as e:
                    raise LauncherIOError(dest, f"could not move downloaded file into place: {e}") from e
        except Exception:
            log.error(f"Error downloading {item.source_url}")
            raise
        finally:
            await self._discard(temp_path)

        log.debug(f"Downloaded {item.source_url} -> {dest}")
        return True

    async def fetch_json(self, item: DownloadItem) -> Any:
        """Executes a document item and decodes the cached file. Invalid JSON
        raises ParseError and leaves the file in place."""
        await self.execute(item)
        return await load_json_file(item.destination_path)

    async def run(self, items: Iterable[DownloadItem]) -> AsyncIterator[ProgressEvent]:
        """Drains the plan one item at a time, yielding after each completed
        item. The first failure propagates and stops the run; items finished
        before it stay in place. Stop iterating to abandon the rest."""
        items = list(items)
        total = len(items)
        for completed, item in enumerate(items, start=1):
            await self.execute(item)
            yield ProgressEvent(completed=completed, total=total, url=item.source_url)

    async def execute_all(self, items: Iterable[DownloadItem]) -> int:
        """Runs every item and returns how many were processed."""
        count = 0
        async for _ in self.run(items):
            count += 1
        return count

    @staticmethod
    async def _make_temp_file(directory: pathlib.Path, name: str) -> pathlib.Path:
        loop = asyncio.get_running_loop()
        try:
            fd, temp_path = await loop.run_in_executor(
                None, lambda: tempfile.mkstemp(prefix=f".{name}.", suffix='.part', dir=directory)
            )
        except OSError as e:
            raise LauncherIOError(directory, f"could not create temporary file: {e}") from e
        os.close(fd)
        return pathlib.Path(temp_path)

    @staticmethod
    async def _discard(temp_path: pathlib.Path):
        if await aiofiles.os.path.exists(temp_path):
            try:
                await aiofiles.os.remove(temp_path)
                log.debug(f"Temporary file {temp_path} deleted.")
            except OSError as e:
                log.warning(f"Could not delete temporary file {temp_path}: {e}")
