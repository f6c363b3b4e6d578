"""Download manager for runtime archives, libraries and assets."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import aiofiles

from ..exceptions import FileSystemError, LauncherError, NetworkError
from ..progress import INDETERMINATE, ProgressChannel
from ..utils.async_http import AsyncHTTPClient
from ..utils.fileops import remove_path

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class DownloadTarget:
    """One file to fetch. ``size`` of 0 means the expected size is unknown."""
    url: str
    destination: Path
    size: int = 0


class DownloadManager:
    def __init__(self, http: AsyncHTTPClient, progress: Optional[ProgressChannel] = None,
                 asset_concurrency: int = 64):
        self.http = http
        self.progress = progress
        self.asset_concurrency = asset_concurrency

    def _emit(self, label: str, fraction: float):
        if self.progress is not None:
            self.progress.emit(label, fraction)

    async def fetch(self, url: str, dest: Path, expected_size: int = 0, label: Optional[str] = None,
                    item: str = "file", assumed_size: int = 0, report_bytes: bool = True) -> bool:
        """Download ``url`` to ``dest`` unless an acceptable copy already exists.

        An existing file is kept when the expected size is unknown, or when it
        is known and matches the file length; a size mismatch triggers a fresh
        download. Returns True when bytes were transferred.
        """
        if dest.exists():
            if expected_size <= 0:
                return False
            if dest.stat().st_size == expected_size:
                return False
            logger.debug("Size mismatch for %s, downloading again", dest)
            remove_path(dest)

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"Could not create {dest.parent}: {e}") from e

        label = label or f"Downloading {item}"
        emit = report_bytes and self.progress is not None
        try:
            async with self.http.stream(url, item) as resp:
                total = resp.content_length or expected_size or assumed_size
                if emit:
                    self._emit(label, 0.0 if total > 0 else INDETERMINATE)

                downloaded = 0
                try:
                    async with aiofiles.open(dest, "wb") as f:
                        async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                            await f.write(chunk)
                            downloaded += len(chunk)
                            if emit and total > 0:
                                self._emit(label, min(downloaded / total, 1.0))
                except OSError as e:
                    raise FileSystemError(f"Could not write {dest}: {e}") from e

                if emit:
                    self._emit(label, 1.0)
        except (LauncherError, asyncio.CancelledError):
            if dest.exists():
                remove_path(dest)
            raise

        logger.debug("Downloaded %s (%d bytes)", dest, downloaded)
        return True

    async def fetch_first(self, urls: Sequence[str], dest: Path, label: Optional[str] = None,
                          item: str = "file", assumed_size: int = 0) -> str:
        """Try each mirror in order; return the URL that succeeded."""
        errors = []
        for url in urls:
            try:
                logger.info("Downloading %s from %s", item, url)
                await self.fetch(url, dest, label=label, item=item, assumed_size=assumed_size)
                return url
            except NetworkError as e:
                logger.warning("Mirror failed for %s: %s", item, e)
                errors.append(e)
                if dest.exists():
                    remove_path(dest)
        raise NetworkError(f"Failed to download {item} from {len(urls)} mirror(s)",
                           url=errors[-1].url if errors else None,
                           status=errors[-1].status if errors else None)

    async def download_libraries(self, targets: Sequence[DownloadTarget]):
        """Fetch every library at once; the first failure aborts the batch."""
        total = len(targets)
        if total <= 0:
            self._emit("0 libs downloaded / 0 total libs", 1.0)
            return

        completed = 0
        self._emit(f"0 libs downloaded / {total} total libs", 0.0)

        async def fetch_one(target: DownloadTarget):
            nonlocal completed
            await self.fetch(target.url, target.destination, target.size,
                             label="Downloading Libraries", item="library", report_bytes=False)
            completed += 1
            self._emit(f"{completed} libs downloaded / {total} total libs", completed / total)

        tasks = [asyncio.ensure_future(fetch_one(target)) for target in targets]
        await _await_all(tasks)

    async def download_assets(self, targets: Sequence[DownloadTarget]):
        """Fetch asset objects with at most ``asset_concurrency`` in flight."""
        total = len(targets)
        if total <= 0:
            self._emit("0 Assets Installed", 1.0)
            return

        completed = 0
        in_flight = 0
        tasks: List[asyncio.Task] = []
        self._emit(f"Installing {total}", 0.0)

        async def fetch_one(target: DownloadTarget):
            nonlocal completed, in_flight
            try:
                await self.fetch(target.url, target.destination, target.size,
                                 label="Downloading Assets", item="asset object", report_bytes=False)
                completed += 1
                self._emit(f"{completed} assets installed", completed / total)
            finally:
                in_flight -= 1

        try:
            for target in targets:
                while in_flight >= self.asset_concurrency:
                    await asyncio.sleep(0.001)
                    _raise_first_failure(tasks)
                in_flight += 1
                tasks.append(asyncio.ensure_future(fetch_one(target)))
        except BaseException:
            await _cancel_pending(tasks)
            raise
        await _await_all(tasks)


def _raise_first_failure(tasks: Sequence[asyncio.Task]):
    for task in tasks:
        if task.done() and not task.cancelled() and task.exception() is not None:
            raise task.exception()


async def _cancel_pending(tasks: Sequence[asyncio.Task]):
    pending = [task for task in tasks if not task.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


async def _await_all(tasks: Sequence[asyncio.Task]):
    """Wait for every task; on the first failure cancel the rest and re-raise."""
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        await _cancel_pending(tasks)
        raise
