"""Game process supervision and log capture."""

import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional, Sequence

import aiofiles

from ..exceptions import FileSystemError, ProcessError

logger = logging.getLogger(__name__)
game_logger = logging.getLogger("packlauncher.game")

STREAM_LIMIT = 4 * 1024 * 1024
READER_DRAIN_TIMEOUT = 5.0


class GameProcess:
    """A running game and the tasks copying its output into a log file.

    Closing stops the log capture only; the game itself keeps running.
    """

    def __init__(self, process: asyncio.subprocess.Process, log_path: Path, log_file):
        self.process = process
        self.log_path = log_path
        self._log = log_file
        self._lock = asyncio.Lock()
        self._closed = False
        self._readers: List[asyncio.Task] = [
            asyncio.ensure_future(self._pump(process.stdout, "[OUT]")),
            asyncio.ensure_future(self._pump(process.stderr, "[ERR]")),
        ]
        self._watcher = asyncio.ensure_future(self._watch_exit())

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode

    @property
    def closed(self) -> bool:
        return self._closed

    async def _write(self, text: str):
        async with self._lock:
            if self._log is None:
                return
            await self._log.write(text)
            await self._log.flush()

    async def _close_log(self):
        async with self._lock:
            if self._log is None:
                return
            log, self._log = self._log, None
            await log.close()

    async def _log_line(self, tag: str, data: bytes):
        text = data.decode("utf-8", errors="replace").rstrip("\r\n")
        game_logger.debug("%s %s", tag, text)
        await self._write(f"{tag} {text}\n")

    async def _pump(self, stream: asyncio.StreamReader, tag: str):
        split = False
        while True:
            try:
                line = await stream.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                line = e.partial
                if not line:
                    return
            except asyncio.LimitOverrunError as e:
                # Lines longer than the reader limit are logged in pieces.
                await self._log_line(tag, await stream.read(max(e.consumed, 1)))
                split = True
                continue

            if split and line in (b"\n", b"\r\n"):
                split = False
                continue
            split = False
            await self._log_line(tag, line)

    async def _watch_exit(self):
        code = await self.process.wait()
        _done, pending = await asyncio.wait(self._readers, timeout=READER_DRAIN_TIMEOUT)
        if pending:
            logger.debug("Output readers did not finish after exit")
        logger.info("Game exited with code %s", code)
        await self._write(f"Game exited with code {code}\n")
        await self._close_log()
        await _cancel(self._readers)

    async def wait(self) -> int:
        """Wait for the game to exit and for its log to be finalized."""
        code = await self.process.wait()
        if not self._watcher.done():
            await asyncio.wait([self._watcher])
        return code

    async def close(self):
        """Stop capturing output. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await _cancel([*self._readers, self._watcher])
        await self._close_log()


async def _cancel(tasks: Sequence[asyncio.Task]):
    for task in tasks:
        if not task.done():
            task.cancel()
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for result in results:
        if isinstance(result, Exception):
            logger.warning("Game output task failed: %s", result)


class ProcessSupervisor:
    """Starts the game detached from the launcher with its output logged."""

    def __init__(self, logs_dir: Path):
        self.logs_dir = logs_dir

    def new_log_path(self) -> Path:
        return self.logs_dir / f"game-{int(time.time() * 1000)}.log"

    async def start(self, executable: Path, arguments: Sequence[str], working_directory: Path) -> GameProcess:
        log_path = self.new_log_path()
        try:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            log_file = await aiofiles.open(log_path, "a", encoding="utf-8")
        except OSError as e:
            raise FileSystemError(f"Could not open game log {log_path}: {e}") from e

        try:
            await log_file.write(f"Starting java: {executable}\n")
            await log_file.write(f"Working directory: {working_directory}\n")
            await log_file.write(f"Argument count: {len(arguments)}\n")
            await log_file.flush()
        except OSError as e:
            await log_file.close()
            raise FileSystemError(f"Could not write game log {log_path}: {e}") from e

        try:
            process = await asyncio.create_subprocess_exec(
                str(executable), *arguments,
                cwd=str(working_directory),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            await log_file.close()
            raise ProcessError(f"Could not start {executable}: {e}") from e

        logger.info("Started %s (pid %s), logging to %s", executable, process.pid, log_path)
        return GameProcess(process, log_path, log_file)
