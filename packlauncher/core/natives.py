"""Native library extraction."""

import asyncio
import logging
import shutil
import time
import zipfile
from pathlib import Path
from typing import Optional, Sequence

from ..exceptions import FileSystemError, FormatError
from ..progress import ProgressChannel
from ..utils.fileops import remove_path

logger = logging.getLogger(__name__)

RESERVED_PREFIX = "META-INF/"


def _extract_jar(jar: Path, destination: Path):
    root = destination.resolve()
    with zipfile.ZipFile(jar, "r") as zip_ref:
        for info in zip_ref.infolist():
            if info.is_dir() or info.filename.startswith(RESERVED_PREFIX):
                continue
            target = (destination / info.filename).resolve()
            if root not in target.parents:
                raise FormatError(f"Unsafe entry {info.filename!r} in {jar}")
            target.parent.mkdir(parents=True, exist_ok=True)
            with zip_ref.open(info) as src, open(target, "wb") as dst:
                shutil.copyfileobj(src, dst)


class NativeExtractor:
    """Unpacks native jars into a fresh per-launch directory."""

    def __init__(self, natives_root: Path, progress: Optional[ProgressChannel] = None):
        self.natives_root = natives_root
        self.progress = progress

    def prepare_directory(self) -> Path:
        """Create ``<natives_root>/<epoch millis>``, replacing a stale one of the same name."""
        directory = self.natives_root / str(int(time.time() * 1000))
        remove_path(directory)
        try:
            directory.mkdir(parents=True)
        except OSError as e:
            raise FileSystemError(f"Could not create {directory}: {e}") from e
        return directory

    async def extract(self, jar_files: Sequence[Path], destination: Path):
        total = len(jar_files)
        loop = asyncio.get_running_loop()
        for index, jar in enumerate(jar_files, start=1):
            if self.progress is not None:
                self.progress.emit(f"Extracting Natives ({index}/{total})", index / total)
            if not jar.exists():
                continue
            logger.debug("Extracting natives from %s", jar)
            try:
                await loop.run_in_executor(None, _extract_jar, jar, destination)
            except zipfile.BadZipFile as e:
                raise FormatError(f"Not a valid native archive: {jar}") from e
            except OSError as e:
                raise FileSystemError(f"Could not extract {jar}: {e}") from e
