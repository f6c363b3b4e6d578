"""Java runtime manager."""

import logging
import os
import stat
from pathlib import Path
from typing import List, Optional

from ..config import LauncherConfig
from ..exceptions import ConfigError, FileSystemError, NotFoundError
from ..progress import INDETERMINATE, ProgressChannel
from ..utils.fileops import expand_archive, install_extracted_directory, remove_path
from ..versions.download_manager import DownloadManager
from ..versions.rules import PlatformContext

logger = logging.getLogger(__name__)


class JavaManager:
    """Installs a portable JDK into the launcher's ``jvm`` directory."""

    def __init__(self, config: LauncherConfig, context: PlatformContext,
                 downloads: Optional[DownloadManager] = None, progress: Optional[ProgressChannel] = None):
        self.config = config
        self.context = context
        self.downloads = downloads
        self.progress = progress

    @property
    def java_dir(self) -> Path:
        return self.config.java_dir

    def download_url(self) -> str:
        """JDK archive URL for the current platform and architecture."""
        url = self.config.runtime_downloads.get(self.context.runtime_key)
        if not url:
            raise ConfigError(f"Unsupported platform/architecture combination: {self.context.runtime_key}")
        return url

    async def ensure_java(self):
        """Download and install the JDK unless one is already installed."""
        if self.java_dir.exists():
            return

        url = self.download_url()
        archive = self.config.temp_dir / "jdk.zip"
        extract_dir = self.config.temp_dir / "jdk_extract"
        remove_path(archive)
        remove_path(extract_dir)

        logger.info("Downloading JDK from %s", url)
        await self.downloads.fetch(url, archive, label="Downloading JDK", item="JDK archive")

        if self.progress is not None:
            self.progress.emit("Installing JDK", INDETERMINATE)
        logger.info("Extracting JDK into %s", self.java_dir)
        await expand_archive(archive, extract_dir)
        await install_extracted_directory(extract_dir, self.java_dir)

        remove_path(archive)
        remove_path(extract_dir)
        logger.info("Portable JDK ready: %s", self.java_dir)

    def _candidates(self) -> List[Path]:
        binary = "java.exe" if self.context.is_windows else "java"
        candidates = [
            self.java_dir / "bin" / binary,
            self.java_dir / "jre" / "bin" / binary,
        ]
        if self.context.platform == "macos":
            candidates.append(self.java_dir / "Contents" / "Home" / "bin" / "java")
        return candidates

    def find_java(self) -> Path:
        """Locate the java executable inside the installed runtime."""
        for path in self._candidates():
            if path.is_file():
                return path

        if self.java_dir.is_dir():
            for root, _dirs, files in os.walk(self.java_dir):
                if Path(root).name.lower() != "bin":
                    continue
                for name in sorted(files):
                    if name.lower() in ("java", "java.exe"):
                        return Path(root) / name

        raise NotFoundError(f"Could not locate a java executable in {self.java_dir}")

    def ensure_executable(self, binary: Path):
        if self.context.is_windows:
            return
        try:
            mode = binary.stat().st_mode
            binary.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        except OSError as e:
            raise FileSystemError(f"Could not mark {binary} executable: {e}") from e
