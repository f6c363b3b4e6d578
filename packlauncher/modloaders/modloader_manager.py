"""Mod loader manager."""

import asyncio
import json
import logging
import zipfile
from pathlib import Path
from typing import Any

from ..config import LauncherConfig
from ..exceptions import FileSystemError, FormatError, NotFoundError
from ..versions.coordinates import coordinate_to_path, library_url
from ..versions.download_manager import DownloadManager
from ..versions.models import VersionDescriptor

logger = logging.getLogger(__name__)


def _read_archive_entry(archive: Path, entry: str) -> bytes:
    with zipfile.ZipFile(archive, "r") as zip_ref:
        try:
            return zip_ref.read(entry)
        except KeyError:
            raise NotFoundError(f"Installer {archive.name} did not contain {entry}") from None


class ModLoaderManager:
    """Resolves the overlay (Forge) version.json from its installer jar.

    The installer is never run; only its embedded metadata is read.
    """

    def __init__(self, config: LauncherConfig, downloads: DownloadManager):
        self.config = config
        self.downloads = downloads

    def installer_coordinate(self, base_version: str, overlay_version: str) -> str:
        return f"{self.config.installer_coordinate}:{base_version}-{overlay_version}:installer"

    def installer_url(self, base_version: str, overlay_version: str) -> str:
        coordinate = self.installer_coordinate(base_version, overlay_version)
        path = coordinate_to_path(coordinate)
        if path is None:
            raise FormatError(f"Malformed installer coordinate: {coordinate}")
        return library_url(self.config.installer_repository_url, path)

    def installer_file(self, base_version: str, overlay_version: str) -> Path:
        return self.config.temp_dir / f"forge-installer-{base_version}-{overlay_version}.jar"

    async def download_installer(self, base_version: str, overlay_version: str) -> Path:
        """Download the overlay installer to the scratch directory."""
        url = self.installer_url(base_version, overlay_version)
        dest = self.installer_file(base_version, overlay_version)
        logger.info("Downloading installer for %s-%s", base_version, overlay_version)
        await self.downloads.fetch(url, dest, label="Downloading Forge Installer", item="Forge installer")
        return dest

    async def read_installer_metadata(self, installer: Path) -> Any:
        entry = self.config.installer_metadata_entry
        try:
            raw = await asyncio.get_running_loop().run_in_executor(None, _read_archive_entry, installer, entry)
        except zipfile.BadZipFile as e:
            raise FormatError(f"Installer is not a valid archive: {installer}") from e
        except OSError as e:
            raise FileSystemError(f"Could not read {installer}: {e}") from e

        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise FormatError(f"Installer {entry} is not valid JSON: {e}") from e

    async def resolve_overlay_version(self, base_version: str, overlay_version: str) -> VersionDescriptor:
        """Download the installer and parse the version.json it carries."""
        installer = await self.download_installer(base_version, overlay_version)
        document = await self.read_installer_metadata(installer)
        return VersionDescriptor.parse(document, f"{installer.name}:{self.config.installer_metadata_entry}")
