"""Version manifest and metadata manager."""

import logging
from pathlib import Path
from typing import Optional, Tuple

from ..config import LauncherConfig
from ..exceptions import FileSystemError, FormatError, NotFoundError
from ..utils.async_http import AsyncHTTPClient
from ..utils.fileops import read_json_file, write_json_file
from .download_manager import DownloadManager
from .models import PackManifest, VersionDescriptor, VersionInfo, VersionManifest

logger = logging.getLogger(__name__)


class VersionManager:
    def __init__(self, config: LauncherConfig, http: Optional[AsyncHTTPClient] = None,
                 downloads: Optional[DownloadManager] = None):
        self.config = config
        self.http = http
        self.downloads = downloads

    @property
    def versions_dir(self) -> Path:
        return self.config.versions_dir

    def version_json_file(self, version_id: str) -> Path:
        return self.versions_dir / version_id / f"{version_id}.json"

    def version_jar_file(self, version_id: str) -> Path:
        return self.versions_dir / version_id / f"{version_id}.jar"

    async def fetch_manifest(self) -> VersionManifest:
        """Fetch the launcher version manifest."""
        data = await self.http.get_json(self.config.version_manifest_url, "version manifest")
        return VersionManifest.model_validate(data)

    async def get_version_info(self, version_id: str,
                               manifest: Optional[VersionManifest] = None) -> Optional[VersionInfo]:
        """Get version info for a specific version."""
        if manifest is None:
            manifest = await self.fetch_manifest()

        for version in manifest.versions:
            if version.id == version_id:
                return version
        return None

    async def resolve_base_version(self, version_id: str) -> VersionDescriptor:
        """Look ``version_id`` up in the remote manifest and fetch its version.json."""
        info = await self.get_version_info(version_id)
        if info is None or not info.url:
            raise NotFoundError(f"Minecraft version {version_id} was not found")

        logger.info("Resolving version %s from %s", version_id, info.url)
        data = await self.http.get_json(info.url, f"version {version_id} metadata")
        return VersionDescriptor.parse(data, f"version {version_id} metadata")

    def resolve_installed_overlay_id(self, base_version: str, overlay_version: str) -> str:
        """Find the id of an installed overlay version without touching the network."""
        marker = self.config.overlay_marker
        expected = f"{base_version}-{marker}-{overlay_version}"
        if self.version_json_file(expected).exists():
            return expected

        if not self.versions_dir.is_dir():
            raise NotFoundError(f"Versions directory is missing: {self.versions_dir}")

        for entry in sorted(self.versions_dir.iterdir(), key=lambda p: p.name):
            if not entry.is_dir() or entry.is_symlink():
                continue
            if marker not in entry.name or overlay_version not in entry.name:
                continue
            if self.version_json_file(entry.name).exists():
                logger.debug("Using installed overlay %s", entry.name)
                return entry.name

        raise NotFoundError(f"Could not find installed {marker} version metadata for {overlay_version}")

    async def read_installed_version(self, version_id: str) -> VersionDescriptor:
        path = self.version_json_file(version_id)
        if not path.exists():
            raise NotFoundError(f"Missing version metadata: {path}")
        data = await read_json_file(path)
        return VersionDescriptor.parse(data, str(path))

    async def read_pack_versions(self) -> Tuple[str, str]:
        """Return the (base, overlay) versions named by the pack manifest."""
        path = self.config.pack_manifest_file
        if not path.exists():
            raise NotFoundError(f"Missing {self.config.pack_manifest_name} in {self.config.pack_dir}")
        manifest = PackManifest.model_validate(await read_json_file(path))
        return manifest.component_versions(self.config.base_component_uid,
                                           self.config.overlay_component_uid)

    async def ensure_version_files(self, base: VersionDescriptor, overlay: VersionDescriptor,
                                   base_version: Optional[str] = None):
        """Persist both version.json documents and download the client jar."""
        base_id = base_version or base.id
        if not base_id:
            raise FormatError("Base version id is missing")

        base_json = self.version_json_file(base_id)
        try:
            base_json.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"Could not create {base_json.parent}: {e}") from e
        if not base_json.exists():
            await write_json_file(base_json, base.document)

        client = base.downloads.client if base.downloads is not None else None
        if client is None or not client.url:
            raise FormatError("Minecraft client download URL was missing")
        await self.downloads.fetch(client.url, self.version_jar_file(base_id), client.size,
                                   label="Downloading Minecraft Client", item="Minecraft client jar")

        if not overlay.id:
            raise FormatError("Overlay version id was missing from its version.json")
        overlay_json = self.version_json_file(overlay.id)
        if not overlay_json.exists():
            await write_json_file(overlay_json, overlay.document)
