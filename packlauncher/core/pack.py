"""
pack.py

The pack orchestrator: installs the runtime, the pack and the game files it
needs, then launches the game.

All paths and remote locations come from an immutable LauncherConfig; the
only mutable state is the LaunchSession describing the most recent launch.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..auth.models import Credential
from ..config import LauncherConfig
from ..exceptions import FileSystemError, FormatError
from ..progress import INDETERMINATE, ProgressChannel
from ..utils.async_http import AsyncHTTPClient
from ..utils.fileops import expand_archive, install_extracted_directory, read_json_file, remove_path
from ..versions.download_manager import DownloadManager
from ..versions.manager import VersionManager
from ..versions.models import AssetIndex, VersionDescriptor
from ..versions.planner import LibraryPlanner
from ..versions.rules import PlatformContext
from ..modloaders.modloader_manager import ModLoaderManager
from ..runtime.java_manager import JavaManager
from .game_launcher import GameLauncher, LaunchPlan
from .natives import NativeExtractor
from .process import GameProcess, ProcessSupervisor

logger = logging.getLogger(__name__)

HttpFactory = Callable[[], AsyncHTTPClient]


@dataclass
class LaunchSession:
    """State of the most recent launch, owned by one PackInstance."""
    plan: Optional[LaunchPlan] = None
    natives_dir: Optional[Path] = None
    process: Optional[GameProcess] = None

    async def close(self):
        if self.process is not None:
            await self.process.close()
            self.process = None


class PackInstance:
    """One installed pack: ``initialize()`` it, then ``launch()`` it.

    Example:
        async with PackInstance(LauncherConfig.default()) as pack:
            await pack.initialize()
            await pack.launch(credential)
    """

    def __init__(self, config: LauncherConfig, context: Optional[PlatformContext] = None,
                 http_factory: Optional[HttpFactory] = None,
                 supervisor: Optional[ProcessSupervisor] = None):
        self.config = config
        self.context = context or PlatformContext.current()
        self.progress = ProgressChannel()
        self.session = LaunchSession()
        self.launcher = GameLauncher(config, self.context)
        self.supervisor = supervisor or ProcessSupervisor(config.logs_dir)
        self.natives = NativeExtractor(config.natives_root_dir, self.progress)
        self.planner = LibraryPlanner(config.libraries_dir, config.assets_dir, self.context,
                                      config.library_base_url, config.asset_object_base_url)
        self._http_factory = http_factory or (lambda: AsyncHTTPClient(connect_timeout=config.connect_timeout))

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.dispose()

    def _components(self, http: AsyncHTTPClient):
        downloads = DownloadManager(http, self.progress, self.config.asset_concurrency)
        versions = VersionManager(self.config, http, downloads)
        return downloads, versions

    async def initialize(self):
        """Prepare the launcher directories and install everything, then report idle."""
        try:
            self.config.root_dir.mkdir(parents=True, exist_ok=True)
            remove_path(self.config.temp_dir)
            self.config.temp_dir.mkdir(parents=True)
        except OSError as e:
            raise FileSystemError(f"Could not prepare {self.config.root_dir}: {e}") from e
        logger.info("Launcher: %s", self.config.root_dir)

        await self.ensure_install()
        self.progress.emit(None)

    async def ensure_install(self):
        """Install the runtime, the pack and the game files. Safe to repeat."""
        async with self._http_factory() as http:
            downloads, versions = self._components(http)
            await self.ensure_java(downloads)
            await self.ensure_pack(downloads)
            await self.ensure_game_files(downloads, versions)

    async def ensure_java(self, downloads: DownloadManager):
        await JavaManager(self.config, self.context, downloads, self.progress).ensure_java()

    async def ensure_pack(self, downloads: DownloadManager):
        """Download and unpack the pack unless a non-empty copy is installed."""
        pack_dir = self.config.pack_dir
        if pack_dir.is_dir():
            if any(pack_dir.iterdir()):
                return
            remove_path(pack_dir)

        archive = self.config.temp_dir / "pack.zip"
        extract_dir = self.config.temp_dir / "pack_extract"
        remove_path(archive)
        remove_path(extract_dir)

        await downloads.fetch_first(self.config.pack_archive_urls, archive, label="Downloading Auram",
                                    item="pack archive", assumed_size=self.config.assumed_pack_bytes)

        self.progress.emit("Installing Pack", INDETERMINATE)
        logger.info("Extracting pack into %s", pack_dir)
        await expand_archive(archive, extract_dir)
        await install_extracted_directory(extract_dir, pack_dir)

        remove_path(archive)
        remove_path(extract_dir)
        logger.info("Pack ready: %s", pack_dir)

    async def ensure_game_files(self, downloads: DownloadManager, versions: VersionManager):
        """Resolve both versions remotely and fetch their jars, libraries and assets."""
        self.progress.emit("Resolving Minecraft Runtime", INDETERMINATE)
        base_version, overlay_version = await versions.read_pack_versions()

        base = await versions.resolve_base_version(base_version)
        overlay = await ModLoaderManager(self.config, downloads).resolve_overlay_version(base_version,
                                                                                         overlay_version)
        await versions.ensure_version_files(base, overlay, base_version)
        await self.ensure_libraries(downloads, base, overlay)
        await self.ensure_assets(downloads, base)

    async def ensure_libraries(self, downloads: DownloadManager, base: VersionDescriptor,
                               overlay: VersionDescriptor):
        plan = self.planner.plan_libraries(base.libraries, overlay.libraries)
        await downloads.download_libraries(list(plan.values()))

    async def ensure_assets(self, downloads: DownloadManager, base: VersionDescriptor):
        ref = base.assetIndex
        if ref is None or not ref.id or not ref.url:
            raise FormatError("Minecraft assets metadata is missing")

        index_file = self.config.assets_dir / "indexes" / f"{ref.id}.json"
        await downloads.fetch(ref.url, index_file, ref.size, label="Downloading Asset Index",
                              item="asset index")
        index = AssetIndex.model_validate(await read_json_file(index_file))
        await downloads.download_assets(self.planner.plan_assets(index))

    async def read_pack_versions(self) -> Tuple[str, str]:
        return await VersionManager(self.config).read_pack_versions()

    async def _installed_versions(self, versions: VersionManager) -> Tuple[str, str, VersionDescriptor, VersionDescriptor]:
        base_version, overlay_version = await versions.read_pack_versions()
        overlay_id = versions.resolve_installed_overlay_id(base_version, overlay_version)
        base = await versions.read_installed_version(base_version)
        overlay = await versions.read_installed_version(overlay_id)
        return base_version, overlay_id, base, overlay

    def library_files(self, base: VersionDescriptor, overlay: VersionDescriptor) -> List[Path]:
        plan = self.planner.plan_libraries(base.libraries, overlay.libraries)
        return [target.destination for target in plan.values()]

    async def launch(self, credential: Credential) -> GameProcess:
        """Start the installed game for ``credential``. Needs no network access."""
        self.progress.emit("Preparing Launch", INDETERMINATE)
        base_version, overlay_id, base, overlay = await self._installed_versions(VersionManager(self.config))

        natives_dir = self.natives.prepare_directory()
        await self.natives.extract(self.planner.native_jars(base.libraries, overlay.libraries), natives_dir)

        java = JavaManager(self.config, self.context, progress=self.progress)
        executable = java.find_java()
        java.ensure_executable(executable)

        plan = self.launcher.prepare_launch(base, overlay, credential, natives_dir,
                                            self.library_files(base, overlay), executable, base_version,
                                            overlay_id)
        try:
            plan.working_directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(f"Could not create {plan.working_directory}: {e}") from e

        self.progress.emit("Starting Game", INDETERMINATE)
        await self.session.close()
        process = await self.supervisor.start(plan.executable, plan.arguments, plan.working_directory)
        self.session.plan = plan
        self.session.natives_dir = natives_dir
        self.session.process = process
        self.progress.emit("Game Started", 1.0)
        return process

    async def dispose(self):
        """Stop watching the game, release the log file and close progress."""
        await self.session.close()
        self.progress.close()
