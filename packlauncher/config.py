"""Launcher configuration."""

from pathlib import Path
from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_JVM_FLAGS = (
    "-Xmx16g -Xms8g -XX:+DisableExplicitGC -XX:SoftMaxHeapSize=10g -XX:+UseG1GC "
    "-XX:+ParallelRefProcEnabled -XX:MaxGCPauseMillis=16 -XX:+UnlockExperimentalVMOptions "
    "-XX:+DisableExplicitGC -XX:+AlwaysPreTouch -XX:G1HeapWastePercent=5 "
    "-XX:G1MixedGCCountTarget=4 -XX:InitiatingHeapOccupancyPercent=15 "
    "-XX:G1MixedGCLiveThresholdPercent=90 -XX:G1RSetUpdatingPauseTimePercent=5 "
    "-XX:SurvivorRatio=32 -XX:MaxTenuringThreshold=1 -XX:G1NewSizePercent=40 "
    "-XX:G1MaxNewSizePercent=50 -XX:G1HeapRegionSize=16M -XX:G1ReservePercent=15 "
    "-Dfml.readTimeout=120 -Dfml.loginTimeout=120"
)

DEFAULT_RUNTIME_DOWNLOADS = {
    "macos-arm64": "https://cdn.azul.com/zulu/bin/zulu17.64.17-ca-jdk17.0.18-macosx_aarch64.zip",
    "macos-x64": "https://cdn.azul.com/zulu/bin/zulu17.64.17-ca-jdk17.0.18-macosx_x64.zip",
    "windows-x64": "https://cdn.azul.com/zulu/bin/zulu17.64.17-ca-jdk17.0.18-win_x64.zip",
    "windows-arm64": "https://cdn.azul.com/zulu/bin/zulu17.64.17-ca-jdk17.0.18-win_aarch64.zip",
    "linux-x64": "https://cdn.azul.com/zulu/bin/zulu17.64.17-ca-jdk17.0.18-linux_x64.zip",
}

DEFAULT_PACK_ARCHIVE_URLS = (
    "https://codeload.github.com/AuramMods/Auram/zip/refs/heads/main",
    "https://codeload.github.com/AuramMods/Auram/zip/refs/heads/master",
)


class LauncherConfig(BaseModel):
    """Immutable settings and directory layout for one launcher installation.

    Everything the launcher writes lives below ``root_dir``::

        root_dir/
            jvm/                  portable Java runtime
            temp/                 scratch space, reset on initialize()
            logs/                 one log file per game launch
            minecraft/            installed pack (pack_dir)
                mmc-pack.json
                minecraft/        game directory and launch cwd (game_dir)
                    libraries/ versions/ assets/ natives/
    """

    model_config = ConfigDict(frozen=True)

    root_dir: Path

    version_manifest_url: str = "https://launchermeta.mojang.com/mc/game/version_manifest_v2.json"
    asset_object_base_url: str = "https://resources.download.minecraft.net"
    library_base_url: str = "https://libraries.minecraft.net/"
    installer_repository_url: str = "https://maven.minecraftforge.net/"
    installer_coordinate: str = "net.minecraftforge:forge"
    installer_metadata_entry: str = "version.json"
    overlay_marker: str = "forge"

    pack_archive_urls: Tuple[str, ...] = DEFAULT_PACK_ARCHIVE_URLS
    pack_manifest_name: str = "mmc-pack.json"
    base_component_uid: str = "net.minecraft"
    overlay_component_uid: str = "net.minecraftforge"
    assumed_pack_bytes: int = 1024 * 1024 * 1024

    runtime_downloads: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_RUNTIME_DOWNLOADS))
    jvm_flags: str = DEFAULT_JVM_FLAGS

    asset_concurrency: int = 64
    connect_timeout: float = 30.0

    launcher_name: str = "packlauncher"
    launcher_version: str = "1.0.0"

    @classmethod
    def default(cls) -> "LauncherConfig":
        return cls(root_dir=Path.home() / ".packlauncher")

    @property
    def java_dir(self) -> Path:
        return self.root_dir / "jvm"

    @property
    def temp_dir(self) -> Path:
        return self.root_dir / "temp"

    @property
    def logs_dir(self) -> Path:
        return self.root_dir / "logs"

    @property
    def pack_dir(self) -> Path:
        return self.root_dir / "minecraft"

    @property
    def pack_manifest_file(self) -> Path:
        return self.pack_dir / self.pack_manifest_name

    @property
    def game_dir(self) -> Path:
        return self.pack_dir / "minecraft"

    @property
    def libraries_dir(self) -> Path:
        return self.game_dir / "libraries"

    @property
    def versions_dir(self) -> Path:
        return self.game_dir / "versions"

    @property
    def assets_dir(self) -> Path:
        return self.game_dir / "assets"

    @property
    def natives_root_dir(self) -> Path:
        return self.game_dir / "natives"
