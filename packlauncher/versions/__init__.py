"""Version management module."""

from .manager import VersionManager
from .download_manager import DownloadManager, DownloadTarget
from .models import VersionDescriptor, VersionManifest, VersionInfo
from .planner import LibraryPlanner
from .rules import PlatformContext, evaluate

__all__ = ["VersionManager", "DownloadManager", "DownloadTarget", "VersionDescriptor", "VersionManifest",
           "VersionInfo", "LibraryPlanner", "PlatformContext", "evaluate"]
