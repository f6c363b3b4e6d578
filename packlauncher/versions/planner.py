"""Turn version descriptors into download plans for libraries and assets."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .coordinates import asset_hash_to_path, asset_url, coordinate_to_path, library_url, local_path
from .download_manager import DownloadTarget
from .models import AssetIndex, DownloadArtifact, LibraryEntry
from .rules import PlatformContext, evaluate


class LibraryPlanner:
    """Plans library, native and asset downloads for one platform.

    Library plans are keyed by the path relative to the libraries directory,
    so the same artifact declared by both the base game and the overlay is
    fetched once.
    """

    def __init__(self, libraries_dir: Path, assets_dir: Path, context: PlatformContext,
                 library_base_url: str, asset_base_url: str):
        self.libraries_dir = libraries_dir
        self.assets_dir = assets_dir
        self.context = context
        self.library_base_url = library_base_url
        self.asset_base_url = asset_base_url

    def is_allowed(self, library: LibraryEntry) -> bool:
        return evaluate(library.rules, self.context)

    def native_classifier(self, library: LibraryEntry) -> Optional[str]:
        """Classifier of the native jar for this OS, with ``${arch}`` filled in."""
        classifier = library.natives.get(self.context.os_name, "")
        if not classifier:
            return None
        return classifier.replace("${arch}", self.context.native_arch)

    def _artifact_target(self, artifact: Optional[DownloadArtifact]) -> Optional[DownloadTarget]:
        if artifact is None or not artifact.path or not artifact.url:
            return None
        return DownloadTarget(artifact.url, local_path(self.libraries_dir, artifact.path), artifact.size)

    def _coordinate_target(self, library: LibraryEntry) -> Optional[DownloadTarget]:
        path = coordinate_to_path(library.name)
        if path is None:
            return None
        base_url = library.url or self.library_base_url
        return DownloadTarget(library_url(base_url, path), local_path(self.libraries_dir, path))

    def add_library(self, library: LibraryEntry, outputs: Dict[str, DownloadTarget]):
        """Add the downloads of one library to ``outputs``."""
        if not self.is_allowed(library):
            return

        downloads = library.downloads
        if downloads is None or downloads.is_empty:
            path = coordinate_to_path(library.name)
            target = self._coordinate_target(library)
            if path is not None and target is not None:
                outputs[path] = target
            return

        if downloads.artifact is not None and not downloads.artifact.is_empty:
            target = self._artifact_target(downloads.artifact)
            if target is not None:
                outputs[downloads.artifact.path] = target
        else:
            path = coordinate_to_path(library.name)
            target = self._coordinate_target(library)
            if path is not None and target is not None:
                outputs[path] = target

        classifier = self.native_classifier(library)
        if classifier is not None:
            native = downloads.classifiers.get(classifier)
            target = self._artifact_target(native)
            if native is not None and target is not None:
                outputs[native.path] = target

    def plan_libraries(self, *library_lists: Iterable[LibraryEntry]) -> Dict[str, DownloadTarget]:
        """Merge the libraries of every list into one deduplicated plan."""
        outputs: Dict[str, DownloadTarget] = {}
        for libraries in library_lists:
            for library in libraries:
                self.add_library(library, outputs)
        return outputs

    def native_jars(self, *library_lists: Iterable[LibraryEntry]) -> List[Path]:
        """Native classifier jars present on disk, in declaration order."""
        files: List[Path] = []
        seen = set()
        for libraries in library_lists:
            for library in libraries:
                if not self.is_allowed(library):
                    continue
                classifier = self.native_classifier(library)
                if not classifier:
                    continue

                path = ""
                if library.downloads is not None:
                    native = library.downloads.classifiers.get(classifier)
                    if native is not None:
                        path = native.path
                if not path and library.name:
                    path = coordinate_to_path(f"{library.name}:{classifier}") or ""
                if not path:
                    continue

                jar = local_path(self.libraries_dir, path)
                if jar in seen:
                    continue
                seen.add(jar)
                if jar.exists():
                    files.append(jar)
        return files

    def plan_assets(self, index: AssetIndex) -> List[DownloadTarget]:
        """One target per content-addressed object; malformed hashes are skipped."""
        targets = []
        for asset in index.objects.values():
            path = asset_hash_to_path(asset.hash)
            if path is None:
                continue
            targets.append(DownloadTarget(asset_url(self.asset_base_url, asset.hash),
                                          local_path(self.assets_dir, path), asset.size))
        return targets
