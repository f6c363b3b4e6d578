"""Translate library coordinates and asset hashes into paths and URLs."""

from pathlib import Path
from typing import Optional
from urllib.parse import urljoin


def coordinate_to_path(coordinate: str) -> Optional[str]:
    """Map ``group:artifact:version[:classifier][@ext]`` to a repository path.

    Returns None when the coordinate has fewer than three segments.
    """
    parts = coordinate.split(":")
    if len(parts) < 3:
        return None

    group = parts[0].replace(".", "/")
    artifact = parts[1]
    version = parts[2]
    classifier = ""
    extension = "jar"

    if len(parts) > 3 and parts[3]:
        classifier, _, ext = parts[3].partition("@")
        if ext:
            extension = ext

    file_name = f"{artifact}-{version}"
    if classifier:
        file_name += f"-{classifier}"
    return f"{group}/{artifact}/{version}/{file_name}.{extension}"


def asset_hash_to_path(asset_hash: str) -> Optional[str]:
    """Content-addressed object path, or None for hashes shorter than 2 chars."""
    if len(asset_hash) < 2:
        return None
    return f"objects/{asset_hash[:2]}/{asset_hash}"


def asset_url(base_url: str, asset_hash: str) -> str:
    return f"{base_url.rstrip('/')}/{asset_hash[:2]}/{asset_hash}"


def library_url(base_url: str, path: str) -> str:
    if not base_url.endswith("/"):
        base_url += "/"
    return urljoin(base_url, path)


def local_path(root: Path, relative: str) -> Path:
    """Join a slash-separated relative path onto ``root``."""
    return root.joinpath(*[part for part in relative.split("/") if part])
