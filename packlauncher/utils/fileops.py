"""
fileops.py

Filesystem helpers shared by the installer steps: JSON documents on disk,
zip archive expansion and promotion of an extracted tree into place.

Blocking work (zip handling, tree copies) runs in the default executor so the
event loop keeps serving concurrent downloads.
"""

import asyncio
import json
import logging
import shutil
import zipfile
from pathlib import Path
from typing import Any, Dict

import aiofiles

from ..exceptions import FileSystemError, FormatError, NotFoundError

logger = logging.getLogger(__name__)


async def read_json_file(path: Path) -> Dict[str, Any]:
    """Read a JSON object from ``path``."""
    if not path.exists():
        raise NotFoundError(f"Missing file: {path}")
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            content = await f.read()
    except OSError as e:
        raise FileSystemError(f"Could not read {path}: {e}") from e
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise FormatError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise FormatError(f"Expected JSON object in {path}")
    return data


async def write_json_file(path: Path, data: Dict[str, Any]):
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data))
    except OSError as e:
        raise FileSystemError(f"Could not write {path}: {e}") from e


def remove_path(path: Path):
    """Delete a file or directory tree if it exists."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()
    except OSError as e:
        raise FileSystemError(f"Could not remove {path}: {e}") from e


def _expand(archive: Path, destination: Path):
    destination.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(archive, "r") as zip_ref:
        zip_ref.extractall(destination)


async def expand_archive(archive: Path, destination: Path):
    """Expand a zip archive into ``destination``."""
    logger.debug("Expanding %s into %s", archive, destination)
    try:
        await asyncio.get_running_loop().run_in_executor(None, _expand, archive, destination)
    except zipfile.BadZipFile as e:
        raise FormatError(f"Not a valid zip archive: {archive}") from e
    except OSError as e:
        raise FileSystemError(f"Could not expand {archive}: {e}") from e


def _install_tree(extract_dir: Path, install_dir: Path):
    top_level = [child for child in extract_dir.iterdir() if child.is_dir()]
    source_root = top_level[0] if len(top_level) == 1 else extract_dir

    if install_dir.exists():
        shutil.rmtree(install_dir)

    if source_root != extract_dir:
        try:
            source_root.rename(install_dir)
            return
        except OSError:
            logger.debug("Rename of %s failed, copying instead", source_root)

    install_dir.mkdir(parents=True, exist_ok=True)
    for child in source_root.iterdir():
        target = install_dir / child.name
        if child.is_symlink():
            target.symlink_to(child.readlink())
        elif child.is_dir():
            shutil.copytree(child, target, symlinks=True)
        else:
            shutil.copy2(child, target)


async def install_extracted_directory(extract_dir: Path, install_dir: Path):
    """Move an expanded archive into ``install_dir``, replacing it.

    Archives that wrap everything in a single top-level directory have that
    directory promoted; otherwise the whole extracted tree is installed.
    """
    try:
        await asyncio.get_running_loop().run_in_executor(None, _install_tree, extract_dir, install_dir)
    except OSError as e:
        raise FileSystemError(f"Could not install {extract_dir} into {install_dir}: {e}") from e
