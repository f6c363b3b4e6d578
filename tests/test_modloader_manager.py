"""Tests for overlay resolution from the installer archive."""

import json

import pytest

from helpers import make_zip
from packlauncher.exceptions import FormatError, NotFoundError
from packlauncher.modloaders.modloader_manager import ModLoaderManager
from packlauncher.versions.download_manager import DownloadManager

INSTALLER_PATH = "/maven/net/minecraftforge/forge/1.20.1-47.2.0/forge-1.20.1-47.2.0-installer.jar"


@pytest.fixture
def maven_config(config, file_server):
    return config.model_copy(update={"installer_repository_url": file_server.url("/maven")})


def test_installer_url(config):
    manager = ModLoaderManager(config, None)
    assert manager.installer_url("1.20.1", "47.2.0") == \
        "https://maven.minecraftforge.net/net/minecraftforge/forge/1.20.1-47.2.0/forge-1.20.1-47.2.0-installer.jar"


@pytest.mark.asyncio
async def test_resolve_overlay_version(maven_config, file_server, http):
    metadata = {"id": "1.20.1-forge-47.2.0", "inheritsFrom": "1.20.1", "mainClass": "Bootstrap"}
    file_server.add(INSTALLER_PATH, make_zip({
        "install_profile.json": b"{}",
        "version.json": json.dumps(metadata).encode(),
    }))

    overlay = await ModLoaderManager(maven_config, DownloadManager(http)).resolve_overlay_version("1.20.1", "47.2.0")

    assert overlay.id == "1.20.1-forge-47.2.0"
    assert overlay.inheritsFrom == "1.20.1"
    assert overlay.document == metadata
    assert (maven_config.temp_dir / "forge-installer-1.20.1-47.2.0.jar").exists()


@pytest.mark.asyncio
async def test_installer_without_metadata_raises(maven_config, file_server, http):
    file_server.add(INSTALLER_PATH, make_zip({"install_profile.json": b"{}"}))

    with pytest.raises(NotFoundError):
        await ModLoaderManager(maven_config, DownloadManager(http)).resolve_overlay_version("1.20.1", "47.2.0")


@pytest.mark.asyncio
async def test_installer_metadata_must_be_an_object(maven_config, file_server, http):
    file_server.add(INSTALLER_PATH, make_zip({"version.json": b"[1, 2]"}))

    with pytest.raises(FormatError):
        await ModLoaderManager(maven_config, DownloadManager(http)).resolve_overlay_version("1.20.1", "47.2.0")


@pytest.mark.asyncio
async def test_corrupt_installer_raises(maven_config, file_server, http):
    file_server.add(INSTALLER_PATH, b"not a zip")

    with pytest.raises(FormatError):
        await ModLoaderManager(maven_config, DownloadManager(http)).resolve_overlay_version("1.20.1", "47.2.0")
