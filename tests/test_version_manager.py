"""Tests for version resolution and installed metadata."""

import json

import pytest

from packlauncher.exceptions import FormatError, NotFoundError
from packlauncher.versions.download_manager import DownloadManager
from packlauncher.versions.manager import VersionManager
from packlauncher.versions.models import VersionDescriptor


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def manager(config) -> VersionManager:
    return VersionManager(config)


@pytest.mark.asyncio
async def test_resolve_base_version(config, file_server, http):
    detail = file_server.add("/v1/1.20.1.json", json.dumps({"id": "1.20.1", "mainClass": "Main"}).encode())
    file_server.add("/manifest.json", json.dumps({"versions": [
        {"id": "1.19.4", "url": file_server.url("/v1/1.19.4.json")},
        {"id": "1.20.1", "url": detail},
    ]}).encode())
    config = config.model_copy(update={"version_manifest_url": file_server.url("/manifest.json")})
    versions = VersionManager(config, http, DownloadManager(http))

    descriptor = await versions.resolve_base_version("1.20.1")

    assert descriptor.id == "1.20.1"
    assert descriptor.mainClass == "Main"
    assert file_server.hits["/v1/1.19.4.json"] == 0


@pytest.mark.asyncio
async def test_resolve_unknown_base_version_raises(config, file_server, http):
    file_server.add("/manifest.json", json.dumps({"versions": [{"id": "1.19.4", "url": "x"}]}).encode())
    config = config.model_copy(update={"version_manifest_url": file_server.url("/manifest.json")})

    with pytest.raises(NotFoundError):
        await VersionManager(config, http, DownloadManager(http)).resolve_base_version("1.20.1")


@pytest.mark.asyncio
async def test_invalid_manifest_json_raises(config, file_server, http):
    file_server.add("/manifest.json", b"<html>")
    config = config.model_copy(update={"version_manifest_url": file_server.url("/manifest.json")})

    with pytest.raises(FormatError):
        await VersionManager(config, http, DownloadManager(http)).fetch_manifest()


def test_installed_overlay_prefers_conventional_id(manager):
    write_json(manager.version_json_file("1.20.1-forge-47.2.0"), {})
    write_json(manager.version_json_file("forge-47.2.0-alt"), {})
    assert manager.resolve_installed_overlay_id("1.20.1", "47.2.0") == "1.20.1-forge-47.2.0"


def test_installed_overlay_scans_versions_directory(manager):
    (manager.versions_dir / "1.20.1-forge47.2.0-nojson").mkdir(parents=True)
    write_json(manager.version_json_file("1.20.1-forge47.2.0"), {})
    write_json(manager.version_json_file("1.20.1-fabric-47.2.0"), {})
    assert manager.resolve_installed_overlay_id("1.20.1", "47.2.0") == "1.20.1-forge47.2.0"


def test_installed_overlay_missing_raises(manager):
    with pytest.raises(NotFoundError):
        manager.resolve_installed_overlay_id("1.20.1", "47.2.0")
    write_json(manager.version_json_file("1.20.1"), {})
    with pytest.raises(NotFoundError):
        manager.resolve_installed_overlay_id("1.20.1", "47.2.0")


@pytest.mark.asyncio
async def test_read_installed_version(manager):
    write_json(manager.version_json_file("1.20.1"), {"id": "1.20.1", "libraries": [{"name": "a:b:c"}]})
    descriptor = await manager.read_installed_version("1.20.1")
    assert descriptor.libraries[0].name == "a:b:c"

    with pytest.raises(NotFoundError):
        await manager.read_installed_version("1.19.4")


@pytest.mark.asyncio
async def test_read_pack_versions(manager, config):
    with pytest.raises(NotFoundError):
        await manager.read_pack_versions()

    write_json(config.pack_manifest_file, {"components": [
        {"uid": "net.minecraft", "version": "1.20.1"},
        {"uid": "net.minecraftforge", "version": "47.2.0"},
    ]})
    assert await manager.read_pack_versions() == ("1.20.1", "47.2.0")


@pytest.mark.asyncio
async def test_read_pack_versions_rejects_incomplete_manifest(manager, config):
    write_json(config.pack_manifest_file, {"components": [{"uid": "net.minecraft", "version": "1.20.1"}]})
    with pytest.raises(FormatError):
        await manager.read_pack_versions()


@pytest.mark.asyncio
async def test_ensure_version_files(config, file_server, http):
    client = file_server.add("/client.jar", b"client-bytes")
    base = VersionDescriptor.parse({"id": "1.20.1", "downloads": {"client": {"url": client, "size": 12}}})
    overlay = VersionDescriptor.parse({"id": "1.20.1-forge-47.2.0", "inheritsFrom": "1.20.1"})
    versions = VersionManager(config, http, DownloadManager(http))

    await versions.ensure_version_files(base, overlay, "1.20.1")
    await versions.ensure_version_files(base, overlay, "1.20.1")

    assert json.loads(versions.version_json_file("1.20.1").read_text()) == base.document
    assert json.loads(versions.version_json_file("1.20.1-forge-47.2.0").read_text()) == overlay.document
    assert versions.version_jar_file("1.20.1").read_bytes() == b"client-bytes"
    assert file_server.hits["/client.jar"] == 1


@pytest.mark.asyncio
async def test_ensure_version_files_requires_client_and_overlay_id(config, http):
    versions = VersionManager(config, http, DownloadManager(http))
    with pytest.raises(FormatError):
        await versions.ensure_version_files(VersionDescriptor.parse({"id": "1.20.1"}),
                                            VersionDescriptor.parse({"id": "o"}))


@pytest.mark.asyncio
async def test_ensure_version_files_requires_overlay_id(config, file_server, http):
    client = file_server.add("/client.jar", b"c")
    base = VersionDescriptor.parse({"id": "1.20.1", "downloads": {"client": {"url": client, "size": 1}}})
    with pytest.raises(FormatError):
        await VersionManager(config, http, DownloadManager(http)).ensure_version_files(
            base, VersionDescriptor.parse({}))
