"""Shared fixtures: launcher config in a temp dir and an in-process file server."""

from collections import defaultdict
from pathlib import Path
from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from packlauncher.config import LauncherConfig
from packlauncher.utils.async_http import AsyncHTTPClient
from packlauncher.versions.rules import PlatformContext


class FileServer:
    """Serves registered byte payloads and counts every request per path."""

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.statuses: Dict[str, int] = {}
        self.hits: Dict[str, int] = defaultdict(int)
        self.server = None

    def url(self, path: str) -> str:
        return str(self.server.make_url(path))

    def add(self, path: str, body: bytes) -> str:
        self.files[path] = body
        return self.url(path)

    def fail(self, path: str, status: int) -> str:
        self.statuses[path] = status
        return self.url(path)

    async def handle(self, request: web.Request) -> web.Response:
        self.hits[request.path] += 1
        if request.path in self.statuses:
            return web.Response(status=self.statuses[request.path])
        if request.path not in self.files:
            return web.Response(status=404)
        return web.Response(body=self.files[request.path])


@pytest.fixture
def config(tmp_path: Path) -> LauncherConfig:
    return LauncherConfig(root_dir=tmp_path / "launcher")


@pytest.fixture
def linux() -> PlatformContext:
    return PlatformContext.create("Linux", "x86_64")


@pytest_asyncio.fixture
async def file_server() -> AsyncGenerator[FileServer, None]:
    files = FileServer()
    app = web.Application()
    app.router.add_route("GET", "/{tail:.*}", files.handle)
    server = TestServer(app)
    await server.start_server()
    files.server = server
    yield files
    await server.close()


@pytest_asyncio.fixture
async def http() -> AsyncGenerator[AsyncHTTPClient, None]:
    async with AsyncHTTPClient(connect_timeout=5) as client:
        yield client
