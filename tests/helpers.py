"""Test doubles and archive builders shared by the test modules."""

import io
import zipfile
from contextlib import asynccontextmanager
from typing import Dict


class CountingHTTP:
    """Stands in for AsyncHTTPClient where no request may be made."""

    def __init__(self):
        self.calls = []

    @asynccontextmanager
    async def stream(self, url, item="resource"):
        self.calls.append(url)
        raise AssertionError(f"unexpected request for {url}")
        yield  # pragma: no cover


def make_zip(entries: Dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buffer.getvalue()
