#!/usr/bin/env python3
"""Launcher entry point: install the pack if needed, then start the game offline."""

import asyncio
import logging
import sys

from packlauncher.auth import OfflineAuthenticator
from packlauncher.config import LauncherConfig
from packlauncher.core import PackInstance
from packlauncher.exceptions import LauncherError
from packlauncher.utils import setup_logging

log = logging.getLogger("packlauncher")


class ProgressLogger:
    """Logs progress changes, at most once per label and tenth of completion."""

    def __init__(self):
        self.last = None

    def __call__(self, event):
        key = None if event is None else (event.label, int(event.fraction * 10))
        if key == self.last:
            return
        self.last = key
        if event is None:
            log.info("Ready")
        elif event.indeterminate:
            log.info("%s...", event.label)
        else:
            log.info("%s (%d%%)", event.label, round(event.fraction * 100))


async def main(username: str) -> int:
    """Main launcher entry point"""
    config = LauncherConfig.default()
    setup_logging(config.logs_dir)

    try:
        credential = await OfflineAuthenticator.authenticate(username)
    except ValueError as e:
        log.error("%s", e)
        return 1

    async with PackInstance(config) as pack:
        pack.progress.subscribe(ProgressLogger())
        try:
            await pack.initialize()
            process = await pack.launch(credential)
            return await process.wait()
        except LauncherError as e:
            log.error("%s", e)
            return 1


if __name__ == "__main__":
    name = sys.argv[1] if len(sys.argv) > 1 else "Player"
    try:
        sys.exit(asyncio.run(main(name)))
    except KeyboardInterrupt:
        pass
