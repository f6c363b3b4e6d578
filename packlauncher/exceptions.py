"""
exceptions.py

Exception types raised by the launcher core.

Every fatal condition surfaces as one of these categories so callers can tell
a transient network failure from a broken pack or environment:

- NetworkError: non-success HTTP status or connection failure
- FormatError: malformed JSON or a missing required field
- NotFoundError: a version, metadata file or archive entry is absent
- FileSystemError: local filesystem failure
- ConfigError: unsupported platform, empty classpath, missing main class
- ProcessError: an external process could not be started
"""

from typing import Optional


class LauncherError(Exception):
    """Base class for all launcher errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} message={self.message!r}>"


class NetworkError(LauncherError):
    """
    A remote resource could not be fetched.

    Attributes
    ----------
    url: Optional[str]
        The URL that failed.
    status: Optional[int]
        HTTP status code when the server answered.
    """

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        self.url = url
        self.status = status
        super().__init__(message)

    def __str__(self) -> str:
        text = self.message
        if self.status is not None:
            text += f" (status {self.status})"
        if self.url:
            text += f": {self.url}"
        return text


class FormatError(LauncherError):
    """A document is malformed or lacks a required field."""


class NotFoundError(LauncherError):
    """A version, metadata file or archive entry does not exist."""


class FileSystemError(LauncherError):
    """Reading or writing the local filesystem failed."""


class ConfigError(LauncherError):
    """The pack or the environment cannot be launched as configured."""


class ProcessError(LauncherError):
    """An external process could not be started."""
