"""Offline authentication."""

import hashlib
import uuid

from .models import Credential


def offline_uuid(username: str) -> str:
    """The conventional offline-mode profile id: a version 3 UUID of ``OfflinePlayer:<name>``."""
    digest = bytearray(hashlib.md5(f"OfflinePlayer:{username}".encode("utf-8")).digest())
    digest[6] = (digest[6] & 0x0F) | 0x30
    digest[8] = (digest[8] & 0x3F) | 0x80
    return uuid.UUID(bytes=bytes(digest)).hex


class OfflineAuthenticator:
    """Offline mode authenticator with username only."""

    @staticmethod
    async def authenticate(username: str) -> Credential:
        """Authenticate offline with given username."""
        if not username or len(username) > 16:
            raise ValueError("Invalid username for offline mode")

        return Credential(
            name=username,
            uuid=offline_uuid(username),
            access_token="0",
            user_type="legacy",
        )
