"""Authentication module for Minecraft accounts."""

from .models import Credential
from .offline import OfflineAuthenticator

__all__ = ["Credential", "OfflineAuthenticator"]
