"""Overlay (mod loader) version resolution."""

from .modloader_manager import ModLoaderManager

__all__ = ["ModLoaderManager"]
