"""Modpack launcher core: install, resolve and launch a base game plus its overlay."""

__version__ = "0.1.0"
