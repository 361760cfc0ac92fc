"""Versioned changelog maintenance and release automation."""

from changelog_manager._version import __version__

__all__ = ["__version__"]
