"""Detect web-platform features in source artifacts and classify their availability."""

from ._version import __version__

__all__ = ["__version__"]
