"""Disk lifecycle utility: imaging, secure erasure and formatting."""

from .__version__ import __version__


__all__ = ["__version__"]
