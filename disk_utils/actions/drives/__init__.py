"""Drive actions package.

This package contains modular actions for drive operations:
- image_actions: Full-device imaging with digest
- erase_actions: Multi-pass secure erasure
- format_actions: Filesystem creation
"""

from .erase_actions import erase_drive
from .format_actions import format_drive
from .image_actions import image_drive


__all__ = [
    "erase_drive",
    "format_drive",
    "image_drive",
]
