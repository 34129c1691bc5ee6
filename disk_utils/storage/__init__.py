"""Disk operation engines with pre-flight validation.

Main Classes:
    - DeviceInfo: fresh Device snapshots (size, SMART health, partitions)
    - ConfirmationGate: typed-path confirmation for destructive operations
    - EraseEngine: multi-pass overwrite (single, dod-3, gutmann-lite)
    - FormatEngine: mkfs with label and ext4 tuning
    - ImagingPipeline: error-tolerant device copy plus SHA-256 digest

Collaborators:
    - LsblkInventory: lsblk/fdisk/smartctl diagnostics
    - BlockOverwriter: native block writer for erase passes
    - MkfsCreator: mkfs.* and tune2fs
    - ErrorTolerantCopier: sector-level retry with zero padding
    - Sha256Digester: hashlib-based file digest

Validation:
    - check_space(): SpaceReport for an image target
    - validate_image_operation(): all imaging pre-flight checks
"""

from .cancellation import CancellationToken
from .confirmation import ConfirmationGate, describe_device_lines
from .device_info import DeviceInfo, describe
from .device_lock import device_operation, is_operation_active
from .devices import LsblkInventory
from .erase import BlockOverwriter, EraseEngine
from .format import FormatEngine, MkfsCreator
from .imaging import ErrorTolerantCopier, ImagingPipeline, Sha256Digester
from .validation import check_space, validate_image_operation


__all__ = [
    "BlockOverwriter",
    "CancellationToken",
    "ConfirmationGate",
    "DeviceInfo",
    "EraseEngine",
    "ErrorTolerantCopier",
    "FormatEngine",
    "ImagingPipeline",
    "LsblkInventory",
    "MkfsCreator",
    "Sha256Digester",
    "check_space",
    "describe",
    "describe_device_lines",
    "device_operation",
    "is_operation_active",
    "validate_image_operation",
]
