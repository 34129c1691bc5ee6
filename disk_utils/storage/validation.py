"""Pre-flight validation functions for disk operations.

This module provides validation functions that run before any irreversible
action:
- Verifies the image target directory exists and has room for the device
- Verifies destructive operations carry a CONFIRMED confirmation state
- Refuses to write an image onto the device being imaged

All validation functions raise specific exceptions from the exceptions module
rather than returning boolean values, making error handling more explicit.
``check_space`` is the exception: it returns a SpaceReport so callers can
show both figures before deciding.

Example:
    from disk_utils.storage.validation import check_space, validate_sufficient_space

    report = check_space(device, "/mnt/backup/disk.img")
    validate_sufficient_space(report, "/mnt/backup")
"""

import os
from pathlib import Path

import psutil

from disk_utils.domain.models import Confirmation, Device, SpaceReport

from .exceptions import (
    ConfirmationAbortedError,
    InsufficientSpaceError,
    TargetDirectoryMissingError,
    ValidationError,
)


def target_directory(target_path) -> Path:
    """Directory that will contain the image file."""
    parent = Path(target_path).expanduser().parent
    return parent if str(parent) else Path(".")


def available_bytes(directory) -> int:
    """Free bytes on the filesystem containing ``directory``."""
    return int(psutil.disk_usage(str(directory)).free)


def check_space(device: Device, target_path) -> SpaceReport:
    """Compare the device size against free space at the image target.

    Raises:
        TargetDirectoryMissingError: If the target's parent directory does
            not exist
    """
    directory = target_directory(target_path)
    if not directory.is_dir():
        raise TargetDirectoryMissingError(str(directory))
    return SpaceReport(
        required_bytes=int(device.size_bytes),
        available_bytes=available_bytes(directory),
    )


def validate_sufficient_space(report: SpaceReport, target) -> None:
    """Raise InsufficientSpaceError unless the report is sufficient."""
    if not report.sufficient:
        raise InsufficientSpaceError(
            str(target), report.required_bytes, report.available_bytes
        )


def validate_target_not_device(device: Device, target_path) -> None:
    """Refuse an image target that resolves to the source device itself."""
    target = os.path.realpath(os.path.expanduser(str(target_path)))
    if target == os.path.realpath(device.path):
        raise ValidationError(
            f"Image target {target_path} is the source device {device.path}"
        )


def validate_image_operation(device: Device, target_path) -> SpaceReport:
    """Perform all validations required before imaging.

    Returns:
        The SpaceReport that was checked

    Raises:
        Various exceptions from the exceptions module if validation fails
    """
    validate_target_not_device(device, target_path)
    report = check_space(device, target_path)
    validate_sufficient_space(report, target_directory(target_path))
    return report


def validate_confirmed(device: Device, confirmation: Confirmation) -> None:
    """Destructive operations require a CONFIRMED gate run for this device.

    A confirmation made for another path, or a bare ConfirmationState with
    no device attached, is refused.
    """
    if not isinstance(confirmation, Confirmation) or not confirmation.confirms(device):
        raise ConfirmationAbortedError(device.path)
