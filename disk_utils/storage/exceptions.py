"""Custom exceptions for disk operations.

This module defines a hierarchy of exceptions for disk operations so callers
can tell validation failures (nothing was touched) from mutation-phase
failures (the device is in a partial state).

Exception Hierarchy:
    StorageError (base)
        ├── DeviceError
        │   ├── DeviceNotFoundError
        │   └── DeviceBusyError
        ├── ValidationError
        │   ├── ConfirmationAbortedError
        │   ├── InsufficientSpaceError
        │   ├── TargetDirectoryMissingError
        │   └── ToolUnavailableError
        ├── CopyFailureError
        ├── EraseFailureError
        ├── FormatFailureError
        └── AuditLogUnavailableError

Usage:
    from disk_utils.storage.exceptions import InsufficientSpaceError

    if not report.sufficient:
        raise InsufficientSpaceError(target_dir, report.required_bytes,
                                     report.available_bytes)
"""

from __future__ import annotations

from typing import Iterable

from disk_utils.domain.models import FormatFailureReason, human_size


class StorageError(Exception):
    """Base exception for all disk operations."""


class DeviceError(StorageError):
    """Base exception for device-related errors."""


class DeviceNotFoundError(DeviceError):
    """Device path does not resolve to an existing block device."""

    def __init__(self, device_path: str, reason: str = ""):
        self.device_path = device_path
        self.reason = reason
        msg = f"Device not found: {device_path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class DeviceBusyError(DeviceError):
    """Another operation is already active on the device."""

    def __init__(self, device_path: str, reason: str = ""):
        self.device_path = device_path
        self.reason = reason
        msg = f"Device {device_path} is busy"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ValidationError(StorageError):
    """Pre-flight validation failed; no mutation has started."""


class ConfirmationAbortedError(ValidationError):
    """Operator did not confirm the destructive operation."""

    def __init__(self, device_path: str):
        self.device_path = device_path
        super().__init__(f"Confirmation for {device_path} did not match. Aborting.")


class InsufficientSpaceError(ValidationError):
    """Target filesystem is too small to hold the device image."""

    def __init__(self, target: str, required_bytes: int, available_bytes: int):
        self.target = target
        self.required_bytes = required_bytes
        self.available_bytes = available_bytes
        super().__init__(
            f"Not enough space available in {target}: "
            f"required {human_size(required_bytes)}, "
            f"available {human_size(available_bytes)}"
        )


class TargetDirectoryMissingError(ValidationError):
    """Parent directory of the image target does not exist."""

    def __init__(self, directory: str):
        self.directory = directory
        super().__init__(f"Directory '{directory}' does not exist.")


class ToolUnavailableError(ValidationError):
    """One or more required external tools are missing."""

    def __init__(self, missing_tools: Iterable[str]):
        self.missing_tools = list(missing_tools)
        super().__init__(f"Missing required tools: {' '.join(self.missing_tools)}")


class CopyFailureError(StorageError):
    """Imaging copy failed after some bytes may have been written."""

    def __init__(self, message: str, bytes_copied: int = 0):
        self.bytes_copied = bytes_copied
        super().__init__(f"{message} (copied {human_size(bytes_copied)})")


class EraseFailureError(StorageError):
    """An erase pass failed; later passes were not attempted."""

    def __init__(self, pass_index: int, passes_completed: int, reason: str = ""):
        self.pass_index = pass_index
        self.passes_completed = passes_completed
        self.reason = reason
        msg = (
            f"Erase pass {pass_index} failed after {passes_completed} "
            f"completed pass(es); device is partially erased"
        )
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class FormatFailureError(StorageError):
    """Filesystem creation failed."""

    def __init__(self, reason: FormatFailureReason, detail: str = ""):
        self.reason = reason
        self.detail = detail
        msg = f"Format failed ({reason.value})"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class AuditLogUnavailableError(StorageError):
    """The persistent audit log could not be created or opened."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        self.reason = reason
        msg = f"Cannot create log file {path}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
