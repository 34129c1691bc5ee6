"""Filesystem creation with label and post-creation tuning.

Supported Filesystems:
    ext4:   Linux native filesystem (tuned with ``tune2fs -m 1`` afterwards)
    ntfs:   NTFS for Windows compatibility (quick format)
    fat32:  FAT32 for USB drives (max 32GB recommended)
    exfat:  exFAT for large USB drives
    btrfs:  Btrfs for Linux

The filesystem is created directly on the device node given; no partition
table is written.

Failure Reasons:
    tool-missing:      the mkfs/tune tool is not installed
    rejected:          the tool ran and exited non-zero
    unsupported-kind:  the requested kind is not in the table; no tool runs

Example:
    >>> from disk_utils.storage.format import FormatEngine
    >>> engine = FormatEngine()
    >>> engine.format(device, "fat32", "BACKUP", gate.confirmation)
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from typing import Optional

from disk_utils.config import settings
from disk_utils.domain.models import (
    Confirmation,
    Device,
    FilesystemKind,
    FormatFailureReason,
    FormatResult,
)
from disk_utils.logging import LoggerFactory

from .command_runners import run_command
from .device_info import DeviceInfo
from .device_lock import device_operation
from .exceptions import FormatFailureError
from .interfaces import FilesystemCreator
from .validation import validate_confirmed


log = LoggerFactory.for_format()


@dataclass(frozen=True)
class FilesystemSpec:
    tool: str
    base_args: tuple[str, ...]
    label_flag: str
    label_max: int
    package: str
    uppercase_label: bool = False
    tuned: bool = False


FILESYSTEM_SPECS: dict[FilesystemKind, FilesystemSpec] = {
    FilesystemKind.EXT4: FilesystemSpec(
        tool="mkfs.ext4",
        base_args=("-F",),
        label_flag="-L",
        label_max=16,
        package="e2fsprogs",
        tuned=True,
    ),
    FilesystemKind.NTFS: FilesystemSpec(
        tool="mkfs.ntfs",
        base_args=("-f",),
        label_flag="-L",
        label_max=32,
        package="ntfs-3g",
    ),
    FilesystemKind.FAT32: FilesystemSpec(
        tool="mkfs.fat",
        base_args=("-F", "32"),
        label_flag="-n",
        label_max=11,
        package="dosfstools",
        uppercase_label=True,
    ),
    FilesystemKind.EXFAT: FilesystemSpec(
        tool="mkfs.exfat",
        base_args=(),
        label_flag="-n",
        label_max=15,
        package="exfatprogs",
    ),
    FilesystemKind.BTRFS: FilesystemSpec(
        tool="mkfs.btrfs",
        base_args=("-f",),
        label_flag="-L",
        label_max=255,
        package="btrfs-progs",
    ),
}

FILESYSTEM_DESCRIPTIONS: dict[FilesystemKind, str] = {
    FilesystemKind.EXT4: "Format as ext4 filesystem (Linux)",
    FilesystemKind.NTFS: "Format as NTFS filesystem (Windows)",
    FilesystemKind.FAT32: "Format as FAT32 filesystem (USB drives, max 32GB)",
    FilesystemKind.EXFAT: "Format as exFAT filesystem (USB drives, >32GB)",
    FilesystemKind.BTRFS: "Format as btrfs filesystem (Linux)",
}


def normalize_label(kind: FilesystemKind, label: Optional[str]) -> str:
    """Apply the per-filesystem label rules (length, case)."""
    spec = FILESYSTEM_SPECS[kind]
    label = (label or "").strip()
    if spec.uppercase_label:
        label = label.upper()
    return label[: spec.label_max]


def build_create_command(
    tool_path: str, kind: FilesystemKind, device_path: str, label: str
) -> list[str]:
    spec = FILESYSTEM_SPECS[kind]
    command = [tool_path, *spec.base_args]
    if label:
        command.extend([spec.label_flag, label])
    command.append(device_path)
    return command


def _failure_detail(result: subprocess.CompletedProcess) -> str:
    stderr = (result.stderr or "").strip()
    stdout = (result.stdout or "").strip()
    message = stderr or stdout or f"exit code {result.returncode}"
    return message.splitlines()[-1]


class MkfsCreator:
    """Filesystem-creation collaborator backed by mkfs.* and tune2fs."""

    def __init__(self, reserved_percent: Optional[int] = None) -> None:
        if reserved_percent is None:
            reserved_percent = settings.get_int(
                "ext4_reserved_percent", settings.DEFAULT_EXT4_RESERVED_PERCENT
            )
        self.reserved_percent = reserved_percent

    @staticmethod
    def _require(tool: str, package: str) -> str:
        tool_path = shutil.which(tool)
        if not tool_path:
            raise FormatFailureError(
                FormatFailureReason.TOOL_MISSING,
                f"{tool} not found. Ensure {package} is installed.",
            )
        return tool_path

    @staticmethod
    def _run(command: list[str]) -> None:
        try:
            result = run_command(command, check=False)
        except OSError as error:
            raise FormatFailureError(
                FormatFailureReason.TOOL_MISSING, str(error)
            ) from error
        if result.returncode != 0:
            log.error(f"Command failed with code {result.returncode}: {' '.join(command)}")
            raise FormatFailureError(FormatFailureReason.REJECTED, _failure_detail(result))

    def create(self, device_path: str, kind: FilesystemKind, label: str) -> None:
        spec = FILESYSTEM_SPECS[kind]
        tool_path = self._require(spec.tool, spec.package)
        command = build_create_command(tool_path, kind, device_path, label)
        log.debug(f"Formatting {device_path} as {kind.value}")
        self._run(command)

    def tune(self, device_path: str, kind: FilesystemKind) -> bool:
        if not FILESYSTEM_SPECS[kind].tuned:
            return False
        tool_path = self._require("tune2fs", "e2fsprogs")
        self._run([tool_path, "-m", str(self.reserved_percent), device_path])
        return True


class FormatEngine:
    """Maps a filesystem selection to a creation request and runs it."""

    def __init__(
        self,
        creator: Optional[FilesystemCreator] = None,
        device_info: Optional[DeviceInfo] = None,
    ) -> None:
        self.creator = creator or MkfsCreator()
        self.device_info = device_info

    @staticmethod
    def resolve_kind(kind: FilesystemKind | str) -> FilesystemKind:
        parsed = FilesystemKind.parse(kind)
        if parsed is None:
            supported = ", ".join(item.value for item in FilesystemKind)
            raise FormatFailureError(
                FormatFailureReason.UNSUPPORTED_KIND,
                f"unsupported filesystem {kind!r} (supported: {supported})",
            )
        return parsed

    def format(
        self,
        device: Device,
        kind: FilesystemKind | str,
        label: Optional[str],
        confirmation: Confirmation,
    ) -> FormatResult:
        """Create a ``kind`` filesystem labelled ``label`` on ``device``.

        Raises:
            FormatFailureError: unsupported kind, missing tool, or rejected
            ConfirmationAbortedError: confirmation is not CONFIRMED
            DeviceNotFoundError: device vanished before creation
        """
        parsed = self.resolve_kind(kind)
        validate_confirmed(device, confirmation)
        if self.device_info is not None:
            device = self.device_info.describe(device.path)
        normalized = normalize_label(parsed, label)

        with device_operation(device.path):
            log.info(f"Creating {parsed.value} on {device.path} (label {normalized!r})")
            self.creator.create(device.path, parsed, normalized)
            tuned = self.creator.tune(device.path, parsed)
            if tuned:
                log.debug(f"Applied post-creation tuning to {device.path}")

        return FormatResult(
            device_path=device.path,
            kind=parsed,
            label=normalized,
            tuned=tuned,
        )
