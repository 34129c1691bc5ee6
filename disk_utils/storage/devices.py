"""Block device inventory and diagnostics using lsblk, fdisk and smartctl.

This module is the device enumeration/diagnostics collaborator consumed by
``disk_utils.storage.device_info``. It never decides whether a device exists;
it only reports what the system tools say.

Device Detection:
    Uses lsblk with JSON output to enumerate whole-disk block devices:
    - Device path (e.g., /dev/sda)
    - Size in bytes
    - Model string
    - Device type (only "disk" entries are listed)

Diagnostics:
    - partition_table(): raw ``fdisk -l`` output for a device
    - health_status(): raw ``smartctl -H`` output, or None when SMART data is
      not available (tool missing, USB bridge without passthrough, ...)
    - parse_health(): maps smartctl output to HealthStatus

Example:
    >>> from disk_utils.storage.devices import LsblkInventory
    >>> inventory = LsblkInventory()
    >>> [device.path for device in inventory.list()]
    ['/dev/sda', '/dev/sdb']
"""

from __future__ import annotations

import json
import shutil
import subprocess
from typing import Optional

from disk_utils.domain.models import Device, HealthStatus
from disk_utils.logging import LoggerFactory

from .command_runners import run_command


log = LoggerFactory.for_device()

LSBLK_COLUMNS = "NAME,PATH,TYPE,SIZE,MODEL"


def parse_health(report: Optional[str]) -> HealthStatus:
    """Map ``smartctl -H`` output to a HealthStatus."""
    if not report:
        return HealthStatus.UNKNOWN
    text = report.upper()
    if "FAILED" in text or "FAILING" in text:
        return HealthStatus.DEGRADED
    if "PASSED" in text or ": OK" in text:
        return HealthStatus.HEALTHY
    return HealthStatus.UNKNOWN


def _coerce_size(value) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _device_from_lsblk(entry: dict) -> Device:
    path = entry.get("path") or f"/dev/{entry.get('name', '')}"
    model = entry.get("model")
    if model:
        model = model.strip()
    return Device(
        path=path,
        size_bytes=_coerce_size(entry.get("size")),
        model=model or None,
    )


class LsblkInventory:
    """Device inventory backed by lsblk/fdisk/smartctl."""

    def _lsblk(self, *paths: str) -> list[dict]:
        command = ["lsblk", "-J", "-b", "-d", "-o", LSBLK_COLUMNS, *paths]
        try:
            result = run_command(command, log_output=False)
            data = json.loads(result.stdout)
        except (subprocess.CalledProcessError, json.JSONDecodeError, OSError) as error:
            log.debug(f"lsblk failed: {error}")
            return []
        return data.get("blockdevices", []) or []

    def list(self) -> list[Device]:
        devices = [
            _device_from_lsblk(entry)
            for entry in self._lsblk()
            if entry.get("type") == "disk"
        ]
        log.debug(f"lsblk found {len(devices)} disks")
        return devices

    def size_bytes(self, path: str) -> Optional[int]:
        entries = self._lsblk(path)
        if not entries:
            return None
        size = _coerce_size(entries[0].get("size"))
        return size or None

    def model(self, path: str) -> Optional[str]:
        entries = self._lsblk(path)
        if not entries:
            return None
        model = entries[0].get("model")
        return model.strip() if model else None

    def listing(self) -> str:
        """Human-readable lsblk table shown before device prompts."""
        try:
            return run_command(["lsblk"], log_output=False).stdout
        except (subprocess.CalledProcessError, OSError) as error:
            log.debug(f"lsblk listing failed: {error}")
            return ""

    def partition_table(self, path: str) -> Optional[str]:
        if not shutil.which("fdisk"):
            return None
        try:
            result = run_command(["fdisk", "-l", path], check=False, log_output=False)
        except OSError as error:
            log.debug(f"fdisk failed for {path}: {error}")
            return None
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def health_status(self, path: str) -> Optional[str]:
        if not shutil.which("smartctl"):
            return None
        try:
            result = run_command(["smartctl", "-H", path], check=False, log_output=False)
        except OSError as error:
            log.debug(f"smartctl failed for {path}: {error}")
            return None
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None
