"""Device description: size and best-effort health for a device path."""

from __future__ import annotations

import os
import stat
from typing import Optional

from disk_utils.domain.models import Device, HealthStatus
from disk_utils.logging import LoggerFactory

from .devices import LsblkInventory, parse_health
from .exceptions import DeviceNotFoundError
from .interfaces import DeviceInventory


log = LoggerFactory.for_device()


def _read_size_by_seek(path: str) -> int:
    fd = os.open(path, os.O_RDONLY)
    try:
        return os.lseek(fd, 0, os.SEEK_END)
    finally:
        os.close(fd)


class DeviceInfo:
    """Builds Device snapshots from the inventory collaborator.

    Args:
        inventory: Enumeration/diagnostics collaborator (defaults to lsblk).
        allow_regular_files: Accept regular files as devices. Used for disk
            image files attached as loop sources and in tests.
    """

    def __init__(
        self,
        inventory: Optional[DeviceInventory] = None,
        allow_regular_files: bool = False,
    ) -> None:
        self.inventory = inventory or LsblkInventory()
        self.allow_regular_files = allow_regular_files

    def _check_exists(self, path: str) -> os.stat_result:
        if not path:
            raise DeviceNotFoundError("(empty path)")
        try:
            status = os.stat(path)
        except OSError as error:
            # Covers ENOENT as well as a device detached mid-call.
            raise DeviceNotFoundError(path, error.strerror or str(error)) from error
        is_block = stat.S_ISBLK(status.st_mode)
        is_file = stat.S_ISREG(status.st_mode)
        if not is_block and not (self.allow_regular_files and is_file):
            raise DeviceNotFoundError(path, "not a block device")
        return status

    def describe(self, path: str) -> Device:
        """Return a fresh snapshot of ``path``.

        Raises:
            DeviceNotFoundError: path missing, not a block device, or gone
                before its size could be read.
        """
        status = self._check_exists(path)

        size = self.inventory.size_bytes(path)
        if not size:
            if stat.S_ISREG(status.st_mode):
                size = status.st_size
            else:
                try:
                    size = _read_size_by_seek(path)
                except OSError as error:
                    raise DeviceNotFoundError(
                        path, error.strerror or str(error)
                    ) from error

        health_report = self.inventory.health_status(path)
        partition_table = self.inventory.partition_table(path)
        health = parse_health(health_report)
        if health_report is None:
            log.debug(f"SMART data not available for {path}")

        return Device(
            path=path,
            size_bytes=int(size),
            health=health if health_report else HealthStatus.UNKNOWN,
            smart_available=health_report is not None,
            model=self.inventory.model(path),
            health_report=health_report,
            partition_table=partition_table,
        )


def describe(path: str, inventory: Optional[DeviceInventory] = None) -> Device:
    """Describe ``path`` using the default lsblk inventory."""
    return DeviceInfo(inventory).describe(path)
