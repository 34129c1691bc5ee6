"""Per-device operation lock.

Only one destructive or long-running operation may be active against a
given device path within this process. A second request for the same path
fails fast with DeviceBusyError instead of queueing.

Usage:
    from disk_utils.storage.device_lock import device_operation

    with device_operation("/dev/sdb"):
        engine.erase(device, method)
"""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from typing import Generator

from disk_utils.logging import LoggerFactory

from .exceptions import DeviceBusyError


log = LoggerFactory.for_device()

_lock = threading.Lock()

_active_devices: set[str] = set()


def _key(device_path: str) -> str:
    return os.path.realpath(device_path)


@contextmanager
def device_operation(device_path: str) -> Generator[None, None, None]:
    """Context manager that marks ``device_path`` busy for its duration.

    Raises:
        DeviceBusyError: If another operation holds the same device
    """
    key = _key(device_path)
    with _lock:
        if key in _active_devices:
            raise DeviceBusyError(device_path, "another operation is in progress")
        _active_devices.add(key)
        log.debug(f"Device operation started on {device_path}")

    try:
        yield
    finally:
        with _lock:
            _active_devices.discard(key)
            log.debug(f"Device operation completed on {device_path}")


def is_operation_active(device_path: str | None = None) -> bool:
    """Check if any (or the given device's) operation is in progress."""
    with _lock:
        if device_path is None:
            return bool(_active_devices)
        return _key(device_path) in _active_devices
