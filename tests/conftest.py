"""
Pytest configuration and shared fixtures for disk-utils tests.

This module provides common fixtures and recording fakes for the engine
collaborators, so tests never touch a real block device.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from disk_utils.audit import AuditLog
from disk_utils.domain.models import (
    Confirmation,
    ConfirmationState,
    Device,
    ErasePattern,
    FilesystemKind,
)
from disk_utils.services.preflight import Capabilities
from disk_utils.storage.confirmation import ConfirmationGate
from disk_utils.storage.exceptions import DeviceNotFoundError, FormatFailureError


GIB = 1024 ** 3


# ==============================================================================
# Collaborator Fakes
# ==============================================================================


class FakeInventory:
    """DeviceInventory backed by a dict of path -> size."""

    def __init__(self, sizes: Optional[Dict[str, int]] = None, health=None, partitions=None):
        self.sizes = dict(sizes or {})
        self.health = dict(health or {})
        self.partitions = dict(partitions or {})

    def list(self) -> List[Device]:
        return [Device(path=path, size_bytes=size) for path, size in self.sizes.items()]

    def listing(self) -> str:
        return "\n".join(f"{path} {size}" for path, size in self.sizes.items())

    def size_bytes(self, path):
        return self.sizes.get(path)

    def model(self, path):
        return "Test Disk" if path in self.sizes else None

    def partition_table(self, path):
        return self.partitions.get(path)

    def health_status(self, path):
        return self.health.get(path)


class FakeDeviceInfo:
    """DeviceInfo stand-in for paths that do not exist on disk."""

    def __init__(self, devices: Optional[Dict[str, Device]] = None):
        self.devices = dict(devices or {})
        self.calls: List[str] = []

    def add(self, path: str, size_bytes: int) -> Device:
        device = Device(path=path, size_bytes=size_bytes)
        self.devices[path] = device
        return device

    def describe(self, path: str) -> Device:
        self.calls.append(path)
        if path not in self.devices:
            raise DeviceNotFoundError(path)
        return self.devices[path]


class RecordingOverwriter:
    """Overwriter that records each pass instead of writing.

    Args:
        fail_on_call: 1-based call number that raises OSError
        short_on_call: 1-based call number that reports a short write
        cancel_on_call: 1-based call number that sets the token mid-pass
    """

    def __init__(self, fail_on_call=None, short_on_call=None, cancel_on_call=None):
        self.calls = []
        self.fail_on_call = fail_on_call
        self.short_on_call = short_on_call
        self.cancel_on_call = cancel_on_call

    def write_pattern(self, device_path, pattern, size_bytes, cancel_token=None, progress_callback=None):
        self.calls.append((device_path, pattern, size_bytes))
        number = len(self.calls)
        if number == self.fail_on_call:
            raise OSError(5, "Input/output error")
        if number == self.cancel_on_call:
            cancel_token.cancel("test")
            return size_bytes // 2
        if number == self.short_on_call:
            return size_bytes - 1
        if progress_callback:
            progress_callback(size_bytes, size_bytes)
        return size_bytes

    @property
    def patterns(self) -> List[ErasePattern]:
        return [pattern for _, pattern, _ in self.calls]


class FakeCreator:
    """FilesystemCreator that records calls and optionally fails."""

    def __init__(self, create_error: Optional[FormatFailureError] = None):
        self.created = []
        self.tuned = []
        self.create_error = create_error

    def create(self, device_path, kind: FilesystemKind, label):
        self.created.append((device_path, kind, label))
        if self.create_error is not None:
            raise self.create_error

    def tune(self, device_path, kind: FilesystemKind) -> bool:
        if kind is not FilesystemKind.EXT4:
            return False
        self.tuned.append(device_path)
        return True


class RecordingSink:
    """AuditSink that keeps lines in memory."""

    def __init__(self):
        self.lines: List[str] = []

    def write_line(self, line: str) -> None:
        self.lines.append(line)


class SteppingClock:
    """Clock returning a scripted sequence of timestamps."""

    def __init__(self, *offsets_seconds: int):
        base = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
        self._times = [base + timedelta(seconds=offset) for offset in offsets_seconds]
        self._last = self._times[-1] if self._times else base

    def __call__(self) -> datetime:
        if self._times:
            return self._times.pop(0)
        return self._last


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def fake_inventory() -> FakeInventory:
    return FakeInventory()


@pytest.fixture
def fake_device_info() -> FakeDeviceInfo:
    return FakeDeviceInfo()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def audit(recording_sink) -> AuditLog:
    return AuditLog(sink=recording_sink)


@pytest.fixture
def root_capabilities() -> Capabilities:
    return Capabilities(is_root=True)


@pytest.fixture
def make_device_file(tmp_path):
    """Factory creating a regular file that stands in for a block device."""

    def _make(name: str = "disk.bin", data: bytes = b"") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _make


@pytest.fixture
def patterned_bytes():
    """Deterministic non-trivial device contents."""

    def _make(size: int) -> bytes:
        return bytes(index % 251 for index in range(size))

    return _make


@pytest.fixture
def make_inventory():
    return FakeInventory


@pytest.fixture
def make_overwriter():
    return RecordingOverwriter


@pytest.fixture
def make_creator():
    return FakeCreator


@pytest.fixture
def make_clock():
    return SteppingClock


def confirmed_for(device: Device) -> Confirmation:
    """Confirmation as a gate produces it when the operator typed the right path."""
    return Confirmation(ConfirmationState.CONFIRMED, device.path)


@pytest.fixture
def confirm_answers():
    """Run a ConfirmationGate against pre-supplied answers.

    Returns the gate's bound Confirmation; running out of answers counts as
    no input.
    """

    def run(device: Device, answers) -> Confirmation:
        replies = iter(answers)
        gate = ConfirmationGate(lambda _text: next(replies, None), show=lambda _device: None)
        gate.confirm(device)
        return gate.confirmation

    return run


@pytest.fixture
def confirmed():
    return confirmed_for
