"""Narrow collaborator interfaces consumed by the engines.

Each engine depends on one of these protocols rather than on a concrete tool,
so tests can substitute recording fakes and production can swap the
subprocess-backed implementations.
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from disk_utils.domain.models import (
    CopyReport,
    Device,
    ErasePattern,
    FilesystemKind,
    ReadErrorPolicy,
)

from .cancellation import CancellationToken


# (bytes_done, total_bytes)
ProgressCallback = Callable[[int, Optional[int]], None]


class DeviceInventory(Protocol):
    def list(self) -> list[Device]:
        ...

    def size_bytes(self, path: str) -> Optional[int]:
        ...

    def model(self, path: str) -> Optional[str]:
        ...

    def partition_table(self, path: str) -> Optional[str]:
        ...

    def health_status(self, path: str) -> Optional[str]:
        ...


class BlockCopier(Protocol):
    def copy(
        self,
        source: str,
        destination: str,
        block_size: int,
        error_policy: ReadErrorPolicy,
        cancel_token: Optional[CancellationToken] = None,
        progress_callback: Optional[ProgressCallback] = None,
        total_bytes: Optional[int] = None,
    ) -> CopyReport:
        ...


class Overwriter(Protocol):
    def write_pattern(
        self,
        device_path: str,
        pattern: ErasePattern,
        size_bytes: int,
        cancel_token: Optional[CancellationToken] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> int:
        ...


class FilesystemCreator(Protocol):
    def create(self, device_path: str, kind: FilesystemKind, label: str) -> None:
        ...

    def tune(self, device_path: str, kind: FilesystemKind) -> bool:
        ...


class Digester(Protocol):
    def hash(self, file_path: str) -> str:
        ...


class AuditSink(Protocol):
    def write_line(self, line: str) -> None:
        ...
