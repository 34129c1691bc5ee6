"""Domain model for disk lifecycle operations.

Type-safe value objects shared by the engines, the workflow layer and the
CLI. Everything here is immutable; engines build new objects rather than
mutating the ones they are handed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


BINARY_UNITS = ["B", "KiB", "MiB", "GiB", "TiB", "PiB"]


def human_size(size_bytes: Optional[float]) -> str:
    """Format a byte count with binary prefixes (e.g. ``10.0 GiB``)."""
    if size_bytes is None:
        return "0 B"
    size = float(size_bytes)
    for unit in BINARY_UNITS[:-1]:
        if abs(size) < 1024.0:
            if unit == "B":
                return f"{int(size)} B"
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} {BINARY_UNITS[-1]}"


# ==============================================================================
# Device Domain
# ==============================================================================


class HealthStatus(Enum):
    """Health as reported by SMART, when available."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Device:
    """Snapshot of a block device taken at query time.

    Never cached beyond a single operation; re-describe the path before the
    next one.
    """

    path: str  # e.g., "/dev/sdb"
    size_bytes: int
    health: HealthStatus = HealthStatus.UNKNOWN
    smart_available: bool = False
    model: Optional[str] = None
    health_report: Optional[str] = None  # raw smartctl -H output
    partition_table: Optional[str] = None  # raw fdisk -l output

    @property
    def size_label(self) -> str:
        return human_size(self.size_bytes)

    @property
    def health_label(self) -> str:
        if not self.smart_available:
            return "unavailable"
        return self.health.value


# ==============================================================================
# Operation Requests
# ==============================================================================


class OperationKind(Enum):
    IMAGE = "image"
    ERASE = "erase"
    FORMAT = "format"


class EraseMethod(Enum):
    """Named multi-pass overwrite sequences."""

    SINGLE = "single"
    DOD_3 = "dod-3"
    GUTMANN_LITE = "gutmann-lite"

    @classmethod
    def parse(cls, value: "EraseMethod | str") -> "EraseMethod":
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        for method in cls:
            if method.value == normalized:
                return method
        raise ValueError(f"Unknown erase method: {value!r}")


class FilesystemKind(Enum):
    EXT4 = "ext4"
    NTFS = "ntfs"
    FAT32 = "fat32"
    EXFAT = "exfat"
    BTRFS = "btrfs"

    @classmethod
    def parse(cls, value: "FilesystemKind | str") -> Optional["FilesystemKind"]:
        """Return the matching kind, or None when unsupported."""
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        for kind in cls:
            if kind.value == normalized:
                return kind
        return None


@dataclass(frozen=True)
class OperationRequest:
    """Base of the tagged operation variant; carries the target device."""

    device: Device

    @property
    def operation(self) -> OperationKind:
        raise NotImplementedError


@dataclass(frozen=True)
class ImageRequest(OperationRequest):
    target_path: str = ""

    @property
    def operation(self) -> OperationKind:
        return OperationKind.IMAGE


@dataclass(frozen=True)
class EraseRequest(OperationRequest):
    method: EraseMethod | str = EraseMethod.SINGLE

    @property
    def operation(self) -> OperationKind:
        return OperationKind.ERASE


@dataclass(frozen=True)
class FormatRequest(OperationRequest):
    kind: str = ""
    label: str = ""

    @property
    def operation(self) -> OperationKind:
        return OperationKind.FORMAT


# ==============================================================================
# Confirmation
# ==============================================================================


class ConfirmationState(Enum):
    """State of the two-step confirmation for a destructive operation.

    ABORTED is terminal.
    """

    UNCONFIRMED = "unconfirmed"
    CONFIRMED = "confirmed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class Confirmation:
    """Outcome of a confirmation gate, bound to the path the operator typed."""

    state: ConfirmationState
    device_path: Optional[str] = None

    def confirms(self, device: Device) -> bool:
        return (
            self.state is ConfirmationState.CONFIRMED
            and self.device_path is not None
            and self.device_path == device.path
        )


# ==============================================================================
# Erase Plan
# ==============================================================================


class ErasePattern(Enum):
    ZERO = "zero"
    RANDOM = "random"
    DEVICE_SPECIFIC = "device-specific"  # 0xFF fill


@dataclass(frozen=True)
class ErasePass:
    index: int  # 1-based
    pattern: ErasePattern


ERASE_METHOD_PATTERNS: dict[EraseMethod, tuple[ErasePattern, ...]] = {
    EraseMethod.SINGLE: (ErasePattern.RANDOM,),
    EraseMethod.DOD_3: (ErasePattern.ZERO, ErasePattern.RANDOM, ErasePattern.ZERO),
    EraseMethod.GUTMANN_LITE: (ErasePattern.RANDOM,) * 7,
}

ERASE_METHOD_DESCRIPTIONS: dict[EraseMethod, str] = {
    EraseMethod.SINGLE: "Single pass with random data (faster)",
    EraseMethod.DOD_3: "Three passes (DoD 5220.22-M)",
    EraseMethod.GUTMANN_LITE: "Seven passes (Gutmann-lite)",
}


@dataclass(frozen=True)
class ErasePlan:
    """Ordered, immutable pass sequence for an erase method."""

    method: EraseMethod
    passes: tuple[ErasePass, ...]

    @classmethod
    def for_method(cls, method: EraseMethod | str) -> ErasePlan:
        method = EraseMethod.parse(method)
        patterns = ERASE_METHOD_PATTERNS[method]
        return cls(
            method=method,
            passes=tuple(
                ErasePass(index=index, pattern=pattern)
                for index, pattern in enumerate(patterns, start=1)
            ),
        )

    @property
    def pass_count(self) -> int:
        return len(self.passes)

    @property
    def patterns(self) -> list[ErasePattern]:
        return [erase_pass.pattern for erase_pass in self.passes]


# ==============================================================================
# Space, audit and results
# ==============================================================================


@dataclass(frozen=True)
class SpaceReport:
    required_bytes: int
    available_bytes: int

    @property
    def sufficient(self) -> bool:
        return self.required_bytes <= self.available_bytes


class Severity(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class AuditEntry:
    timestamp: datetime
    message: str
    severity: Severity = Severity.INFO

    def to_line(self) -> str:
        return f"{self.timestamp.isoformat(timespec='seconds')} - {self.message}"


class FormatFailureReason(Enum):
    TOOL_MISSING = "tool-missing"
    REJECTED = "rejected"
    UNSUPPORTED_KIND = "unsupported-kind"


class ReadErrorPolicy(Enum):
    SYNC_FILL = "sync-fill"  # pad unreadable sectors with zeros and continue
    ABORT = "abort"


@dataclass(frozen=True)
class ReadErrorRegion:
    offset: int
    length: int
    error: str = ""


@dataclass(frozen=True)
class CopyReport:
    bytes_written: int
    read_errors: tuple[ReadErrorRegion, ...] = ()
    cancelled: bool = False


@dataclass(frozen=True)
class ImageResult:
    device_path: str
    target_path: str
    bytes_written: int
    digest: Optional[str]
    read_errors: tuple[ReadErrorRegion, ...] = ()
    cancelled: bool = False

    @property
    def complete(self) -> bool:
        return not self.cancelled and not self.read_errors


@dataclass(frozen=True)
class EraseResult:
    device_path: str
    method: EraseMethod
    passes_completed: int
    passes_total: int
    cancelled: bool = False

    @property
    def complete(self) -> bool:
        return not self.cancelled and self.passes_completed == self.passes_total


@dataclass(frozen=True)
class FormatResult:
    device_path: str
    kind: FilesystemKind
    label: str
    tuned: bool = False
