"""Domain models for disk lifecycle operations.

This package contains the immutable value objects passed between the
engines, the workflow layer and the CLI.
"""

from __future__ import annotations

from .models import (
    AuditEntry,
    Confirmation,
    ConfirmationState,
    CopyReport,
    Device,
    EraseMethod,
    ErasePass,
    ErasePattern,
    ErasePlan,
    EraseRequest,
    EraseResult,
    FilesystemKind,
    FormatFailureReason,
    FormatRequest,
    FormatResult,
    HealthStatus,
    ImageRequest,
    ImageResult,
    OperationKind,
    OperationRequest,
    ReadErrorPolicy,
    ReadErrorRegion,
    Severity,
    SpaceReport,
    human_size,
)


__all__ = [
    "AuditEntry",
    "Confirmation",
    "ConfirmationState",
    "CopyReport",
    "Device",
    "EraseMethod",
    "ErasePass",
    "ErasePattern",
    "ErasePlan",
    "EraseRequest",
    "EraseResult",
    "FilesystemKind",
    "FormatFailureReason",
    "FormatRequest",
    "FormatResult",
    "HealthStatus",
    "ImageRequest",
    "ImageResult",
    "OperationKind",
    "OperationRequest",
    "ReadErrorPolicy",
    "ReadErrorRegion",
    "Severity",
    "SpaceReport",
    "human_size",
]
