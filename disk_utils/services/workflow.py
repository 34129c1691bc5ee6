"""Operation workflow: pre-flight, engine execution and audit recording.

Every operation runs through ``DiskWorkflow`` so that each outcome, success
or failure, lands in the AuditLog before control returns to the caller.
Errors are recorded and re-raised unchanged; nothing is rolled back.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Optional

from disk_utils.audit import AuditLog
from disk_utils.domain.models import (
    Confirmation,
    Device,
    ERASE_METHOD_DESCRIPTIONS,
    ErasePass,
    EraseRequest,
    EraseResult,
    FormatRequest,
    FormatResult,
    ImageRequest,
    ImageResult,
    human_size,
)
from disk_utils.logging import operation_context
from disk_utils.services.preflight import Capabilities
from disk_utils.storage.cancellation import CancellationToken
from disk_utils.storage.device_info import DeviceInfo
from disk_utils.storage.erase import EraseEngine, PassCallback
from disk_utils.storage.exceptions import (
    ConfirmationAbortedError,
    CopyFailureError,
    DeviceNotFoundError,
    EraseFailureError,
    FormatFailureError,
    InsufficientSpaceError,
    StorageError,
    TargetDirectoryMissingError,
)
from disk_utils.storage.format import FormatEngine
from disk_utils.storage.imaging import ImagingPipeline
from disk_utils.storage.interfaces import ProgressCallback
from disk_utils.storage.validation import validate_confirmed


class DiskWorkflow:
    """Runs image/erase/format requests and records every outcome."""

    def __init__(
        self,
        audit: AuditLog,
        capabilities: Capabilities,
        device_info: Optional[DeviceInfo] = None,
        imaging: Optional[ImagingPipeline] = None,
        eraser: Optional[EraseEngine] = None,
        formatter: Optional[FormatEngine] = None,
    ) -> None:
        self.audit = audit
        self.capabilities = capabilities
        self.device_info = device_info or DeviceInfo()
        self.imaging = imaging or ImagingPipeline(device_info=self.device_info)
        self.eraser = eraser or EraseEngine(device_info=self.device_info)
        self.formatter = formatter or FormatEngine(device_info=self.device_info)

    @contextmanager
    def _recorded(self, operation: str, **details):
        """Record any StorageError raised inside the block, then re-raise."""
        with operation_context(operation, **details):
            try:
                yield
            except StorageError as error:
                self._record_failure(error)
                raise

    def _record_failure(self, error: StorageError) -> None:
        if isinstance(error, InsufficientSpaceError):
            self.audit.error("Error: Not enough space available in target directory.")
            self.audit.warning(f"Required: {human_size(error.required_bytes)}")
            self.audit.warning(f"Available: {human_size(error.available_bytes)}")
        elif isinstance(error, DeviceNotFoundError):
            self.audit.error(f"Error: Disk '{error.device_path}' not found.")
        elif isinstance(error, ConfirmationAbortedError):
            self.audit.error("Disk names do not match. Aborting.")
        elif isinstance(error, TargetDirectoryMissingError):
            self.audit.error(f"Error: Directory '{error.directory}' does not exist.")
        elif isinstance(error, EraseFailureError):
            self.audit.error(f"Erasure failed: {error}")
        elif isinstance(error, FormatFailureError):
            self.audit.error(str(error))
        elif isinstance(error, CopyFailureError):
            self.audit.error(f"Disk imaging failed: {error}")
        else:
            self.audit.error(f"Error: {error}")

    def _preflight(self) -> None:
        self.capabilities.raise_for_tools()

    def describe(self, path: str) -> Device:
        """Describe ``path``; a missing device is recorded and re-raised."""
        try:
            return self.device_info.describe(path)
        except DeviceNotFoundError as error:
            self._record_failure(error)
            raise

    def record_confirmation(self, device: Device, confirmation: Confirmation) -> None:
        """Record the gate outcome; raises if it did not confirm ``device``."""
        try:
            validate_confirmed(device, confirmation)
        except ConfirmationAbortedError as error:
            self._record_failure(error)
            raise
        self.audit.info(f"Operator confirmed destructive operation on {device.path}")

    def image(
        self,
        request: ImageRequest,
        cancel_token: Optional[CancellationToken] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ImageResult:
        device = request.device
        with self._recorded(
            request.operation.value, device=device.path, target=request.target_path
        ):
            self._preflight()
            self.audit.info(f"Starting disk imaging of {device.path} to {request.target_path}...")
            result = self.imaging.image(
                device,
                request.target_path,
                cancel_token=cancel_token,
                progress_callback=progress_callback,
            )

        for region in result.read_errors:
            self.audit.warning(
                f"Read error at offset {region.offset} ({region.length} bytes) "
                f"padded with zeros: {region.error}"
            )
        if result.cancelled:
            self.audit.warning(
                f"Disk imaging cancelled after {human_size(result.bytes_written)}; "
                f"partial image left at {result.target_path}"
            )
            return result
        if result.complete:
            self.audit.success("Disk imaging completed successfully.")
        else:
            self.audit.warning(
                f"Disk imaging completed with {len(result.read_errors)} unreadable "
                f"region(s) padded with zeros."
            )
        self.audit.info(f"{result.digest}  {result.target_path}")
        return result

    def erase(
        self,
        request: EraseRequest,
        confirmation: Confirmation,
        cancel_token: Optional[CancellationToken] = None,
        on_pass_start: Optional[PassCallback] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> EraseResult:
        device = request.device
        requested = getattr(request.method, "value", request.method)

        def pass_started(erase_pass: ErasePass, total: int) -> None:
            self.audit.info(f"Pass {erase_pass.index} of {total} ({erase_pass.pattern.value})")
            if on_pass_start:
                on_pass_start(erase_pass, total)

        with self._recorded(request.operation.value, device=device.path, method=str(requested)):
            self._preflight()
            method = self.eraser.plan(request.method).method
            validate_confirmed(device, confirmation)
            self.audit.info(
                f"Starting {method.value} erasure of {device.path} "
                f"({ERASE_METHOD_DESCRIPTIONS[method]})..."
            )
            result = self.eraser.erase(
                device,
                method,
                confirmation,
                cancel_token=cancel_token,
                on_pass_start=pass_started,
                progress_callback=progress_callback,
            )

        if result.complete:
            self.audit.success(
                f"Disk {device.path} erased successfully ({method.value}, "
                f"{result.passes_completed} pass(es))."
            )
        else:
            self.audit.warning(
                f"Erasure of {device.path} cancelled after {result.passes_completed} of "
                f"{result.passes_total} pass(es); device is partially erased."
            )
        return result

    def format(
        self,
        request: FormatRequest,
        confirmation: Confirmation,
    ) -> FormatResult:
        device = request.device
        with self._recorded(request.operation.value, device=device.path, kind=str(request.kind)):
            self._preflight()
            result = self.formatter.format(device, request.kind, request.label, confirmation)

        self.audit.success(
            f"Disk {device.path} formatted as {result.kind.value} filesystem successfully."
        )
        return result
