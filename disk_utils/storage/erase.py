"""Multi-pass device erasure.

Methods:
    single:        1 pass  - random
    dod-3:         3 passes - zero, random, zero (DoD 5220.22-M)
    gutmann-lite:  7 passes - random x7

Passes run strictly in order. Each pass must cover the device's full
addressable range before the next one starts; a failed or short pass stops
the engine and is reported as EraseFailureError with its 1-based index.
Nothing is rolled back: a partially erased device is reported as such.
"""

from __future__ import annotations

import os
import secrets
import time
from typing import Callable, Optional

from disk_utils.config import settings
from disk_utils.domain.models import (
    Confirmation,
    Device,
    EraseMethod,
    ErasePass,
    ErasePattern,
    ErasePlan,
    EraseResult,
)
from disk_utils.logging import LoggerFactory, ThrottledLogger

from .cancellation import CancellationToken
from .device_info import DeviceInfo
from .device_lock import device_operation
from .exceptions import EraseFailureError, ValidationError
from .interfaces import Overwriter, ProgressCallback
from .progress import RateTracker, format_progress_line
from .validation import validate_confirmed


log = LoggerFactory.for_erase()

PassCallback = Callable[[ErasePass, int], None]

DEVICE_SPECIFIC_FILL = b"\xff"


def fill_block(pattern: ErasePattern, length: int, zero_block: bytes = b"") -> bytes:
    """Return ``length`` bytes of fill for ``pattern``."""
    if pattern is ErasePattern.ZERO:
        if len(zero_block) == length:
            return zero_block
        return bytes(length)
    if pattern is ErasePattern.RANDOM:
        return secrets.token_bytes(length)
    if pattern is ErasePattern.DEVICE_SPECIFIC:
        return DEVICE_SPECIFIC_FILL * length
    raise ValueError(f"Unknown erase pattern: {pattern}")


class BlockOverwriter:
    """Overwrite collaborator writing fixed-size blocks from offset 0.

    Stops early only when the cancellation token is set; the caller can tell
    a cancelled pass from a failed one by comparing the returned byte count
    with the token state.
    """

    def __init__(self, block_size: Optional[int] = None) -> None:
        self.block_size = block_size or settings.get_int(
            "block_size_bytes", settings.DEFAULT_BLOCK_SIZE_BYTES
        )

    def write_pattern(
        self,
        device_path: str,
        pattern: ErasePattern,
        size_bytes: int,
        cancel_token: Optional[CancellationToken] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> int:
        zero_block = bytes(self.block_size) if pattern is ErasePattern.ZERO else b""
        written = 0
        fd = os.open(device_path, os.O_WRONLY)
        try:
            os.lseek(fd, 0, os.SEEK_SET)
            while written < size_bytes:
                if cancel_token is not None and cancel_token.cancelled:
                    break
                length = min(self.block_size, size_bytes - written)
                view = memoryview(fill_block(pattern, length, zero_block))
                while view:
                    count = os.write(fd, view)
                    if count <= 0:
                        raise OSError(f"short write at offset {written}")
                    written += count
                    view = view[count:]
                if progress_callback:
                    progress_callback(written, size_bytes)
            os.fsync(fd)
        finally:
            os.close(fd)
        return written


class EraseEngine:
    """Executes an ErasePlan against a device through an Overwriter."""

    def __init__(
        self,
        overwriter: Optional[Overwriter] = None,
        device_info: Optional[DeviceInfo] = None,
    ) -> None:
        self.overwriter = overwriter or BlockOverwriter()
        self.device_info = device_info

    @staticmethod
    def plan(method: EraseMethod | str) -> ErasePlan:
        try:
            return ErasePlan.for_method(method)
        except ValueError as error:
            raise ValidationError(str(error)) from error

    def _refresh(self, device: Device) -> Device:
        if self.device_info is None:
            return device
        return self.device_info.describe(device.path)

    def erase(
        self,
        device: Device,
        method: EraseMethod | str,
        confirmation: Confirmation,
        cancel_token: Optional[CancellationToken] = None,
        on_pass_start: Optional[PassCallback] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> EraseResult:
        """Run every pass of ``method`` over the whole device.

        Returns:
            EraseResult; ``cancelled`` is True when the operator interrupted
            and ``passes_completed`` tells how far the erase got.

        Raises:
            ConfirmationAbortedError: confirmation is not CONFIRMED
            DeviceNotFoundError: device vanished before the first write
            EraseFailureError: a pass failed or did not cover the device
        """
        validate_confirmed(device, confirmation)
        plan = self.plan(method)
        device = self._refresh(device)
        cancel_token = cancel_token or CancellationToken()
        size = device.size_bytes
        throttled = ThrottledLogger(
            log, settings.get_setting("progress_log_interval_seconds", 5.0)
        )

        completed = 0
        with device_operation(device.path):
            log.info(
                f"Starting {plan.method.value} erase of {device.path} "
                f"({plan.pass_count} pass(es): "
                f"{', '.join(pattern.value for pattern in plan.patterns)}; {device.size_label})"
            )
            for erase_pass in plan.passes:
                label = f"Pass {erase_pass.index} of {plan.pass_count}"
                log.info(f"{label} ({erase_pass.pattern.value})")
                if on_pass_start:
                    on_pass_start(erase_pass, plan.pass_count)
                tracker = RateTracker(size)

                def report(done, total, _label=label, _tracker=tracker):
                    rate, eta = _tracker.sample(done, time.time())
                    throttled.info(
                        _label, format_progress_line(_label, done, total, rate, eta)
                    )
                    if progress_callback:
                        progress_callback(done, total)

                try:
                    written = self.overwriter.write_pattern(
                        device.path,
                        erase_pass.pattern,
                        size,
                        cancel_token=cancel_token,
                        progress_callback=report,
                    )
                except OSError as error:
                    raise EraseFailureError(
                        erase_pass.index, completed, error.strerror or str(error)
                    ) from error

                if cancel_token.cancelled and written < size:
                    log.warning(
                        f"Erase of {device.path} cancelled during {label.lower()} "
                        f"after {written} of {size} bytes; "
                        f"{completed} full pass(es) completed, device is partially erased"
                    )
                    return EraseResult(
                        device_path=device.path,
                        method=plan.method,
                        passes_completed=completed,
                        passes_total=plan.pass_count,
                        cancelled=True,
                    )
                if written < size:
                    raise EraseFailureError(
                        erase_pass.index,
                        completed,
                        f"wrote {written} of {size} bytes",
                    )
                completed += 1

        log.info(f"{plan.method.value} erase of {device.path} completed")
        return EraseResult(
            device_path=device.path,
            method=plan.method,
            passes_completed=completed,
            passes_total=plan.pass_count,
        )
