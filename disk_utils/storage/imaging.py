"""Full-device imaging with error-tolerant copy and SHA-256 digest.

Steps, in order:
    1. Pre-flight: target directory must exist and hold the whole device
    2. Block copy (4 MiB blocks). An unreadable block is re-read sector by
       sector; sectors that still fail are zero-filled and recorded as
       ReadErrorRegions instead of aborting the copy
    3. SHA-256 of the produced image file

The digest is the only integrity guarantee; the image is not compared back
against the device.
"""

from __future__ import annotations

import hashlib
import os
import time
from typing import Optional

from disk_utils.config import settings
from disk_utils.domain.models import (
    CopyReport,
    Device,
    ImageResult,
    ReadErrorPolicy,
    ReadErrorRegion,
)
from disk_utils.logging import LoggerFactory, ThrottledLogger

from .cancellation import CancellationToken
from .device_info import DeviceInfo
from .device_lock import device_operation
from .exceptions import CopyFailureError
from .interfaces import BlockCopier, Digester, ProgressCallback
from .progress import RateTracker, format_progress_line
from .validation import validate_image_operation


log = LoggerFactory.for_image()

HASH_CHUNK_SIZE = 4 * 1024 * 1024


def _append_region(regions: list[ReadErrorRegion], offset: int, length: int, error: str) -> None:
    """Append a failed range, merging it with the previous one when adjacent."""
    if regions:
        last = regions[-1]
        if last.offset + last.length == offset and last.error == error:
            regions[-1] = ReadErrorRegion(last.offset, last.length + length, error)
            return
    regions.append(ReadErrorRegion(offset, length, error))


class ErrorTolerantCopier:
    """Block-copy collaborator with dd ``conv=sync,noerror`` semantics."""

    def __init__(self, sector_size: Optional[int] = None) -> None:
        self.sector_size = sector_size or settings.get_int(
            "sector_size_bytes", settings.DEFAULT_SECTOR_SIZE_BYTES
        )

    def _read_sectors(
        self, fd: int, offset: int, length: int, regions: list[ReadErrorRegion]
    ) -> bytes:
        chunks = []
        position = offset
        end = offset + length
        while position < end:
            size = min(self.sector_size, end - position)
            try:
                data = os.pread(fd, size, position)
            except OSError as error:
                _append_region(regions, position, size, error.strerror or str(error))
                data = bytes(size)
            if not data:
                break
            chunks.append(data)
            position += len(data)
        return b"".join(chunks)

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
        regions: list[ReadErrorRegion] = []
        copied = 0
        cancelled = False
        try:
            src_fd = os.open(source, os.O_RDONLY)
        except OSError as error:
            raise CopyFailureError(f"Cannot open {source}: {error.strerror or error}") from error
        try:
            try:
                dst = open(destination, "wb")
            except OSError as error:
                raise CopyFailureError(
                    f"Cannot create {destination}: {error.strerror or error}"
                ) from error
            with dst:
                while total_bytes is None or copied < total_bytes:
                    if cancel_token is not None and cancel_token.cancelled:
                        cancelled = True
                        break
                    length = block_size
                    if total_bytes is not None:
                        length = min(block_size, total_bytes - copied)
                    try:
                        data = os.pread(src_fd, length, copied)
                    except OSError as error:
                        if error_policy is ReadErrorPolicy.ABORT:
                            raise CopyFailureError(
                                f"Read error at offset {copied}: {error.strerror or error}",
                                copied,
                            ) from error
                        data = self._read_sectors(src_fd, copied, length, regions)
                    if not data:
                        break
                    try:
                        dst.write(data)
                    except OSError as error:
                        raise CopyFailureError(
                            f"Write to {destination} failed: {error.strerror or error}",
                            copied,
                        ) from error
                    copied += len(data)
                    if progress_callback:
                        progress_callback(copied, total_bytes)
                    if len(data) < length:
                        break
                try:
                    dst.flush()
                    os.fsync(dst.fileno())
                except OSError as error:
                    raise CopyFailureError(
                        f"Flushing {destination} failed: {error.strerror or error}", copied
                    ) from error
        finally:
            os.close(src_fd)
        return CopyReport(bytes_written=copied, read_errors=tuple(regions), cancelled=cancelled)


class Sha256Digester:
    """Digest collaborator: hex SHA-256 of a file."""

    def __init__(self, chunk_size: int = HASH_CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    def hash(self, file_path: str) -> str:
        digest = hashlib.sha256()
        with open(file_path, "rb") as handle:
            for chunk in iter(lambda: handle.read(self.chunk_size), b""):
                digest.update(chunk)
        return digest.hexdigest()


class ImagingPipeline:
    """Copies a device to an image file and digests the result."""

    def __init__(
        self,
        copier: Optional[BlockCopier] = None,
        digester: Optional[Digester] = None,
        device_info: Optional[DeviceInfo] = None,
        block_size: Optional[int] = None,
        error_policy: ReadErrorPolicy = ReadErrorPolicy.SYNC_FILL,
    ) -> None:
        self.copier = copier or ErrorTolerantCopier()
        self.digester = digester or Sha256Digester()
        self.device_info = device_info
        self.block_size = block_size or settings.get_int(
            "block_size_bytes", settings.DEFAULT_BLOCK_SIZE_BYTES
        )
        self.error_policy = error_policy

    def image(
        self,
        device: Device,
        target_path: str,
        cancel_token: Optional[CancellationToken] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ImageResult:
        """Image ``device`` into ``target_path``.

        Raises:
            DeviceNotFoundError: device vanished before the copy
            TargetDirectoryMissingError: target's directory does not exist
            InsufficientSpaceError: device is larger than the free space
            CopyFailureError: the copy or digest failed part way, or the source
                ended before the device size
        """
        if self.device_info is not None:
            device = self.device_info.describe(device.path)
        report = validate_image_operation(device, target_path)
        log.info(
            f"Imaging {device.path} ({device.size_label}) to {target_path}; "
            f"{report.available_bytes - report.required_bytes} bytes spare"
        )

        tracker = RateTracker(device.size_bytes)
        throttled = ThrottledLogger(
            log, settings.get_setting("progress_log_interval_seconds", 5.0)
        )

        def report_progress(done, total):
            rate, eta = tracker.sample(done, time.time())
            throttled.info("copy", format_progress_line("IMAGING", done, total, rate, eta))
            if progress_callback:
                progress_callback(done, total)

        with device_operation(device.path):
            copy_report = self.copier.copy(
                device.path,
                target_path,
                self.block_size,
                self.error_policy,
                cancel_token=cancel_token,
                progress_callback=report_progress,
                total_bytes=device.size_bytes,
            )

        for region in copy_report.read_errors:
            log.warning(
                f"Read error at offset {region.offset} ({region.length} bytes) "
                f"padded with zeros: {region.error}"
            )

        if copy_report.cancelled:
            log.warning(
                f"Imaging of {device.path} cancelled after {copy_report.bytes_written} "
                f"of {device.size_bytes} bytes; partial image left at {target_path}"
            )
            return ImageResult(
                device_path=device.path,
                target_path=target_path,
                bytes_written=copy_report.bytes_written,
                digest=None,
                read_errors=copy_report.read_errors,
                cancelled=True,
            )

        if copy_report.bytes_written < device.size_bytes:
            message = (
                f"Source {device.path} ended after {copy_report.bytes_written} of "
                f"{device.size_bytes} bytes; image at {target_path} is truncated"
            )
            log.error(message)
            raise CopyFailureError(message, copy_report.bytes_written)

        log.info("Calculating SHA256 hash of the image...")
        try:
            digest = self.digester.hash(target_path)
        except OSError as error:
            raise CopyFailureError(
                f"Could not hash {target_path}: {error.strerror or error}",
                copy_report.bytes_written,
            ) from error

        return ImageResult(
            device_path=device.path,
            target_path=target_path,
            bytes_written=copy_report.bytes_written,
            digest=digest,
            read_errors=copy_report.read_errors,
        )
