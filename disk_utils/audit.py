"""Append-only audit log of every action and outcome.

Entries are kept in memory for the lifetime of the process and mirrored,
one line per entry, to a persistent append-only file:

    2026-10-19T14:03:11+02:00 - Disk imaging completed successfully.

Terminal color escapes are stripped before anything is stored. Timestamps
never go backwards: if the clock steps back, the previous timestamp is
reused so the sequence stays non-decreasing.
"""

from __future__ import annotations

import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from disk_utils.domain.models import AuditEntry, Severity
from disk_utils.logging import get_logger
from disk_utils.storage.exceptions import AuditLogUnavailableError
from disk_utils.storage.interfaces import AuditSink


log = get_logger(source="audit", tags=["audit"])

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

_LOGURU_LEVELS = {
    Severity.INFO: "INFO",
    Severity.SUCCESS: "SUCCESS",
    Severity.WARNING: "WARNING",
    Severity.ERROR: "ERROR",
}


def strip_ansi(text: str) -> str:
    return ANSI_ESCAPE_RE.sub("", text)


def local_now() -> datetime:
    return datetime.now().astimezone()


class FileAuditSink:
    """Persistent sink: a shared append-only text file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._handle = None

    def open(self) -> "FileAuditSink":
        """Create the file if absent and keep it open for appending.

        Raises:
            AuditLogUnavailableError: file cannot be created or opened
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = open(self.path, "a", encoding="utf-8", buffering=1)
        except OSError as error:
            raise AuditLogUnavailableError(
                str(self.path), error.strerror or str(error)
            ) from error
        return self

    def write_line(self, line: str) -> None:
        if self._handle is None:
            self.open()
        try:
            self._handle.write(line + "\n")
            self._handle.flush()
        except OSError as error:
            raise AuditLogUnavailableError(
                str(self.path), error.strerror or str(error)
            ) from error

    def read_lines(self) -> list[str]:
        if not self.path.exists():
            return []
        return self.path.read_text(encoding="utf-8", errors="replace").splitlines()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


class AuditLog:
    """Single-writer, append-only sequence of AuditEntry records."""

    def __init__(
        self,
        sink: Optional[AuditSink] = None,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self._sink = sink
        self._clock = clock
        self._entries: list[AuditEntry] = []
        self._lock = threading.Lock()

    @property
    def entries(self) -> tuple[AuditEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    @property
    def sink(self) -> Optional[AuditSink]:
        return self._sink

    def record(self, message: str, severity: Severity = Severity.INFO) -> AuditEntry:
        """Append an entry and persist it before returning."""
        clean = strip_ansi(message)
        with self._lock:
            timestamp = self._clock()
            if self._entries and timestamp < self._entries[-1].timestamp:
                timestamp = self._entries[-1].timestamp
            entry = AuditEntry(timestamp=timestamp, message=clean, severity=severity)
            if self._sink is not None:
                self._sink.write_line(entry.to_line())
            self._entries.append(entry)
        log.log(_LOGURU_LEVELS[severity], clean)
        return entry

    def info(self, message: str) -> AuditEntry:
        return self.record(message, Severity.INFO)

    def success(self, message: str) -> AuditEntry:
        return self.record(message, Severity.SUCCESS)

    def warning(self, message: str) -> AuditEntry:
        return self.record(message, Severity.WARNING)

    def error(self, message: str) -> AuditEntry:
        return self.record(message, Severity.ERROR)


def open_audit_log(path: Path | str) -> AuditLog:
    """Open the persistent audit file and wrap it in an AuditLog.

    Raises:
        AuditLogUnavailableError: fatal at startup
    """
    return AuditLog(FileAuditSink(path).open())
