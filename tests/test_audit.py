"""Tests for the append-only audit log."""

import pytest

from disk_utils.audit import AuditLog, FileAuditSink, open_audit_log, strip_ansi
from disk_utils.domain.models import Severity
from disk_utils.storage.exceptions import AuditLogUnavailableError


class TestStripAnsi:
    def test_removes_color_codes(self):
        assert strip_ansi("\x1b[0;31mError\x1b[0m: boom") == "Error: boom"

    def test_plain_text_unchanged(self):
        assert strip_ansi("Disk /dev/sdb erased") == "Disk /dev/sdb erased"


class TestAuditLog:
    def test_records_line_format(self, recording_sink, make_clock):
        audit = AuditLog(sink=recording_sink, clock=make_clock(0))
        entry = audit.success("Disk imaging completed successfully.")
        assert entry.severity is Severity.SUCCESS
        assert recording_sink.lines == [
            "2026-10-19T12:00:00+00:00 - Disk imaging completed successfully."
        ]

    def test_ansi_stripped_before_storage(self, recording_sink):
        audit = AuditLog(sink=recording_sink)
        audit.error("\x1b[1;31mDisk names do not match. Aborting.\x1b[0m")
        assert audit.entries[0].message == "Disk names do not match. Aborting."
        assert recording_sink.lines[0].endswith(" - Disk names do not match. Aborting.")
        assert "\x1b" not in recording_sink.lines[0]

    def test_timestamps_never_go_backwards(self, recording_sink, make_clock):
        audit = AuditLog(sink=recording_sink, clock=make_clock(10, 5, 20))
        audit.info("first")
        audit.info("second")
        audit.info("third")
        stamps = [entry.timestamp for entry in audit.entries]
        assert stamps == sorted(stamps)
        assert stamps[0] == stamps[1]

    def test_entries_are_append_only(self, audit):
        audit.info("one")
        entries = audit.entries
        audit.warning("two")
        assert len(entries) == 1
        assert [entry.message for entry in audit.entries] == ["one", "two"]
        assert [entry.severity for entry in audit.entries] == [Severity.INFO, Severity.WARNING]

    def test_sink_failure_does_not_record(self, make_clock):
        class BrokenSink:
            def write_line(self, line):
                raise AuditLogUnavailableError("/var/log/x.log", "Read-only file system")

        audit = AuditLog(sink=BrokenSink(), clock=make_clock(0))
        with pytest.raises(AuditLogUnavailableError):
            audit.info("lost")
        assert audit.entries == ()

    def test_memory_only_log(self):
        audit = AuditLog()
        audit.info("kept in memory")
        assert audit.entries[0].message == "kept in memory"


class TestFileAuditSink:
    def test_appends_lines(self, tmp_path):
        path = tmp_path / "logs" / "disk_management.log"
        path.parent.mkdir()
        path.write_text("2026-01-01T00:00:00+00:00 - earlier run\n", encoding="utf-8")

        audit = open_audit_log(path)
        audit.info("Script started.")
        audit.sink.close()

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "2026-01-01T00:00:00+00:00 - earlier run"
        assert lines[1].endswith(" - Script started.")

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "audit.log"
        sink = FileAuditSink(path).open()
        sink.write_line("hello")
        sink.close()
        assert path.read_text(encoding="utf-8") == "hello\n"

    def test_unwritable_location(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(AuditLogUnavailableError) as exc_info:
            open_audit_log(blocker / "audit.log")
        assert exc_info.value.path == str(blocker / "audit.log")

    def test_read_lines_missing_file(self, tmp_path):
        assert FileAuditSink(tmp_path / "none.log").read_lines() == []
