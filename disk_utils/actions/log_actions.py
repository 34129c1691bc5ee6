"""View Logs action: pages the persistent audit file."""

from __future__ import annotations

from disk_utils.audit import FileAuditSink
from disk_utils.ui import console

from .context import ActionContext


def view_logs(*, context: ActionContext) -> None:
    sink = context.audit.sink
    if isinstance(sink, FileAuditSink):
        lines = sink.read_lines()
    else:
        lines = [entry.to_line() for entry in context.audit.entries]
    if not lines:
        console.warning("No logs found.")
        return
    console.page_lines(lines)
