"""Terminal presentation: banner, colored messages, menus and progress.

Nothing here decides anything. Every function either renders text or
returns exactly what the operator typed.
"""

from __future__ import annotations

import getpass
import re
import time
from datetime import datetime
from typing import Iterable, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from disk_utils.domain.models import Device
from disk_utils.storage.confirmation import describe_device_lines
from disk_utils.storage.progress import RateTracker, format_progress_line


console = Console(highlight=False)

YES_RE = re.compile(r"^([yY][eE][sS]|[yY])$")

BANNER = r"""
 ____  _     _      _   _ _   _ _
|  _ \(_)___| | __ | | | | |_(_) |___
| | | | / __| |/ / | | | | __| | / __|
| |_| | \__ \   <  | |_| | |_| | \__ \
|____/|_|___/_|\_\  \___/ \__|_|_|___/
"""

STYLES = {
    "info": "cyan",
    "success": "bold green",
    "warning": "bold yellow",
    "error": "bold red",
}


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def show_banner(version: str) -> None:
    console.print(BANNER, style="bold blue")
    console.print(f"[bold]Disk Utils v{escape(version)}[/bold]")
    console.print(f"User: {escape(_current_user())}")
    console.print(f"Date: {datetime.now():%Y-%m-%d %H:%M:%S}")
    console.print()


def say(message: str, level: str = "info") -> None:
    console.print(escape(message), style=STYLES.get(level))


def info(message: str) -> None:
    say(message, "info")


def success(message: str) -> None:
    say(message, "success")


def warning(message: str) -> None:
    say(message, "warning")


def error(message: str) -> None:
    say(message, "error")


def show_menu(title: str, options: Sequence[str]) -> None:
    console.print(f"\n[bold blue]=== {escape(title)} ===[/bold blue]")
    for index, option in enumerate(options, start=1):
        console.print(f"{index}. {escape(option)}")


def ask(prompt: str) -> str:
    """Read one raw line; the text is returned without any trimming."""
    return console.input(f"[bold]{escape(prompt)}[/bold]")


def ask_yes_no(prompt: str) -> bool:
    try:
        answer = ask(prompt)
    except EOFError:
        return False
    return bool(YES_RE.match(answer.strip()))


def choose(title: str, options: Sequence[str], prompt: str) -> Optional[int]:
    """Show a numbered menu and return the 0-based choice, or None if invalid."""
    show_menu(title, options)
    answer = ask(prompt).strip()
    if not answer.isdigit():
        return None
    index = int(answer) - 1
    if 0 <= index < len(options):
        return index
    return None


def show_listing(text: str) -> None:
    console.print("[bold blue]Available disks:[/bold blue]")
    console.print(escape(text) if text else "(lsblk returned no output)")


def show_devices(devices: Iterable[Device]) -> None:
    table = Table(title="Available disks", title_style="bold blue")
    table.add_column("Path", style="bold")
    table.add_column("Size", justify="right")
    table.add_column("Model")
    for device in devices:
        table.add_row(device.path, device.size_label, device.model or "")
    console.print(table)


def show_device_info(device: Device) -> None:
    lines = describe_device_lines(device)
    console.print(f"[bold blue]{escape(lines[0])}[/bold blue]")
    for line in lines[1:]:
        if line.startswith("==="):
            console.print(f"[bold]{escape(line)}[/bold]")
        else:
            console.print(escape(line))


def page_lines(lines: Sequence[str]) -> None:
    with console.pager():
        for line in lines:
            console.print(escape(line))


class ProgressPrinter:
    """Progress callback that prints a status line at most every interval."""

    def __init__(self, title: str, interval_seconds: float = 1.0, clock=time.monotonic):
        self.title = title
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._last_print: Optional[float] = None
        self._tracker: Optional[RateTracker] = None

    def start(self, title: Optional[str] = None) -> None:
        if title:
            self.title = title
        self._last_print = None
        self._tracker = None

    def __call__(self, bytes_done: int, total_bytes: Optional[int]) -> None:
        now = self._clock()
        if self._tracker is None:
            self._tracker = RateTracker(total_bytes)
        rate, eta = self._tracker.sample(bytes_done, now)
        finished = total_bytes is not None and bytes_done >= total_bytes
        if (
            not finished
            and self._last_print is not None
            and now - self._last_print < self.interval_seconds
        ):
            return
        self._last_print = now
        console.print(
            escape(format_progress_line(self.title, bytes_done, total_bytes, rate, eta)),
            style="cyan",
        )
