"""Shared utilities for drive actions.

Common functions used across multiple drive action modules.
"""

from __future__ import annotations

import signal
from contextlib import contextmanager
from typing import Iterator, Optional

from disk_utils.domain.models import Device
from disk_utils.logging import LoggerFactory
from disk_utils.storage.cancellation import CancellationToken
from disk_utils.storage.exceptions import DeviceNotFoundError
from disk_utils.ui import console

from ..context import ActionContext


log = LoggerFactory.for_system()


def select_device(context: ActionContext, prompt: str) -> Optional[Device]:
    """List disks, ask for a path and return a fresh snapshot of it.

    Returns None if the path does not name a device; the failure has
    already been recorded and shown.
    """
    devices = context.inventory.list()
    if devices:
        console.show_devices(devices)
    else:
        console.show_listing(context.inventory.listing())
    try:
        path = console.ask(prompt).strip()
    except EOFError:
        return None
    try:
        return context.workflow.describe(path)
    except DeviceNotFoundError as error:
        console.error(f"Error: Disk '{error.device_path}' not found.")
        return None


@contextmanager
def interrupt_cancels(token: CancellationToken) -> Iterator[CancellationToken]:
    """Route Ctrl+C to ``token`` for the duration of an operation.

    The running engine stops at its next block boundary instead of being
    torn down mid-write.
    """

    def handler(signum, frame):
        if not token.cancelled:
            console.warning("Interrupt received; stopping after the current block...")
            log.warning("Operator interrupt; cancelling current operation")
        token.cancel("operator interrupt")

    try:
        previous = signal.signal(signal.SIGINT, handler)
    except ValueError:
        # Not on the main thread; leave the default handler in place.
        yield token
        return
    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)
