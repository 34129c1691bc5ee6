"""Erase drive actions.

Handles multi-pass secure erasure of a whole disk.
"""

from __future__ import annotations

from disk_utils.domain.models import (
    ERASE_METHOD_DESCRIPTIONS,
    Device,
    EraseMethod,
    ErasePass,
    EraseRequest,
)
from disk_utils.storage.cancellation import CancellationToken
from disk_utils.storage.confirmation import ConfirmationGate
from disk_utils.storage.exceptions import StorageError
from disk_utils.ui import console

from ..context import ActionContext
from ._utils import interrupt_cancels, select_device


ERASE_METHODS = list(EraseMethod)


def _show_erase_warning(device: Device) -> None:
    console.show_device_info(device)
    console.warning(f"WARNING: This will permanently erase all data on {device.path}")


def erase_drive(*, context: ActionContext) -> None:
    """Confirm, pick a method, then overwrite the whole disk."""
    device = select_device(context, "Enter the disk to erase (e.g., /dev/sda): ")
    if device is None:
        return

    gate = ConfirmationGate(console.ask, show=_show_erase_warning)
    gate.confirm(device)
    try:
        context.workflow.record_confirmation(device, gate.confirmation)
    except StorageError as error:
        console.error(str(error))
        return

    options = [
        f"{method.value}: {ERASE_METHOD_DESCRIPTIONS[method]}" for method in ERASE_METHODS
    ]
    try:
        choice = console.choose("Select Erasure Method", options, "Choose method (1-3): ")
    except EOFError:
        return
    if choice is None:
        console.error("Invalid option!")
        context.audit.error("Invalid erasure method selected. Aborting.")
        return
    method = ERASE_METHODS[choice]

    progress = console.ProgressPrinter("Erasing")

    def on_pass_start(erase_pass: ErasePass, total: int) -> None:
        title = f"Pass {erase_pass.index}/{total} ({erase_pass.pattern.value})"
        console.info(f"Starting {title}...")
        progress.start(title)

    token = CancellationToken()
    try:
        with interrupt_cancels(token):
            result = context.workflow.erase(
                EraseRequest(device=device, method=method),
                gate.confirmation,
                cancel_token=token,
                on_pass_start=on_pass_start,
                progress_callback=progress,
            )
    except StorageError as error:
        console.error(str(error))
        return

    if result.cancelled:
        console.warning(
            f"Erasure cancelled after {result.passes_completed} of {result.passes_total} "
            f"pass(es). {device.path} is only partially erased."
        )
        return
    console.success(f"Disk {device.path} erased successfully.")
