"""Format drive actions.

Handles creating a filesystem on a whole disk.
"""

from __future__ import annotations

from disk_utils.domain.models import Device, FilesystemKind, FormatRequest
from disk_utils.storage.confirmation import ConfirmationGate
from disk_utils.storage.exceptions import StorageError
from disk_utils.storage.format import FILESYSTEM_DESCRIPTIONS
from disk_utils.ui import console

from ..context import ActionContext
from ._utils import select_device


FILESYSTEM_KINDS = list(FilesystemKind)


def _show_format_warning(device: Device) -> None:
    console.show_device_info(device)
    console.warning(f"WARNING: Formatting will destroy all data on {device.path}")


def format_drive(*, context: ActionContext) -> None:
    """Confirm, pick a filesystem and label, then run mkfs."""
    device = select_device(context, "Enter the disk to format (e.g., /dev/sda): ")
    if device is None:
        return

    gate = ConfirmationGate(console.ask, show=_show_format_warning)
    gate.confirm(device)
    try:
        context.workflow.record_confirmation(device, gate.confirmation)
    except StorageError as error:
        console.error(str(error))
        return

    options = [FILESYSTEM_DESCRIPTIONS[kind] for kind in FILESYSTEM_KINDS]
    try:
        choice = console.choose(
            "Select Filesystem", options, f"Choose filesystem (1-{len(options)}): "
        )
        if choice is None:
            console.error("Invalid option!")
            context.audit.error("Invalid filesystem selected. Aborting.")
            return
        kind = FILESYSTEM_KINDS[choice]
        label = console.ask("Enter a label for the filesystem (optional): ")
    except EOFError:
        return

    console.info(f"Formatting {device.path} as {kind.value}...")
    try:
        result = context.workflow.format(
            FormatRequest(device=device, kind=kind.value, label=label),
            gate.confirmation,
        )
    except StorageError as error:
        console.error(str(error))
        return

    if result.label:
        console.info(f"Filesystem label: {result.label}")
    if result.tuned:
        console.info("Reserved block percentage set.")
    console.success(f"Disk {device.path} formatted as {result.kind.value} filesystem successfully.")
