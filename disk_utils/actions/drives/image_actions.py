"""Image drive actions.

Copies a whole device to an image file and prints its SHA-256 digest.
"""

from __future__ import annotations

from disk_utils.domain.models import ImageRequest, human_size
from disk_utils.storage.cancellation import CancellationToken
from disk_utils.storage.exceptions import StorageError
from disk_utils.ui import console

from ..context import ActionContext
from ._utils import interrupt_cancels, select_device


def image_drive(*, context: ActionContext) -> None:
    """Image a disk to a file after a space check and a yes/no prompt."""
    device = select_device(context, "Enter the disk to image (e.g., /dev/sda): ")
    if device is None:
        return

    console.show_device_info(device)
    if not console.ask_yes_no("Proceed to image the disk? [y/N]: "):
        context.audit.info("Disk imaging aborted.")
        console.warning("Disk imaging aborted.")
        return

    try:
        target_path = console.ask("Enter the target path for the image (e.g., /tmp/disk.img): ").strip()
    except EOFError:
        return
    if not target_path:
        console.error("No target path given.")
        return

    progress = console.ProgressPrinter("Imaging")
    token = CancellationToken()
    console.info(f"Imaging {device.path} to {target_path}...")
    try:
        with interrupt_cancels(token):
            result = context.workflow.image(
                ImageRequest(device=device, target_path=target_path),
                cancel_token=token,
                progress_callback=progress,
            )
    except StorageError as error:
        console.error(str(error))
        return

    if result.cancelled:
        console.warning(
            f"Imaging cancelled after {human_size(result.bytes_written)}. "
            f"The partial image at {result.target_path} is incomplete."
        )
        return
    for region in result.read_errors:
        console.warning(
            f"Unreadable region at offset {region.offset} ({region.length} bytes) padded with zeros."
        )
    console.success("Disk imaging completed successfully.")
    console.info(f"SHA-256: {result.digest}  {result.target_path}")
