"""Two-step confirmation for destructive operations.

The operator is shown the device identity and full diagnostics, then must
re-type the device path. Only an exact, case- and whitespace-sensitive match
confirms; anything else aborts, and an aborted gate stays aborted.

The gate works on the raw string returned by ``prompt``. Display concerns
(colors, prompt text) live entirely in the callbacks, so styling can never
change what counts as a match.
"""

from __future__ import annotations

from typing import Callable, Optional

from disk_utils.domain.models import Confirmation, ConfirmationState, Device
from disk_utils.logging import get_logger

from .exceptions import ConfirmationAbortedError


log = get_logger(source="confirm", tags=["confirm"])

ShowCallback = Callable[[Device], None]
PromptCallback = Callable[[str], str]


def describe_device_lines(device: Device) -> list[str]:
    """Diagnostic lines shown to the operator before confirming."""
    lines = [
        f"Disk Information for {device.path}:",
        f"  Model:  {device.model or 'unknown'}",
        f"  Size:   {device.size_label} ({device.size_bytes} bytes)",
        f"  Health: {device.health_label}",
    ]
    if device.partition_table:
        lines.append("=== Detailed Information ===")
        lines.extend(device.partition_table.splitlines())
    lines.append("=== SMART Status ===")
    if device.health_report:
        lines.extend(device.health_report.splitlines())
    else:
        lines.append("SMART data not available for this disk")
    return lines


def matches(device: Device, typed: Optional[str]) -> bool:
    return typed is not None and typed == device.path


class ConfirmationGate:
    """State machine: UNCONFIRMED -> CONFIRMED | ABORTED.

    Args:
        prompt: Reads one line of operator input for the given prompt text.
        show: Renders the device diagnostics. Defaults to logging them.
    """

    PROMPT_TEXT = "Type the disk name again to confirm: "

    def __init__(
        self,
        prompt: PromptCallback,
        show: Optional[ShowCallback] = None,
    ) -> None:
        self._prompt = prompt
        self._show = show or self._log_device
        self._state = ConfirmationState.UNCONFIRMED
        self._device_path: Optional[str] = None

    @staticmethod
    def _log_device(device: Device) -> None:
        for line in describe_device_lines(device):
            log.info(line)

    @property
    def state(self) -> ConfirmationState:
        return self._state

    @property
    def device_path(self) -> Optional[str]:
        return self._device_path

    @property
    def confirmation(self) -> Confirmation:
        """The gate's outcome, bound to the device it was run for."""
        return Confirmation(self._state, self._device_path)

    def confirm(self, device: Device) -> ConfirmationState:
        """Run the two-step protocol for ``device``.

        Returns the resulting state. A gate may only be used once: calling
        confirm again for the same device returns the existing state, and
        calling it for a different device aborts the gate.
        """
        if self._state is not ConfirmationState.UNCONFIRMED:
            if device.path != self._device_path:
                log.warning(
                    f"Gate for {self._device_path} reused for {device.path}. Aborting."
                )
                self._state = ConfirmationState.ABORTED
            return self._state

        self._device_path = device.path
        self._show(device)
        try:
            typed = self._prompt(self.PROMPT_TEXT)
        except (EOFError, KeyboardInterrupt):
            typed = None

        if matches(device, typed):
            self._state = ConfirmationState.CONFIRMED
            log.info(f"Confirmed destructive operation on {device.path}")
        else:
            self._state = ConfirmationState.ABORTED
            log.warning(f"Disk names do not match for {device.path}. Aborting.")
        return self._state

    def require_confirmed(self) -> None:
        """Raise ConfirmationAbortedError unless the gate is CONFIRMED."""
        if self._state is not ConfirmationState.CONFIRMED:
            raise ConfirmationAbortedError(self._device_path or "(unconfirmed)")

