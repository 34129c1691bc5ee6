"""Cooperative cancellation for long-running disk operations.

Engines call ``token.cancelled`` after every block write, so an operator
interrupt stops at the end of the current block and never mid-write.
"""

from __future__ import annotations

import threading
from typing import Optional


class CancellationToken:
    """Thread-safe flag set by the operator (e.g. on Ctrl+C)."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: str = "operator interrupt") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason
