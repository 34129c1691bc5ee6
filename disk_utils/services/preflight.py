"""Startup capability check: privilege and required tools.

Run once at startup. The result is a plain value handed to the workflow
layer; nothing here exits the process.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from disk_utils.config import settings
from disk_utils.logging import LoggerFactory
from disk_utils.storage.command_runners import find_missing_tools
from disk_utils.storage.exceptions import ToolUnavailableError


log = LoggerFactory.for_system()


@dataclass(frozen=True)
class Capabilities:
    is_root: bool
    missing_tools: tuple[str, ...] = ()
    root_required: bool = True

    @property
    def has_privilege(self) -> bool:
        return self.is_root or not self.root_required

    @property
    def has_tools(self) -> bool:
        return not self.missing_tools

    @property
    def ok(self) -> bool:
        return self.has_privilege and self.has_tools

    def problems(self) -> list[str]:
        problems = []
        if not self.has_privilege:
            problems.append("Please run this script as root!")
        if self.missing_tools:
            problems.append(f"Missing required tools: {' '.join(self.missing_tools)}")
            problems.append("Please install the missing tools and try again.")
        return problems

    def raise_for_tools(self) -> None:
        if self.missing_tools:
            raise ToolUnavailableError(self.missing_tools)


def _current_euid() -> int:
    return os.geteuid()


def check_capabilities(
    required_tools: Optional[Iterable[str]] = None,
    require_root: Optional[bool] = None,
    euid: Callable[[], int] = _current_euid,
) -> Capabilities:
    """Check privilege and the full required-tool set in one pass."""
    if required_tools is None:
        required_tools = settings.get_required_tools()
    if require_root is None:
        require_root = settings.get_bool("require_root", True)
    missing = tuple(find_missing_tools(required_tools))
    capabilities = Capabilities(
        is_root=euid() == 0,
        missing_tools=missing,
        root_required=require_root,
    )
    if missing:
        log.warning(f"Missing required tools: {', '.join(missing)}")
    if not capabilities.has_privilege:
        log.warning("Not running as root")
    return capabilities
