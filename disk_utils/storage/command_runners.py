"""Command execution utilities."""

import shutil
import subprocess
from typing import Iterable

from disk_utils.logging import LoggerFactory


log = LoggerFactory.for_command()


def run_command(command, check=True, log_output=True, log_command=True):
    """Run a command, logging its output at DEBUG level."""
    if log_command:
        log.debug(f"Running command: {' '.join(command)}")
    try:
        result = subprocess.run(command, check=check, text=True, capture_output=True)
    except subprocess.CalledProcessError as error:
        log.debug(f"Command failed: {' '.join(command)}")
        if error.stdout:
            log.debug(f"stdout: {error.stdout.strip()}")
        if error.stderr:
            log.debug(f"stderr: {error.stderr.strip()}")
        raise
    if result.stdout and (log_output or result.returncode != 0):
        log.debug(f"stdout: {result.stdout.strip()}")
    if result.stderr and (log_output or result.returncode != 0):
        log.debug(f"stderr: {result.stderr.strip()}")
    if log_command:
        log.debug(f"Command completed with return code {result.returncode}")
    return result


def find_missing_tools(tools: Iterable[str]) -> list[str]:
    """Return the tools from ``tools`` that are not on PATH, in order."""
    return [tool for tool in tools if not shutil.which(tool)]


__all__ = [
    "find_missing_tools",
    "run_command",
]
