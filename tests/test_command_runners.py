"""Tests for command execution utilities."""

import subprocess

import pytest

from disk_utils.storage.command_runners import (
    find_missing_tools,
    run_command,
)


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestRunCommand:
    def test_returns_result(self, mocker):
        run = mocker.patch("subprocess.run", return_value=_completed(stdout="ok\n"))
        result = run_command(["lsblk"])
        assert result.stdout == "ok\n"
        run.assert_called_once_with(["lsblk"], check=True, text=True, capture_output=True)

    def test_propagates_called_process_error(self, mocker):
        error = subprocess.CalledProcessError(1, ["mkfs.ext4"], output="", stderr="bad")
        mocker.patch("subprocess.run", side_effect=error)
        with pytest.raises(subprocess.CalledProcessError):
            run_command(["mkfs.ext4"])

    def test_unchecked_nonzero(self, mocker):
        mocker.patch("subprocess.run", return_value=_completed(returncode=2, stderr="nope"))
        result = run_command(["smartctl", "-H", "/dev/sda"], check=False)
        assert result.returncode == 2


class TestFindMissingTools:
    def test_preserves_order(self, mocker):
        present = {"lsblk", "mkfs.fat"}
        mocker.patch(
            "shutil.which", side_effect=lambda tool: f"/bin/{tool}" if tool in present else None
        )
        assert find_missing_tools(["lsblk", "mkfs.ntfs", "mkfs.fat", "mkfs.exfat"]) == [
            "mkfs.ntfs",
            "mkfs.exfat",
        ]
