"""Settings storage for application configuration."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


SETTINGS_PATH = Path(
    os.environ.get(
        "DISK_UTILS_SETTINGS_PATH",
        Path.home() / ".config" / "disk-utils" / "settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_AUDIT_LOG_PATH = "/var/log/disk_management.log"
DEFAULT_BLOCK_SIZE_BYTES = 4 * 1024 * 1024
DEFAULT_SECTOR_SIZE_BYTES = 512
DEFAULT_EXT4_RESERVED_PERCENT = 1
DEFAULT_REQUIRED_TOOLS = [
    "lsblk",
    "mkfs.ext4",
    "tune2fs",
    "mkfs.ntfs",
    "mkfs.fat",
    "mkfs.exfat",
]

DEFAULT_SETTINGS: dict[str, Any] = {
    "audit_log_path": DEFAULT_AUDIT_LOG_PATH,
    "block_size_bytes": DEFAULT_BLOCK_SIZE_BYTES,
    "sector_size_bytes": DEFAULT_SECTOR_SIZE_BYTES,
    "ext4_reserved_percent": DEFAULT_EXT4_RESERVED_PERCENT,
    "required_tools": list(DEFAULT_REQUIRED_TOOLS),
    "require_root": True,
    "progress_log_interval_seconds": 5.0,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


settings_store = SettingsStore()


def load_settings() -> None:
    settings_store.values = dict(DEFAULT_SETTINGS)
    if SETTINGS_PATH.exists():
        try:
            data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            data = None
        if isinstance(data, dict):
            settings_store.values.update(data)
    env_log_path = os.environ.get("DISK_UTILS_LOG_PATH")
    if env_log_path:
        settings_store.values["audit_log_path"] = env_log_path


def save_settings() -> None:
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(settings_store.values, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def set_setting(key: str, value: Any) -> None:
    settings_store.values[key] = value
    save_settings()


def get_int(key: str, default: int = 0) -> int:
    try:
        return int(get_setting(key, default))
    except (TypeError, ValueError):
        return default


def get_bool(key: str, default: bool = False) -> bool:
    return bool(get_setting(key, default))


def get_audit_log_path() -> Path:
    return Path(get_setting("audit_log_path", DEFAULT_AUDIT_LOG_PATH))


def get_required_tools() -> list[str]:
    tools = get_setting("required_tools", DEFAULT_REQUIRED_TOOLS)
    if not isinstance(tools, list):
        return list(DEFAULT_REQUIRED_TOOLS)
    return [str(tool) for tool in tools]


load_settings()
