"""Shared dependencies handed to every menu action."""

from __future__ import annotations

from dataclasses import dataclass

from disk_utils.audit import AuditLog
from disk_utils.services.workflow import DiskWorkflow
from disk_utils.storage.devices import LsblkInventory


@dataclass
class ActionContext:
    workflow: DiskWorkflow
    audit: AuditLog
    inventory: LsblkInventory
