"""CLI command modules."""

from .device import device
from .export import export_command
from .sync import plan_command, sync_command

__all__ = [
    "device",
    "export_command",
    "plan_command",
    "sync_command",
]
