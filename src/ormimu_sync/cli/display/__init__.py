"""CLI display and formatting utilities."""

from .formatters import (
    console,
    display_device_config,
    display_failures,
    display_plan,
    display_sync_result,
    display_volume_info,
)

__all__ = [
    "console",
    "display_device_config",
    "display_failures",
    "display_plan",
    "display_sync_result",
    "display_volume_info",
]
