"""Device management commands."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click
from pydantic import ValidationError

from ...core.device_config import DeviceConfigStore
from ...core.errors import DeviceConfigError
from ...models.models import DeviceConfig, LayoutMode, TargetFormat
from ..display import console, display_device_config, display_volume_info
from .common import device_root_argument, open_device

logger = logging.getLogger(__name__)

FORMAT_CHOICES = [f.value for f in TargetFormat]
LAYOUT_CHOICES = [m.value for m in LayoutMode]


def _config_options(func: Any) -> Any:
    """Options shared by ``device init`` and ``device set``."""
    options = [
        click.option("--alias", help="Display name of the device"),
        click.option("--description", help="Free-text description"),
        click.option(
            "--format",
            "target_format",
            type=click.Choice(FORMAT_CHOICES),
            help="Audio format on the device",
        ),
        click.option(
            "--layout",
            "layout_mode",
            type=click.Choice(LAYOUT_CHOICES),
            help="organized (Artist/Album) or flat (numbered files in root)",
        ),
        click.option(
            "--randomize/--no-randomize",
            "randomize_on_flat",
            default=None,
            help="Shuffle numbering on every sync (flat layout only)",
        ),
        click.option(
            "--prune-orphans/--keep-orphans",
            "prune_orphans",
            default=None,
            help="Delete synced files that are no longer selected",
        ),
        click.option(
            "--bitrate",
            "bitrate_kbps",
            type=click.IntRange(32, 1411),
            help="Bitrate for lossy conversions (kbps)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _apply_updates(config: DeviceConfig, updates: Dict[str, Any]) -> DeviceConfig:
    changes = {key: value for key, value in updates.items() if value is not None}
    try:
        return DeviceConfig.model_validate({**config.model_dump(), **changes})
    except ValidationError as e:
        raise click.ClickException(f"Invalid device configuration: {e}") from e


def _save(store: DeviceConfigStore, config: DeviceConfig) -> None:
    try:
        store.save(config)
    except DeviceConfigError as e:
        raise click.ClickException(str(e)) from e


@click.group()
def device() -> None:
    """Manage device configuration."""
    pass


@device.command("init")
@device_root_argument
@_config_options
def device_init(device_root: Path, **updates: Optional[Any]) -> None:
    """Associate a folder or drive with the sync engine."""
    store = DeviceConfigStore(device_root)
    if store.exists():
        raise click.ClickException(
            f"{device_root} is already configured, use 'device set' to change it"
        )

    if not updates.get("alias"):
        updates["alias"] = device_root.name
    config = _apply_updates(DeviceConfig(), updates)
    _save(store, config)

    console.print(f"[green]✓ Configured device {device_root}[/green]")
    display_device_config(device_root, config)


@device.command("set")
@device_root_argument
@_config_options
def device_set(device_root: Path, **updates: Optional[Any]) -> None:
    """Change the sync policy of a device."""
    store = DeviceConfigStore(device_root)
    config = _apply_updates(store.load_or_create(), updates)
    _save(store, config)

    console.print("[green]✓ Device configuration saved[/green]")
    display_device_config(device_root, config)


@device.command("show")
@device_root_argument
def device_show(device_root: Path) -> None:
    """Show the sync policy of a device."""
    config = DeviceConfigStore(device_root).load()
    if config is None:
        raise click.ClickException(
            f"{device_root} is not configured, run 'device init' first"
        )
    display_device_config(device_root, config)


@device.command("info")
@device_root_argument
def device_info(device_root: Path) -> None:
    """Show configuration and storage usage of a device."""
    context = open_device(device_root)
    display_device_config(device_root, context.config)
    display_volume_info(context.volume_info, context.manifest_count)


@device.command("forget")
@device_root_argument
@click.confirmation_option(prompt="Remove the device configuration?")
def device_forget(device_root: Path) -> None:
    """Remove the device association (synced files are kept)."""
    if DeviceConfigStore(device_root).delete():
        console.print(f"[green]✓ Removed configuration from {device_root}[/green]")
    else:
        console.print(f"[dim]{device_root} was not configured[/dim]")
