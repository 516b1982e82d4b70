"""Helpers shared by CLI commands."""

from pathlib import Path
from typing import List, Optional, Sequence

import click

from ...config import Config
from ...core.errors import LibraryError, SyncEngineError
from ...core.sync import DeviceContext
from ...models.models import PlaylistRef
from ...services.library import LibraryCatalog

device_root_argument = click.argument(
    "device_root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)

library_option = click.option(
    "--library",
    "library_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Library export JSON (default: ORMIMU_SYNC_LIBRARY_FILE)",
)


def get_app_config(ctx: click.Context) -> Config:
    """Get the Config stored on the click context."""
    config = ctx.find_object(Config)
    if config is None:
        config = Config()
        ctx.obj = config
    return config


def load_catalog(ctx: click.Context, library_file: Optional[Path]) -> LibraryCatalog:
    """Load the library catalog, turning errors into CLI errors."""
    path = library_file or get_app_config(ctx).library_file
    try:
        return LibraryCatalog.load(path)
    except LibraryError as e:
        raise click.ClickException(str(e)) from e


def open_device(device_root: Path, read_only: bool = False) -> DeviceContext:
    """Build a context for a device, creating its config on first use.

    With ``read_only`` nothing is written to the device; a device without a
    config gets an in-memory default.
    """
    context = DeviceContext()
    try:
        context.select_device(device_root, read_only=read_only)
    except SyncEngineError as e:
        raise click.ClickException(str(e)) from e
    return context


def select_playlists(
    catalog: LibraryCatalog,
    context: DeviceContext,
    names: Sequence[str],
    select_all: bool,
) -> List[PlaylistRef]:
    """Resolve the playlists to sync and record the selection on the context."""
    if select_all:
        playlists = list(catalog.playlists)
    elif names:
        try:
            playlists = catalog.playlists_by_name(names)
        except LibraryError as e:
            raise click.ClickException(str(e)) from e
    else:
        raise click.UsageError("Select playlists with --playlist or --all")

    context.selected_playlist_ids = {p.id for p in playlists}
    return context.selected_playlists(playlists)
