"""Plan and sync commands."""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)

from ...core.errors import SyncEngineError
from ...core.sync import DeviceContext, DeviceSyncService, ProgressUpdate, SyncResult
from ...models.models import PlaylistRef
from ...services.report import failures_to_csv, write_csv
from ...services.transcoder import is_ffmpeg_available
from ..display import console, display_plan, display_sync_result
from .common import (
    device_root_argument,
    get_app_config,
    library_option,
    load_catalog,
    open_device,
    select_playlists,
)

logger = logging.getLogger(__name__)

playlist_option = click.option(
    "--playlist",
    "-p",
    "playlist_names",
    multiple=True,
    help="Playlist to put on the device (repeatable)",
)
all_option = click.option(
    "--all", "select_all", is_flag=True, help="Select every library playlist"
)


@click.command("plan")
@device_root_argument
@playlist_option
@all_option
@library_option
@click.option("--verbose", "-v", is_flag=True, help="List every operation")
@click.pass_context
def plan_command(
    ctx: click.Context,
    device_root: Path,
    playlist_names: Tuple[str, ...],
    select_all: bool,
    library_file: Optional[Path],
    verbose: bool,
) -> None:
    """Show what a sync would do without touching the device."""
    catalog = load_catalog(ctx, library_file)
    context = open_device(device_root, read_only=True)
    playlists = select_playlists(catalog, context, playlist_names, select_all)

    service = DeviceSyncService(config=get_app_config(ctx))
    plan = service.plan(context, playlists)
    display_plan(plan, verbose=verbose)


@click.command("sync")
@device_root_argument
@playlist_option
@all_option
@library_option
@click.option(
    "--failures-csv",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write failed items to this CSV file",
)
@click.pass_context
def sync_command(
    ctx: click.Context,
    device_root: Path,
    playlist_names: Tuple[str, ...],
    select_all: bool,
    library_file: Optional[Path],
    failures_csv: Optional[Path],
) -> None:
    """Sync the selected playlists to a device.

    Press Ctrl+C to stop after the current file; completed files are kept.
    """
    catalog = load_catalog(ctx, library_file)
    context = open_device(device_root)
    playlists = select_playlists(catalog, context, playlist_names, select_all)

    console.print(
        f"\n[bold blue]🔄 Syncing {len(playlists)} playlist(s) to "
        f"{context.config.alias or device_root}...[/bold blue]"
    )

    config = get_app_config(ctx)
    if not config.ffmpeg_path and not is_ffmpeg_available():
        console.print(
            "[yellow]⚠️  ffmpeg not found, tracks that need conversion will fail[/yellow]"
        )

    service = DeviceSyncService(config=config)
    result = _run_with_progress(service, context, playlists)

    display_sync_result(result)
    if failures_csv and result.failed:
        write_csv(failures_to_csv(result), failures_csv)
        console.print(f"[dim]Failures written to {failures_csv}[/dim]")

    if result.aborted:
        ctx.exit(2)
    if result.failed or result.manifest_error:
        ctx.exit(1)


def _run_with_progress(
    service: DeviceSyncService,
    context: DeviceContext,
    playlists: List[PlaylistRef],
) -> SyncResult:
    """Run a sync in the background while drawing a progress bar."""
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    ) as progress:
        task = progress.add_task("Preparing", total=None)

        def on_progress(update: ProgressUpdate) -> None:
            progress.update(
                task,
                total=update.total,
                completed=update.current,
                description=escape(update.message[:60]),
            )

        try:
            handle = service.start_sync(
                context, playlists, progress_callback=on_progress
            )
        except SyncEngineError as e:
            raise click.ClickException(str(e)) from e

        try:
            return handle.result()
        except KeyboardInterrupt:
            console.print("[yellow]Stopping after the current file...[/yellow]")
            handle.cancel()
            return handle.result()
