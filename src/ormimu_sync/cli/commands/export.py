"""Export command: CSV listing of the device content."""

import logging
from pathlib import Path
from typing import Optional

import click

from ...core.manifest import ManifestStore
from ...services.report import build_report, report_to_csv, write_csv
from ..display import console
from .common import device_root_argument, library_option, load_catalog

logger = logging.getLogger(__name__)


@click.command("export")
@device_root_argument
@click.argument("output", type=click.Path(dir_okay=False, path_type=Path))
@library_option
@click.pass_context
def export_command(
    ctx: click.Context,
    device_root: Path,
    output: Path,
    library_file: Optional[Path],
) -> None:
    """Write a CSV list of the music on a device to OUTPUT."""
    catalog = load_catalog(ctx, library_file)
    manifest = ManifestStore(device_root).load()

    rows = build_report(manifest, catalog.lookup())
    try:
        write_csv(report_to_csv(rows), output)
    except OSError as e:
        raise click.ClickException(f"Failed to export CSV: {e}") from e

    console.print(f"[green]✓ Exported {len(rows)} files to {output}[/green]")
