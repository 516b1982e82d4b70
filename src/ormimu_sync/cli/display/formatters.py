"""Display formatters and UI helpers for CLI."""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...core.sync import OperationKind, SyncPlan, SyncResult
from ...models.models import DeviceConfig, VolumeInfo

console = Console()
logger = logging.getLogger(__name__)

GB = 1_000_000_000

OPERATION_STYLES = {
    OperationKind.COPY: "green",
    OperationKind.CONVERT: "cyan",
    OperationKind.SKIP: "dim",
    OperationKind.REMOVE: "red",
}


def display_device_config(device_root: Path, config: DeviceConfig) -> None:
    """Display the sync policy of a device."""
    table = Table(show_header=False, title=f"Device {device_root}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Alias", config.alias or "[dim]-[/dim]")
    table.add_row("Description", config.description or "[dim]-[/dim]")
    table.add_row("Target Format", config.target_format.value)
    table.add_row("Layout", config.layout_mode.value)
    table.add_row("Randomize (flat)", "yes" if config.randomize_on_flat else "no")
    if config.randomize_on_flat and not config.shuffle_enabled:
        table.add_row("", "[yellow]ignored in organized layout[/yellow]")
    table.add_row("Prune Orphans", "yes" if config.prune_orphans else "no")
    table.add_row(
        "Bitrate",
        f"{config.bitrate_kbps} kbps" if config.bitrate_kbps else "[dim]default[/dim]",
    )

    console.print(table)


def display_volume_info(info: Optional[VolumeInfo], manifest_count: int) -> None:
    """Display storage usage of a device."""
    if info is None:
        console.print("[yellow]Storage info unavailable[/yellow]")
        return

    table = Table(show_header=False, title="Storage")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("Total", f"{info.total / GB:.1f} GB")
    table.add_row("Free", f"{info.free / GB:.1f} GB")
    table.add_row("Used", f"{info.used_fraction * 100:.1f}%")
    table.add_row("Synced Files", str(manifest_count))
    console.print(table)


def display_plan(plan: SyncPlan, verbose: bool = False) -> None:
    """Display a sync plan.

    Args:
        plan: Plan to show
        verbose: Also list every operation, not only the summary
    """
    summary = plan.get_summary()

    table = Table(show_header=True, header_style="bold magenta", title="Sync Plan")
    table.add_column("Action", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Copy", str(summary["to_copy"]))
    table.add_row("Convert", str(summary["to_convert"]))
    table.add_row("Remove", str(summary["to_remove"]))
    table.add_row("Up to date", str(summary["to_skip"]))
    console.print(table)

    if verbose and plan.operations:
        details = Table(show_header=True, header_style="bold magenta")
        details.add_column("#", justify="right")
        details.add_column("Action")
        details.add_column("Device Path")
        for index, operation in enumerate(plan.operations, start=1):
            style = OPERATION_STYLES[operation.kind]
            details.add_row(
                str(index),
                f"[{style}]{operation.kind.value}[/{style}]",
                escape(operation.target_path),
            )
        console.print(details)

    if not plan.has_changes:
        console.print("[green]✓ Device is up to date[/green]")


def display_sync_result(result: SyncResult, max_failures: int = 20) -> None:
    """Display the outcome of a sync run."""
    if result.aborted:
        console.print(f"\n[bold red]✗ Sync aborted: {result.abort_reason}[/bold red]\n")
    elif result.cancelled:
        console.print("\n[bold yellow]⚠️  Sync cancelled[/bold yellow]\n")
    elif result.failed:
        console.print("\n[bold yellow]⚠️  Sync completed with errors[/bold yellow]\n")
    else:
        console.print("\n[bold green]✅ Sync completed successfully![/bold green]\n")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Copied", str(result.copied))
    table.add_row("Converted", str(result.converted))
    table.add_row("Removed", str(result.removed))
    table.add_row("Up to date", str(result.skipped))
    table.add_row("Failed", str(len(result.failed)))
    console.print(table)

    if result.manifest_error:
        console.print(f"[red]Manifest not saved: {result.manifest_error}[/red]")

    if result.failed:
        display_failures(result, max_failures)


def display_failures(result: SyncResult, max_failures: int = 20) -> None:
    """List failed operations with their reasons."""
    by_reason = ", ".join(
        f"{reason.value}: {count}"
        for reason, count in sorted(
            result.failures_by_reason().items(), key=lambda item: -item[1]
        )
    )
    console.print(
        f"\n[yellow]{len(result.failed)} item(s) failed ({by_reason}):[/yellow]"
    )

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Device Path")
    table.add_column("Reason", style="red")
    table.add_column("Detail", overflow="fold")
    for failure in result.failed[:max_failures]:
        table.add_row(
            escape(failure.target_path), failure.reason.value, escape(failure.detail)
        )
    console.print(table)

    hidden = len(result.failed) - max_failures
    if hidden > 0:
        console.print(f"  ... and {hidden} more (use --failures-csv to export all)")
