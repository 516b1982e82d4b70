"""Command-line interface for the device sync engine.

This is the main entry point that delegates to command modules.
"""

from pathlib import Path
from typing import Optional

import click

from ..config import get_config
from ..utils.logging_config import configure_third_party_loggers, setup_logging
from .commands import device, export_command, plan_command, sync_command


@click.group()
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Set logging level",
)
@click.option("--log-file", type=click.Path(path_type=Path), help="Log to file")
@click.pass_context
def cli(ctx: click.Context, log_level: str, log_file: Optional[Path]) -> None:
    """OrMiMu device sync.

    Puts library playlists on a phone, USB drive or player folder and keeps
    them in step incrementally.
    """
    config = get_config()
    setup_logging(log_level=log_level, log_file=log_file or config.log_file)
    configure_third_party_loggers()
    ctx.obj = config


cli.add_command(device)
cli.add_command(plan_command)
cli.add_command(sync_command)
cli.add_command(export_command)


if __name__ == "__main__":
    cli()
