#!/usr/bin/env python3
"""Main CLI entry point for kycfill."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from .commands import autofill, config, save, show
from .context import configure_logging, console, make_state


@click.group()
@click.option("--db", "db_path", type=click.Path(dir_okay=False, path_type=Path), help="SQLite vault file to use")
@click.option("--log-level", default=None, help="Logging level (defaults to KYCFILL_LOG_LEVEL)")
@click.version_option(version="0.1.0", prog_name="kycfill")
@click.pass_context
def cli(ctx: click.Context, db_path: Optional[Path], log_level: Optional[str]):
    """
    kycfill - encrypted identity profile vault and KYC form autofill.

    Save your details once with a passphrase, then let the autofill
    pipeline fill identity forms on any page.
    """
    state = make_state(db_path)
    configure_logging(log_level or state.settings.log_level)
    ctx.obj = state


cli.add_command(save.save_command)
cli.add_command(autofill.autofill_command)
cli.add_command(show.show_command)
cli.add_command(config.config_command)


def main():
    """Entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
