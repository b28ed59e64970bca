"""CLI entry point for Pagewright.

This module defines the Click-based command-line interface.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from pagewright import __version__
from pagewright.cli.commands import analyze, render, trigger, validate
from pagewright.cli.context import CLIContext, ExitCode
from pagewright.cli.output import format_error
from pagewright.config import load_config
from pagewright.exceptions import ConfigError
from pagewright.logging import configure_logging


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="pagewright")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
    default=None,
    help="Path to config file (overrides ./pagewright.yaml).",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for INFO, -vv for DEBUG).",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    default=False,
    help="Suppress non-essential output (ERROR level only).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str | None,
    verbose: int,
    quiet: bool,
) -> None:
    """Pagewright - schema-driven UI rendering and interaction engine."""
    ctx.ensure_object(dict)

    # Load configuration first (before logging setup)
    config_path = Path(config_file) if config_file else None
    try:
        config = load_config(config_path)
    except ConfigError as e:
        details = []
        if e.field:
            details.append(f"Field: {e.field}")
        if e.value is not None:
            details.append(f"Value: {e.value}")
        click.echo(format_error(e.message, details=details), err=True)
        ctx.exit(ExitCode.FAILURE)

    ctx.obj["cli_ctx"] = CLIContext(
        config=config,
        config_path=config_path,
        verbosity=verbose,
        quiet=quiet,
    )

    # Priority: quiet > verbose > PAGEWRIGHT_LOG_LEVEL
    if quiet:
        configure_logging(level=logging.ERROR)
    elif verbose > 0:
        configure_logging(level=logging.INFO if verbose == 1 else logging.DEBUG)
    else:
        configure_logging()

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(validate)
cli.add_command(analyze)
cli.add_command(render)
cli.add_command(trigger)

if __name__ == "__main__":
    cli()
