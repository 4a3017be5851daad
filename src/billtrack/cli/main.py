#!/usr/bin/env python3
"""
Main CLI Entry Point for BillTrack

Provides the unified command-line interface for bill extraction and
expense forecasting.
"""

import logging
import os

import click

from ..core.config import get_config, reload_config


@click.group()
@click.option(
    "--config-env",
    type=click.Choice(["development", "test", "production"]),
    help="Override environment configuration",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_env: str | None, verbose: bool, debug: bool) -> None:
    """
    BillTrack - Bill Extraction and Expense Forecasting

    Browse and export bills found in your mailbox, and forecast
    per-category spending from your transactions.
    """
    ctx.ensure_object(dict)

    if config_env:
        os.environ["BILLTRACK_ENV"] = config_env

    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("billtrack").setLevel(logging.DEBUG)

    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug
    ctx.obj["config"] = reload_config() if config_env else get_config()

    if verbose:
        click.echo(f"Environment: {ctx.obj['config'].environment.value}")
        click.echo(f"Data directory: {ctx.obj['config'].data_dir}")

    if debug:
        click.echo("Debug logging enabled")


@main.command()
def version() -> None:
    """Show version information."""
    from billtrack import __version__

    click.echo(f"BillTrack v{__version__}")


@main.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    config_obj = ctx.obj["config"]

    click.echo("Current Configuration:")
    click.echo(f"  Environment: {config_obj.environment.value}")
    click.echo(f"  Data Directory: {config_obj.data_dir}")
    click.echo(f"  Export Directory: {config_obj.output_dir}")
    click.echo(f"  Gmail Credentials: {config_obj.gmail.credentials_file or 'not configured'}")
    click.echo(f"  Transactions File: {config_obj.forecast.transactions_file}")
    click.echo(f"  Debug Mode: {config_obj.debug}")
    click.echo(f"  Log Level: {config_obj.log_level}")


from .bills import bills  # noqa: E402
from .forecast import forecast  # noqa: E402

main.add_command(bills)
main.add_command(forecast)


if __name__ == "__main__":
    main()
