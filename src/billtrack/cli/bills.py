#!/usr/bin/env python3
"""
Bills CLI - Bill Browsing and CSV Export

Command-line interface for listing bill messages and exporting them to CSV.
"""

import asyncio
from pathlib import Path

import click

from ..bills import BulkExporter, CrawlController, PageDirection
from ..core.config import Config, get_config
from ..core.errors import ExportError
from ..core.models import BillRecord, ListingRow, SortDirection, SortKey
from ..mail.source import GmailMessageSource, MessageSource


def open_message_source(config: Config) -> MessageSource:
    """Build the Gmail-backed message source from configuration."""
    if not config.gmail.credentials_file:
        raise click.ClickException("GMAIL_CREDENTIALS_FILE is not configured")
    if not config.gmail.credentials_file.exists():
        raise click.ClickException(f"Credentials file not found: {config.gmail.credentials_file}")
    return GmailMessageSource.from_credentials_file(config.gmail.credentials_file, config.gmail.user_id)


def format_row(row: ListingRow) -> str:
    if not isinstance(row, BillRecord):
        return f"  {row.text}"
    return (
        f"  {row.display_date:<17} {str(row.amount_raw):>12}  "
        f"{str(row.vendor)[:24]:<24}  {str(row.bill_number):<16}  {row.subject}"
    )


@click.group()
def bills() -> None:
    """Bill message browsing and export commands."""
    pass


@bills.command("list")
@click.option("--pages", type=int, default=1, help="Number of pages to walk (default: 1)")
@click.option(
    "--sort-by",
    type=click.Choice([key.value for key in SortKey]),
    help="Reorder each page by this field",
)
@click.option(
    "--direction",
    type=click.Choice([d.value for d in SortDirection]),
    help="Sort direction (toggles from the current direction when omitted)",
)
@click.pass_context
def list_bills(ctx: click.Context, pages: int, sort_by: str | None, direction: str | None) -> None:
    """
    List bill messages page by page.

    Examples:
      billtrack bills list
      billtrack bills list --pages 3 --sort-by amount --direction desc
    """
    config = get_config()
    if pages < 1:
        raise click.ClickException("--pages must be at least 1")

    source = open_message_source(config)
    controller = CrawlController(source, config.gmail.browse_query, page_size=config.gmail.page_size)

    # A toggle resolves once for the whole walk, not once per page.
    sort_direction = SortDirection(direction) if direction else None

    async def walk() -> None:
        nonlocal sort_direction
        direction_step = PageDirection.FIRST
        for _ in range(pages):
            if not controller.can_fetch(direction_step):
                break
            rows = await controller.fetch_page(direction_step)
            if sort_by:
                rows = controller.sort_by(SortKey(sort_by), sort_direction)
                if sort_direction is None:
                    sort_direction = controller.sort_spec.direction

            first, last, total = controller.cursor.showing_range()
            click.echo(f"Page {controller.cursor.page_number}: showing {first}-{last} of {total} bills")
            for row in rows:
                click.echo(format_row(row))
            click.echo()
            direction_step = PageDirection.NEXT

    asyncio.run(walk())


@bills.command("export")
@click.option("--output-dir", help="Override output directory")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def export_bills(ctx: click.Context, output_dir: str | None, verbose: bool) -> None:
    """
    Export every bill with a recognised amount to CSV.

    Examples:
      billtrack bills export
      billtrack bills export --output-dir ~/Downloads
    """
    config = get_config()
    output_path = Path(output_dir) if output_dir else config.output_dir

    source = open_message_source(config)
    exporter = BulkExporter(
        source,
        config.gmail.export_query,
        page_size=config.gmail.export_page_size,
        max_pages=config.gmail.export_max_pages,
        batch_size=config.gmail.export_batch_size,
        delay=config.gmail.rate_limit_delay,
    )

    if verbose or ctx.obj.get("verbose", False):
        click.echo("Bill Export")
        click.echo(f"Output: {output_path}")
        click.echo(f"Max pages: {config.gmail.export_max_pages} x {config.gmail.export_page_size}")
        click.echo()

    try:
        result = asyncio.run(exporter.run())
    except ExportError as e:
        raise click.ClickException(str(e)) from e

    path = result.write(output_path)
    click.echo(f"✅ Exported {result.row_count} bills to {path}")
