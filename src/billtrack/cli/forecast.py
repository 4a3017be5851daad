#!/usr/bin/env python3
"""
Forecast CLI - Transaction Sync and Spending Forecasts

Command-line interface for the sync-and-forecast pipeline.
"""

import asyncio
import json

import click

from ..core.config import Config, get_config
from ..core.errors import BillTrackError, EntityNotFoundError, UnauthorizedError
from ..forecast import ForecastEngine, JsonTransactionStore, LocalWarehouse


def build_engine(config: Config) -> ForecastEngine:
    """Wire the JSON transaction store and local warehouse from configuration."""
    return ForecastEngine(
        JsonTransactionStore(config.forecast.transactions_file),
        LocalWarehouse(config.forecast.warehouse_dir),
        model_name=config.forecast.model_name,
        months_back=config.forecast.months_back,
        months_ahead=config.forecast.months_ahead,
    )


@click.group()
def forecast() -> None:
    """Expense forecasting commands."""
    pass


@forecast.command("run")
@click.argument("identity")
@click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON")
@click.pass_context
def run_forecast(ctx: click.Context, identity: str, as_json: bool) -> None:
    """
    Sync new transactions for IDENTITY, retrain and print predictions.

    Examples:
      billtrack forecast run user_2abc
      billtrack forecast run user_2abc --json
    """
    config = get_config()
    engine = build_engine(config)

    try:
        result = asyncio.run(engine.run(identity))
    except UnauthorizedError as e:
        raise click.ClickException(f"Unauthorized: {e}") from e
    except EntityNotFoundError as e:
        raise click.ClickException(str(e)) from e
    except BillTrackError as e:
        raise click.ClickException(f"Forecast failed: {e}") from e

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if ctx.obj.get("verbose", False):
        click.echo(f"Inserted {result.inserted_rows} new transactions")
        click.echo(f"History: {len(result.transactions)} expense rows")
        click.echo()

    if not result.predictions:
        click.echo("No positive predictions for the forecast window.")
        return

    click.echo("Category Forecast")
    for row in result.predictions:
        click.echo(f"  {row.year}-{row.month:02d}  {row.category:<20} {row.predicted_value:>12,.2f}")
