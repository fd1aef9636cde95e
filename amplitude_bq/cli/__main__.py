"""
Amplitude export loader CLI

Usage:
    python -m amplitude_bq.cli run
    python -m amplitude_bq.cli run --days 7 --dry-run
    python -m amplitude_bq.cli dump events.csv --days 1
    python -m amplitude_bq.cli schema
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from amplitude_bq.config import Config
from amplitude_bq.errors import ExportPipelineError
from amplitude_bq.etl.fetcher import DateRange, ExportClient
from amplitude_bq.etl.pipeline import ExportPipeline, PipelineResult
from amplitude_bq.schemas.table_schema import get_events_schema
from amplitude_bq.services.bigquery_service import TableManager

console = Console(stderr=True)
logger = logging.getLogger(__name__)


def _load_config(days: Optional[int], require_warehouse: bool = True) -> Config:
    config = Config()
    if days is not None:
        config.days = days
    return config.require(require_warehouse=require_warehouse)


def _fail(error: ExportPipelineError):
    logger.error(f"{error.stage} failed: {error}")
    sys.exit(1)


def _schema_table() -> Table:
    table = Table(title="Destination Schema")
    table.add_column("Column", style="cyan")
    table.add_column("Type")
    table.add_column("Mode")
    for field in get_events_schema():
        table.add_row(field.name, field.field_type, field.mode)
    return table


def _print_result(result: PipelineResult):
    status_color = "green" if result.status == "COMPLETED" else "red"
    duration = (result.completed_at - result.started_at).total_seconds() if result.completed_at else 0.0
    console.print(Panel.fit(
        f"[bold {status_color}]Status: {result.status}[/bold {status_color}]\n"
        f"Pipeline ID: {result.pipeline_id}\n"
        f"Duration: {duration:.1f}s\n\n"
        f"[bold]Metrics:[/bold]\n"
        f"  Days Processed: {result.days_processed}\n"
        f"  Shards Processed: {result.shards_processed}\n"
        f"  Events Decoded: {result.events_decoded:,}\n"
        f"  Events Skipped: {result.events_skipped:,}\n"
        f"  Rows Written: {result.rows_written:,}\n"
        f"  Rows Loaded: {result.rows_loaded:,}",
        title="Pipeline Results"
    ))


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def cli(verbose: bool):
    """Load the Amplitude export into a BigQuery table."""
    load_dotenv()
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@cli.command()
@click.option('--days', default=None, type=int, help='Days to export (default: DAYS or 40)')
@click.option('--dry-run', is_flag=True, help='Print the plan without touching BigQuery')
def run(days: Optional[int], dry_run: bool):
    """Replace the destination table with the exported events."""
    try:
        config = _load_config(days)
    except ExportPipelineError as e:
        _fail(e)

    date_range = DateRange.last_days(config.days)

    if dry_run:
        console.print(Panel.fit(
            f"[bold yellow][DRY RUN][/bold yellow]\n"
            f"Table: {config.table_fqn}\n"
            f"Days: {len(date_range)} "
            f"({date_range.start.date().isoformat()} .. {date_range.end.date().isoformat()})\n"
            f"Export URL: {config.export_url}",
            title="Run Plan"
        ))
        console.print(_schema_table())
        return

    try:
        table = TableManager(config.table_fqn, location=config.bq_location)
    except ExportPipelineError as e:
        _fail(e)

    with ExportClient(
        config.api_key,
        config.secret_key,
        base_url=config.export_url,
        timeout=config.export_timeout,
    ) as fetcher:
        pipeline = ExportPipeline(
            fetcher,
            date_range,
            table=table,
            pipe_max_chunks=config.pipe_max_chunks,
        )
        try:
            result = pipeline.run()
        except ExportPipelineError as e:
            _fail(e)

    logger.info("Done.")
    _print_result(result)


@cli.command()
@click.argument('output', type=click.Path(dir_okay=False, writable=True))
@click.option('--days', default=None, type=int, help='Days to export (default: DAYS or 40)')
def dump(output: str, days: Optional[int]):
    """Write the projected CSV to a local file instead of BigQuery."""
    try:
        config = _load_config(days, require_warehouse=False)
    except ExportPipelineError as e:
        _fail(e)

    date_range = DateRange.last_days(config.days)

    with ExportClient(
        config.api_key,
        config.secret_key,
        base_url=config.export_url,
        timeout=config.export_timeout,
    ) as fetcher:
        pipeline = ExportPipeline(fetcher, date_range)
        try:
            with open(output, "wb") as sink:
                result = pipeline.write_to(sink)
        except ExportPipelineError as e:
            _fail(e)

    console.print(f"[green]Wrote {result.rows_written:,} rows to {output}[/green]")


@cli.command()
def schema():
    """Show the destination table schema."""
    console.print(_schema_table())


if __name__ == "__main__":
    cli()
