"""
FloralMind - Main Entry Point

Command-line interface for ingesting datasets and querying their stores.
"""

import sys
import json
import logging
from typing import Any, Dict, List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from floralmind import __version__
from floralmind.config import FloralMindConfig, create_default_config
from floralmind.core.exceptions import FloralMindError, ForbiddenQueryError
from floralmind.core.models import DatasetRecord, NumericSummary
from floralmind.engine import FloralMindEngine

logger = logging.getLogger(__name__)

console = Console()


def _load_config(config_path: Optional[str], data_dir: Optional[str]) -> FloralMindConfig:
    """Build the configuration from an optional YAML file and CLI overrides."""
    config = FloralMindConfig.from_yaml(config_path) if config_path else create_default_config()
    if data_dir:
        config.storage.data_dir = data_dir
    return config


def _fail(message: str):
    console.print(f"[bold red]✗ {message}[/bold red]")
    sys.exit(1)


def _rows_table(columns: List[str], rows: List[Dict[str, Any]], title: Optional[str] = None) -> Table:
    table = Table(title=title, show_header=True)
    for column in columns:
        table.add_column(column, style="cyan")
    for row in rows:
        table.add_row(*["" if row.get(c) is None else str(row.get(c)) for c in columns])
    return table


def _print_record(record: DatasetRecord):
    table = Table(title=f"Dataset: {record.name}", show_header=True)
    table.add_column("Column", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Sample")
    for column in record.columns:
        table.add_row(column.name, column.type.value, column.sample)
    console.print(table)
    console.print(Panel(
        f"Store: [bold green]{record.store_id}[/bold green]\n"
        f"Rows loaded: {record.row_count:,}",
        title="Ingested",
        border_style="green",
    ))


# CLI Commands
@click.group()
@click.version_option(version=__version__, prog_name="FloralMind")
@click.option('--config', '-c', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='YAML configuration file')
@click.option('--data-dir', type=click.Path(file_okay=False), help='Directory holding dataset stores')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, config_path, data_dir, verbose):
    """FloralMind - CSV to SQLite data core"""
    config = _load_config(config_path, data_dir)
    config.verbose = verbose or config.verbose
    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    ctx.obj = FloralMindEngine(config)


@cli.command()
@click.argument('csv_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--name', '-n', help='Dataset name (defaults to the file name)')
@click.pass_obj
def ingest(engine, csv_path, name):
    """
    Ingest a CSV file into a new dataset store.

    Examples:

        floralmind ingest ./sales.csv

        floralmind --data-dir ./stores ingest ./sales.csv -n "Q1 sales"
    """
    try:
        record = engine.ingest_csv(csv_path, label=name)
    except FloralMindError as e:
        _fail(str(e))
    _print_record(record)


@cli.command('import-table')
@click.argument('source_url')
@click.argument('table_name')
@click.pass_obj
def import_table(engine, source_url, table_name):
    """
    Import a table from another database (any SQLAlchemy URL).

    Example:

        floralmind import-table sqlite:///shop.db orders
    """
    try:
        record = engine.import_table(source_url, table_name)
    except FloralMindError as e:
        _fail(str(e))
    _print_record(record)


@cli.command('source-tables')
@click.argument('source_url')
@click.pass_obj
def source_tables(engine, source_url):
    """List tables available for import from a source database."""
    try:
        tables = engine.list_source_tables(source_url)
    except FloralMindError as e:
        _fail(str(e))

    table = Table(title="Source Tables", show_header=True)
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="green", justify="right")
    for entry in tables:
        table.add_row(entry["name"], f"{entry['row_count']:,}")
    console.print(table)


@cli.command()
@click.argument('store_id')
@click.argument('sql')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
@click.pass_obj
def query(engine, store_id, sql, as_json):
    """Run a read-only SELECT against a dataset store."""
    try:
        result = engine.run_query(store_id, sql)
    except ForbiddenQueryError as e:
        _fail(f"Forbidden query: {e}")
    except FloralMindError as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(result.to_dict(), default=str))
        return

    console.print(_rows_table(result.columns, result.rows))
    suffix = " (limit reached)" if result.truncated else ""
    console.print(f"[dim]{result.row_count} rows{suffix}[/dim]")


@cli.command()
@click.argument('store_id')
@click.pass_obj
def profile(engine, store_id):
    """Show per-column statistics for a dataset store."""
    try:
        stats = engine.profile_columns(store_id)
    except FloralMindError as e:
        _fail(str(e))

    table = Table(title=f"📊 Profile: {store_id}", show_header=True)
    table.add_column("Column", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Summary")
    for name, summary in stats.items():
        if isinstance(summary, NumericSummary):
            detail = (
                f"min={summary.min} max={summary.max} avg={summary.avg} "
                f"sum={summary.sum} count={summary.count}"
            )
        else:
            top = ", ".join(f"{v}({c})" for v, c in summary.top_values)
            detail = f"{summary.distinct_count} distinct; top: {top}"
        table.add_row(name, summary.kind, detail)
    console.print(table)


@cli.command()
@click.argument('store_id')
@click.pass_obj
def columns(engine, store_id):
    """List the physical column names of a dataset store."""
    try:
        names = engine.list_physical_columns(store_id)
    except FloralMindError as e:
        _fail(str(e))
    for name in names:
        click.echo(name)


@cli.command()
@click.argument('store_id')
@click.option('--limit', '-l', type=int, default=5, show_default=True, help='Rows to show')
@click.pass_obj
def sample(engine, store_id, limit):
    """Show the first rows of a dataset store."""
    try:
        rows = engine.sample_rows(store_id, limit)
    except FloralMindError as e:
        _fail(str(e))
    column_names = list(rows[0].keys()) if rows else []
    console.print(_rows_table(column_names, rows, title=store_id))


@cli.command()
@click.pass_obj
def stores(engine):
    """List dataset stores in the data directory."""
    for store_id in engine.list_stores():
        click.echo(store_id)


@cli.command()
@click.argument('store_id')
@click.confirmation_option(prompt='Delete this dataset store?')
@click.pass_obj
def drop(engine, store_id):
    """Delete a dataset store."""
    try:
        removed = engine.drop(store_id)
    except FloralMindError as e:
        _fail(str(e))
    if not removed:
        _fail(f"Dataset not found: {store_id}")
    console.print(f"[bold green]✓ Removed {store_id}[/bold green]")


@cli.command()
def version():
    """Show version information."""
    console.print(Panel(
        f"[bold]FloralMind[/bold] v{__version__}\n\n"
        "Turns uploaded tables into queryable SQLite stores.\n\n"
        "Components:\n"
        "  • Type Inference\n"
        "  • Identifier Sanitizer\n"
        "  • Store Builder\n"
        "  • Query Sandbox\n"
        "  • Stats Profiler",
        title="About",
        border_style="blue"
    ))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
