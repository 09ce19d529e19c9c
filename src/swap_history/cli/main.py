"""CLI for swap history."""

import json
import logging
import threading
from datetime import tzinfo
from enum import StrEnum
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.traceback import install

from swap_history.core import (
    AggregatedHistory,
    FileAccountRefresher,
    HistoryAggregator,
    OperationStore,
    PendingDetector,
    StatusPoller,
    SwapHistoryError,
    aggregate,
)
from swap_history.data import (
    get_day_boundary_tz,
    get_export_settings,
    get_max_workers,
    get_pending_statuses,
    get_poll_interval,
    get_terminal_statuses,
    load_accounts,
    parse_timezone,
)
from swap_history.export import CsvExporter, default_export_filename, export_history

# Install rich traceback handler
install(show_locals=False)

app = typer.Typer(
    name="swap-history",
    help="Aggregate swap operations across accounts, poll pending statuses, and export to CSV",
    add_completion=False,
)

console = Console()


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _configure_logging(debug: bool) -> None:
    """Route package logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=debug)],
        force=True,
    )


def _resolve_tz(tz: str | None) -> tzinfo | None:
    try:
        return parse_timezone(tz) if tz else get_day_boundary_tz()
    except SwapHistoryError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e


def _load_store(accounts_file: Path) -> OperationStore:
    try:
        accounts = load_accounts(accounts_file)
    except SwapHistoryError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    return OperationStore(accounts)


@app.command()
def history(
    accounts_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML or JSON accounts file"),
    format: OutputFormat = typer.Option(OutputFormat.TABLE, "--format", "-f", help="Output format"),
    tz: str | None = typer.Option(None, "--tz", help="Day boundary timezone (utc, local, or IANA name)"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Show swap history grouped by day.

    Examples:

        swap-history history accounts.yaml

        swap-history history accounts.yaml --format json --tz Europe/Paris
    """
    _configure_logging(debug)
    store = _load_store(accounts_file)
    aggregated = aggregate(store.get(), _resolve_tz(tz))

    if format == OutputFormat.JSON:
        _output_json(aggregated)
    else:
        _output_table(aggregated)


@app.command()
def export(
    accounts_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML or JSON accounts file"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Destination CSV file"),
    delimiter: str | None = typer.Option(None, "--delimiter", help="Field delimiter"),
    tz: str | None = typer.Option(None, "--tz", help="Day boundary timezone (utc, local, or IANA name)"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """Export swap history to a CSV file."""
    _configure_logging(debug)
    export_settings = get_export_settings()
    day_tz = _resolve_tz(tz)

    store = _load_store(accounts_file)
    aggregated = aggregate(store.get(), day_tz)
    destination = output or Path(default_export_filename(prefix=export_settings["filename_prefix"]))

    try:
        exporter = CsvExporter(delimiter=delimiter or export_settings["delimiter"], tz=day_tz)
        written = export_history(aggregated, destination, exporter)
    except (SwapHistoryError, ValueError) as e:
        console.print(f"[bold red]Export failed:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]✓ Exported {aggregated.operation_count} swaps to {written}[/green]")


@app.command()
def watch(
    accounts_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML or JSON accounts file"),
    interval: float | None = typer.Option(None, "--interval", "-i", help="Seconds between status polls"),
    tz: str | None = typer.Option(None, "--tz", help="Day boundary timezone (utc, local, or IANA name)"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Watch swap history, re-reading the accounts file while swaps are pending.

    Press Ctrl+C to stop.
    """
    _configure_logging(debug)
    store = _load_store(accounts_file)
    aggregator = HistoryAggregator(store, tz=_resolve_tz(tz))
    aggregator.subscribe(_output_table)

    poller = StatusPoller(
        store,
        aggregator,
        FileAccountRefresher(accounts_file),
        interval=interval or get_poll_interval(),
        max_workers=get_max_workers(),
    )

    with poller:
        console.print(f"[dim]Polling every {poller.interval:g}s while swaps are pending. Ctrl+C to stop.[/dim]")
        try:
            _wait_forever()
        except KeyboardInterrupt:
            console.print("\n[dim]Stopped[/dim]")


def _wait_forever() -> None:
    """Block the main thread until interrupted."""
    threading.Event().wait()


@app.command()
def statuses() -> None:
    """List the swap statuses treated as pending and terminal."""
    table = Table(title="Swap Statuses", show_header=True, header_style="bold magenta")
    table.add_column("Status", style="cyan")
    table.add_column("Kind", style="green")

    for status in sorted(get_pending_statuses()):
        table.add_row(status, "pending")
    for status in sorted(get_terminal_statuses()):
        table.add_row(status, "terminal")

    console.print(table)


def _output_table(aggregated: AggregatedHistory) -> None:
    """Output history as one rich table per day."""
    if aggregated.is_empty():
        console.print("\n[yellow]No swaps found[/yellow]")
        return

    pending = PendingDetector(get_pending_statuses())
    for section in aggregated.sections:
        table = Table(title=section.day.strftime("%A, %d %B %Y"), show_header=True, header_style="bold magenta")
        table.add_column("Time", style="dim")
        table.add_column("Swap ID", style="cyan")
        table.add_column("Status")
        table.add_column("From", justify="right")
        table.add_column("To", justify="right")
        table.add_column("Account", style="blue")

        for operation in section.data:
            status_style = "yellow" if pending.is_pending(operation.status) else "green"
            table.add_row(
                operation.timestamp.strftime("%H:%M:%S"),
                operation.swap_id,
                f"[{status_style}]{operation.status}[/{status_style}]",
                f"{operation.from_amount:,f} {operation.from_currency}",
                f"{operation.to_amount:,f} {operation.to_currency}",
                operation.account_id,
            )

        console.print(table)

    console.print(f"[bold]Total swaps:[/bold] {aggregated.operation_count}\n")


def _output_json(aggregated: AggregatedHistory) -> None:
    """Output history as JSON."""
    data = aggregated.model_dump(mode="json")
    console.print(json.dumps(data, indent=2), markup=False, highlight=False)


if __name__ == "__main__":
    app()
