"""
CLI entry point for the event-study application.
"""
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from event_study.config import Config, load_config
from event_study.data import (
    CsvEventProvider,
    EventFilter,
    SnapshotPriceProvider,
    fetch_and_snapshot,
    import_special_days,
    list_event_categories,
    list_event_names,
)
from event_study.engine import analyze_events
from event_study.errors import EventStudyError
from event_study.metrics import compare_event_days
from event_study.reporting import generate_all_reports

# Console is created once and passed down.
# Log to stderr to separate from potential data output to stdout.
app = typer.Typer(pretty_exceptions_show_locals=False, help="Event-based seasonality studies for stocks and indices.")
console = Console(stderr=True)


def _load_config_or_exit(config_path: Path) -> Config:
    """Helper to load config and exit on failure."""
    try:
        return load_config(config_path)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(code=1)


@app.command()
def run(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
):
    """Execute the event study described by the given configuration."""
    config = _load_config_or_exit(config_path)
    study = config.study

    try:
        console.rule("[bold]1. Loading Data[/bold]")
        price_provider = SnapshotPriceProvider(config.data)
        event_provider = CsvEventProvider(config.data.events_file)
        console.print(
            f"Symbol [cyan]{study.symbol}[/cyan], events "
            f"{study.event_names or study.event_categories}, {study.start_date} to {study.end_date}"
        )

        console.rule("[bold]2. Running Event Study[/bold]")
        result = analyze_events(
            study,
            price_provider,
            event_provider,
            buffer_days=config.data.buffer_days,
            include_distribution=config.reporting.include_distribution,
        )
        summary = result.event_summary
        console.print(
            f"{summary.valid_events} valid of {summary.total_events_found} events "
            f"({summary.excluded_events} excluded)."
        )

        console.rule("[bold]3. Generating Reports[/bold]")
        run_dir = Path(config.run.output_dir)
        run_dir.mkdir(parents=True, exist_ok=True)
        console.print(f"Run artifacts will be saved to: [cyan]{run_dir}[/cyan]")
        generate_all_reports(config, result, run_dir, console)

    except (EventStudyError, ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Event study failed:[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print("[bold green]Run command finished.[/bold green]")


@app.command(name="refresh-data")
def refresh_data(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
):
    """
    Refresh the price snapshot of the study symbol from yfinance.
    """
    config = _load_config_or_exit(config_path)
    symbol = config.study.symbol
    if not symbol:
        console.print("[yellow]Warning: No symbol to refresh.[/yellow]")
        raise typer.Exit()

    console.print(f"Starting data refresh for {symbol}...")
    failed_symbols = fetch_and_snapshot([symbol], config)

    if failed_symbols:
        console.print(f"[bold yellow]Warning:[/bold yellow] Failed to fetch data for {len(failed_symbols)} symbols:")
        for failed in sorted(failed_symbols):
            console.print(f" - {failed}")
        raise typer.Exit(code=1)

    console.print("[bold green]Data refresh completed.[/bold green]")


@app.command(name="list-events")
def list_events(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
    category: Optional[str] = typer.Option(None, "--category", help="Only list events of this category."),
):
    """List the available events and how often each occurred."""
    config = _load_config_or_exit(config_path)
    try:
        names = list_event_names(config.data.events_file, category=category, country=config.study.country)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Events")
    for column in ("Name", "Category", "Country", "Occurrences"):
        table.add_column(column)
    for row in names.itertuples(index=False):
        table.add_row(row.name, row.category, row.country, str(row.occurrences))
    console.print(table)


@app.command(name="list-categories")
def list_categories(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
):
    """List the event categories and how many occurrences each holds."""
    config = _load_config_or_exit(config_path)
    try:
        categories = list_event_categories(config.data.events_file)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)

    table = Table(title="Event Categories")
    for column in ("Category", "Country", "Occurrences"):
        table.add_column(column)
    for row in categories.to_dict("records"):
        table.add_row(row["category"], row["country"], str(row["count"]))
    console.print(table)


@app.command()
def compare(
    config_path: Path = typer.Option(
        ..., "--config", "-c", help="Path to the YAML configuration file.", exists=True
    ),
):
    """Compare the daily returns of event days with all other days."""
    config = _load_config_or_exit(config_path)
    study = config.study
    try:
        sessions = SnapshotPriceProvider(config.data).get_trading_sessions(
            study.symbol, study.start_date, study.end_date
        )
        events = CsvEventProvider(config.data.events_file).get_event_occurrences(
            EventFilter.for_study(study)
        )
    except (EventStudyError, ValueError, FileNotFoundError) as e:
        console.print(f"[bold red]Comparison failed:[/bold red] {e}")
        raise typer.Exit(code=1)

    comparison = compare_event_days(sessions, [event.date for event in events])

    table = Table(title=f"Event Days vs Other Days: {study.symbol}")
    for column in ("Days", "Count", "Avg Return [%]", "Std Dev [%]", "Win Rate [%]"):
        table.add_column(column)
    for label, key in (("Event days", "event_days"), ("Other days", "non_event_days")):
        day_stats = comparison[key]
        table.add_row(
            label,
            str(day_stats["count"]),
            f"{day_stats['avg_return']:.4f}",
            f"{day_stats['std_dev']:.4f}",
            f"{day_stats['win_rate']:.2f}",
        )
    console.print(table)

    diff = comparison["comparison"]
    console.print(f"Return difference: {diff['return_difference']:.4f}%")
    console.print(f"Win rate difference: {diff['win_rate_difference']:.2f}%")


@app.command(name="import-events")
def import_events(
    wide_csv: Path = typer.Argument(..., help="Special-days sheet, one column per event.", exists=True),
    out_csv: Path = typer.Argument(..., help="Destination events CSV."),
):
    """Convert a wide special-days sheet into the events CSV format."""
    count = import_special_days(wide_csv, out_csv)
    console.print(f"[bold green]Imported {count} event occurrences into {out_csv}.[/bold green]")


if __name__ == "__main__":
    app()
