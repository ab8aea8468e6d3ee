"""Command-line interface for the MeterPulse pipeline."""

import logging
import sys

import structlog
import typer
from rich.console import Console
from rich.table import Table

from meterpulse.config import Settings
from meterpulse.ingestion import DocumentSource, InterchangeParser, SourceError
from meterpulse.ingestion.timezones import (
    DISPLAY_TIMEZONES,
    format_timezone_label,
    get_display_timezone,
    to_display_time,
)
from meterpulse.metrics import StatisticsEngine, build_digest
from meterpulse.models import DisplayTimezone, ParseResult
from meterpulse.quality import QualityChecker

app = typer.Typer(
    name="meterpulse",
    help="Parse MyEnergyData interval XML and summarize consumption",
    no_args_is_help=True,
)
console = Console()

STATUS_STYLE = {
    "pass": "[green]PASS[/green]",
    "warn": "[yellow]WARN[/yellow]",
    "fail": "[red]FAIL[/red]",
}


def configure_logging(level: str = "INFO") -> None:
    """Route structured logs to stderr so command output stays clean."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


@app.callback()
def main(
    log_level: str = typer.Option(None, help="Log level (defaults to METERPULSE_LOG_LEVEL)"),
) -> None:
    """Parse MyEnergyData interval XML and summarize consumption."""
    configure_logging(log_level or Settings().log_level)


def _display_timezone(key: str | None, settings: Settings) -> DisplayTimezone:
    key = key or settings.display_timezone
    if key not in DISPLAY_TIMEZONES:
        raise typer.BadParameter(f"Unknown timezone: {key}. Run 'meterpulse timezones' for options.")
    return get_display_timezone(key)


def _read(source: str, settings: Settings) -> str:
    try:
        with DocumentSource(timeout=settings.http_timeout) as documents:
            return documents.read(source)
    except SourceError as e:
        console.print(f"[bold red]{e}[/bold red]")
        raise typer.Exit(code=1) from e


def _load(source: str, country: str | None, settings: Settings) -> ParseResult:
    text = _read(source, settings)
    result = InterchangeParser().parse(text, country or settings.country_hint)
    if result.is_empty:
        console.print("[yellow]No data points found in XML. Please check the file format.[/yellow]")
    return result


@app.command()
def parse(
    source: str = typer.Argument(..., help="Path or http(s) URL of the XML document"),
    country: str = typer.Option(None, help="Country code hint, e.g. AT"),
    timezone: str = typer.Option(None, "--timezone", "-t", help="Display timezone key"),
    limit: int = typer.Option(20, help="Maximum rows to show"),
) -> None:
    """Show the samples extracted from a document."""
    settings = Settings()
    display = _display_timezone(timezone, settings)
    result = _load(source, country, settings)

    console.print(f"Original timezone: [cyan]{result.timezone.name}[/cyan]")
    console.print(f"Samples: {len(result.samples):,}")

    table = Table(title=f"Samples ({display.key})")
    table.add_column("Time", style="cyan")
    table.add_column("Position", justify="right")
    table.add_column("Energy (kWh)", justify="right")
    table.add_column("Power (kW)", justify="right", style="bold")

    for sample in result.samples[:limit]:
        local = to_display_time(sample.timestamp_utc, display.key)
        table.add_row(
            "N/A" if local is None else local.strftime("%Y-%m-%d %H:%M"),
            str(sample.position),
            f"{sample.energy_kwh:.3f}",
            f"{sample.power_kw:.3f}",
        )

    console.print(table)


@app.command()
def stats(
    source: str = typer.Argument(..., help="Path or http(s) URL of the XML document"),
    country: str = typer.Option(None, help="Country code hint, e.g. AT"),
    timezone: str = typer.Option(None, "--timezone", "-t", help="Display timezone key"),
) -> None:
    """Compute and display consumption statistics."""
    settings = Settings()
    display = _display_timezone(timezone, settings)
    result = _load(source, country, settings)

    summary = StatisticsEngine().summarize(result.samples, display.offset_hours)
    if summary is None:
        console.print("No data available")
        return

    load_factor = summary.load_factor_pct
    cv = summary.variability.coefficient_of_variation
    rows = [
        ("total_energy", f"{summary.total_energy_kwh:,.2f}", "kWh"),
        ("peak_power", f"{summary.power.max_kw:,.2f}", "kW"),
        ("min_power", f"{summary.power.min_kw:,.2f}", "kW"),
        ("average_power", f"{summary.power.mean_kw:,.2f}", "kW"),
        ("load_factor", "N/A" if load_factor is None else f"{load_factor:.1f}", "%"),
        ("q1_energy", f"{summary.quartiles.q1:.3f}", "kWh"),
        ("median_energy", f"{summary.quartiles.median:.3f}", "kWh"),
        ("q3_energy", f"{summary.quartiles.q3:.3f}", "kWh"),
        ("std_dev", f"{summary.variability.std_dev:.3f}", "kWh"),
        ("coefficient_of_variation", "N/A" if cv is None else f"{cv:.1f}", "%"),
        ("outliers", f"{summary.outliers.count} ({summary.outliers.percentage:.1f}%)", "samples"),
        ("peak_band_energy", f"{summary.bands.peak_kwh:,.2f}", "kWh"),
        ("off_peak_band_energy", f"{summary.bands.off_peak_kwh:,.2f}", "kWh"),
        ("night_band_energy", f"{summary.bands.night_kwh:,.2f}", "kWh"),
    ]

    table = Table(title=f"Energy Statistics ({format_timezone_label(display.key)})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="bold")
    table.add_column("Unit")
    for name, value, unit in rows:
        table.add_row(name, value, unit)

    console.print(table)
    console.print(f"Peak hours: {', '.join(summary.top_hours)}")
    console.print(f"Low usage hours: {', '.join(summary.bottom_hours)}")
    high, low = summary.highest_day, summary.lowest_day
    if high is not None and low is not None:
        console.print(
            f"Highest day: {high.label} ({high.total_energy_kwh:.2f} kWh), "
            f"lowest: {low.label} ({low.total_energy_kwh:.2f} kWh)"
        )


@app.command()
def digest(
    source: str = typer.Argument(..., help="Path or http(s) URL of the XML document"),
    country: str = typer.Option(None, help="Country code hint, e.g. AT"),
    timezone: str = typer.Option(None, "--timezone", "-t", help="Display timezone key"),
) -> None:
    """Print the text digest handed to the chat assistant."""
    settings = Settings()
    display = _display_timezone(timezone, settings)
    result = _load(source, country, settings)
    typer.echo(build_digest(result.samples, display.offset_hours))


@app.command()
def check(
    source: str = typer.Argument(..., help="Path or http(s) URL of the XML document"),
    country: str = typer.Option(None, help="Country code hint, e.g. AT"),
) -> None:
    """Run structural and data quality checks."""
    settings = Settings()
    text = _read(source, settings)

    checker = QualityChecker()
    results = [checker.check_document(text)]
    samples = InterchangeParser().parse(text, country or settings.country_hint).samples
    results.extend(checker.check_samples(samples))

    table = Table(title="Quality Check Results")
    table.add_column("Check", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Message")

    for result in results:
        table.add_row(
            result.check_name,
            STATUS_STYLE.get(result.status.value, result.status.value),
            result.message,
        )

    console.print(table)

    passed = sum(1 for r in results if r.status.value == "pass")
    console.print(f"\n[bold]{passed}/{len(results)} checks passed[/bold]")
    if results[0].status.value == "fail":
        raise typer.Exit(code=1)


@app.command()
def timezones() -> None:
    """List the display timezones."""
    table = Table(title="Display Timezones")
    table.add_column("Key", style="cyan")
    table.add_column("Label")
    for key in DISPLAY_TIMEZONES:
        table.add_row(key, format_timezone_label(key))
    console.print(table)


if __name__ == "__main__":
    app()
