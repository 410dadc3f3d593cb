#!/usr/bin/env python3
"""
Country Clustering Script.

This script loads the combined urbanization / quality-of-life dataset,
clusters countries into stable and volatile urbanizers and optionally
exports the resulting country profiles as CSV.

Usage:
    python scripts/cluster_countries.py run [OPTIONS]

Options:
    --input     CSV file to load (defaults to URBANIZERS_DATA_PATH or data/)
    --output    Write country profiles to this CSV file
"""

import sys
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from loguru import logger
from rich.console import Console
from rich.table import Table

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from archetypes.clustering import (
    cluster_countries,
    export_profiles,
    generate_cluster_profiles,
    profiles_to_frame,
)
from archetypes.indicators import INDICATORS
from archetypes.profiles import PROFILE_FIELDS, STABLE_LABEL
from ingestion.csv_loader import load_records

# Initialize
load_dotenv()
console = Console()
app = typer.Typer(help="Cluster countries into stable and volatile urbanizers")


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")
    logger.add(
        "logs/clustering_{time}.log",
        rotation="10 MB",
        retention="7 days",
        level="INFO",
    )


def _load_profiles(input_path: Optional[Path]):
    try:
        records = load_records(input_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    return cluster_countries(records)


@app.command()
def run(
    input_path: Optional[Path] = typer.Option(None, "--input", "-i", help="CSV file to load"),
    output_path: Optional[Path] = typer.Option(None, "--output", "-o", help="Export profiles to CSV"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """
    Cluster countries and print a summary per archetype.

    Countries are averaged across all years, standardized and split into
    two clusters. The cluster with both the lower GPI overall score and
    the lower Gini coefficient is labeled Stable Urbanizers.
    """
    _configure_logging(verbose)
    console.print("\n[bold blue]🌍 Urbanizer Archetypes[/bold blue]\n")

    profiles = _load_profiles(input_path)
    if not profiles:
        console.print("[yellow]⚠️ No countries could be clustered.[/yellow]")
        raise typer.Exit(1)

    df = profiles_to_frame(profiles)
    summary = generate_cluster_profiles(df)

    summary_table = Table(show_header=True, header_style="bold green")
    summary_table.add_column("Archetype", style="cyan", no_wrap=True)
    summary_table.add_column("Countries", justify="right")
    summary_table.add_column("GPI Score", justify="right")
    summary_table.add_column("Gini", justify="right")
    summary_table.add_column("Urban Pop %", justify="right")

    for row in summary.iter_rows(named=True):
        summary_table.add_row(
            row["cluster_label"],
            f"{row['num_countries']:,}",
            f"{row['avg_overall_score']:.3f}",
            f"{row['avg_gini']:.2f}",
            f"{row['avg_urban_pop_perc']:.1f}",
        )

    console.print(summary_table)

    stable = [p.country for p in profiles.values() if p.cluster_label == STABLE_LABEL]
    console.print(f"\n[bold]{STABLE_LABEL}:[/bold] {', '.join(stable) or '-'}")

    if output_path:
        saved = export_profiles(df, output_path)
        console.print(f"\n[green]✓[/green] Saved profiles to: [bold]{saved}[/bold]")


@app.command()
def profile(
    country: str = typer.Argument(..., help="Country name as it appears in the dataset"),
    input_path: Optional[Path] = typer.Option(None, "--input", "-i", help="CSV file to load"),
) -> None:
    """Show the averaged indicators and archetype of one country."""
    _configure_logging(False)
    profiles = _load_profiles(input_path)

    if country not in profiles:
        console.print(f"[red]❌ Country not found: {country}[/red]")
        raise typer.Exit(1)

    selected = profiles[country]
    console.print(f"\n[bold]{selected.country}[/bold] - [cyan]{selected.cluster_label}[/cyan]\n")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Indicator", style="cyan", no_wrap=True)
    table.add_column("Average", justify="right")

    for name in PROFILE_FIELDS:
        table.add_row(name, f"{getattr(selected, name):,.3f}")

    console.print(table)


@app.command()
def indicators() -> None:
    """List the indicators used as clustering features."""
    console.print(f"\n[bold]Clustering Indicators ({len(INDICATORS)}):[/bold]\n")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Indicator", style="cyan", no_wrap=True)
    table.add_column("Source Column")
    table.add_column("Description")

    for i, indicator in enumerate(INDICATORS, 1):
        table.add_row(
            str(i),
            indicator.name,
            ", ".join(indicator.headers),
            indicator.description or "-",
        )

    console.print(table)


def main() -> None:
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
