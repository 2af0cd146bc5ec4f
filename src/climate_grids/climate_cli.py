#!/usr/bin/env python
"""
Climate Grids CLI

Downloads yearly climate grids, averages them per county and renders a
faceted choropleth map.

Commands:
- download: fetch and decompress yearly grids
- county-stats: compute the classified county-year table
- render-map: draw the faceted map from a saved table
- run: the whole pipeline
- info: show the effective configuration
"""

import logging
from pathlib import Path
from typing import Optional
import warnings

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from typing_extensions import Annotated

# Suppress warnings for cleaner output
warnings.filterwarnings('ignore', category=RuntimeWarning)

from climate_grids.climate_config import ClimateGridConfig, parse_years
from climate_grids.county_processor import CountyGridProcessor
from climate_grids.download import GridDownloader
from climate_grids.exceptions import ClimateGridsError
from climate_grids.pipeline import run_pipeline
from climate_grids.raster import stack_yearly_grids
from climate_grids.transform import attach_geometry, summarize_buckets
from climate_grids.utils.data_utils import bucket_table
from climate_grids.utils.logging_utils import setup_logging
from climate_grids.utils.output_utils import load_table
from climate_grids.visualization import render_faceted_map

# Initialize Rich console and Typer app
console = Console(highlight=False)
app = typer.Typer(
    name="climate-grids",
    help="County averages and maps from yearly climate grids",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def load_settings(
    config_file: Optional[Path] = None,
    years: Optional[str] = None,
    shapefile: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    method: Optional[str] = None,
) -> ClimateGridConfig:
    """Build the configuration from a JSON file or the environment, then apply CLI overrides."""
    if config_file is not None:
        if not config_file.exists():
            console.print(f"[red]❌ Config file not found: {config_file}[/red]")
            raise typer.Exit(1)
        settings = ClimateGridConfig.load_config(config_file)
    else:
        settings = ClimateGridConfig.from_env()

    data = settings.model_dump()
    if years:
        try:
            data["download"]["years"] = parse_years(years)
        except ValueError as e:
            console.print(f"[red]❌ {e}[/red]")
            raise typer.Exit(1)
    if shapefile is not None:
        data["counties"]["shapefile"] = shapefile
    if output_dir is not None:
        data["output"]["base_output_dir"] = output_dir
    if method is not None:
        data["zonal"]["method"] = method
    try:
        return ClimateGridConfig(**data)
    except ValidationError as e:
        console.print(f"[red]❌ Invalid configuration: {e}[/red]")
        raise typer.Exit(1)


def print_banner():
    """Display the banner."""
    banner = Panel.fit(
        "[bold blue]🗺️ Climate Grids[/bold blue]\n"
        "[dim]Yearly grids → county means → faceted choropleth[/dim]",
        border_style="blue",
    )
    console.print(banner)


def print_bucket_summary(table) -> None:
    """Show counties per bucket and year."""
    summary = summarize_buckets(table)
    rich_table = Table(title="📊 Counties per bucket")
    rich_table.add_column("Year", style="cyan")
    for label in summary.columns:
        rich_table.add_column(str(label), style="magenta", justify="right")
    for year, row in summary.iterrows():
        rich_table.add_row(str(year), *[str(int(v)) for v in row.values])
    console.print(rich_table)


ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="JSON configuration file")]
YearsOption = Annotated[Optional[str], typer.Option("--years", "-y", help="Years, e.g. '2018-2023' or '2019,2021'")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")]


@app.command("download")
def download(
    years: YearsOption = None,
    config_file: ConfigOption = None,
    overwrite: Annotated[Optional[bool], typer.Option("--overwrite/--no-overwrite", help="Re-download existing files")] = None,
    verbose: VerboseOption = False,
):
    """
    ⬇️ Download and decompress yearly grids.
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO, console=console)
    settings = load_settings(config_file, years=years)
    download_config = settings.download
    if overwrite is not None:
        download_config = download_config.model_copy(update={"overwrite": overwrite})

    try:
        with GridDownloader(download_config) as downloader:
            paths = downloader.fetch_all()
    except ClimateGridsError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="📁 Grid files")
    table.add_column("Year", style="cyan")
    table.add_column("File", style="white")
    for year, path in paths.items():
        table.add_row(str(year), str(path))
    console.print(table)


@app.command("county-stats")
def county_stats(
    years: YearsOption = None,
    shapefile: Annotated[Optional[Path], typer.Option("--shapefile", "-s", help="County shapefile")] = None,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Output CSV path")] = None,
    method: Annotated[Optional[str], typer.Option("--method", "-m", help="Zonal method: clip or mask")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    📊 Compute the classified county-year table from grids on disk.
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO, console=console)
    settings = load_settings(config_file, years=years, shapefile=shapefile, method=method)

    try:
        with GridDownloader(settings.download) as downloader:
            grid_paths = downloader.existing_grids()

        stack = stack_yearly_grids(grid_paths, source_crs=settings.grid.source_crs, nodata=settings.grid.nodata)

        with CountyGridProcessor(settings) as processor:
            counties = processor.prepare_shapefile()
            table = processor.process_stack(stack, counties)
            saved = processor.save_results(table, output_path=output)
    except (ClimateGridsError, FileNotFoundError, KeyError) as e:
        console.print(f"[red]❌ Error during processing: {e}[/red]")
        raise typer.Exit(1)

    print_bucket_summary(table)
    console.print(f"[green]✅ Saved {len(table)} records to {saved}[/green]")


@app.command("render-map")
def render_map(
    table_path: Annotated[Path, typer.Argument(help="County-year CSV from county-stats")],
    shapefile: Annotated[Optional[Path], typer.Option("--shapefile", "-s", help="County shapefile")] = None,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Output image path")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    🗺️ Render the faceted map from a saved county-year table.
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO, console=console)
    settings = load_settings(config_file, shapefile=shapefile)

    if not table_path.exists():
        console.print(f"[red]❌ Table not found: {table_path}[/red]")
        raise typer.Exit(1)

    try:
        with CountyGridProcessor(settings) as processor:
            counties = processor.prepare_shapefile()
        table = attach_geometry(load_table(table_path), counties, settings.classification)
    except (FileNotFoundError, KeyError) as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    saved = render_faceted_map(table, output or settings.output.map_path, settings.map)
    console.print(f"[green]✅ Map written to {saved}[/green]")


@app.command("run")
def run(
    years: YearsOption = None,
    shapefile: Annotated[Optional[Path], typer.Option("--shapefile", "-s", help="County shapefile")] = None,
    output_dir: Annotated[Optional[Path], typer.Option("--output-dir", "-o", help="Output directory")] = None,
    method: Annotated[Optional[str], typer.Option("--method", "-m", help="Zonal method: clip or mask")] = None,
    skip_download: Annotated[bool, typer.Option("--skip-download", help="Use grids already on disk")] = False,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    🚀 Run the whole pipeline: download, county means, classification and map.
    """
    setup_logging(logging.DEBUG if verbose else logging.INFO, console=console)
    print_banner()
    settings = load_settings(config_file, years=years, shapefile=shapefile, output_dir=output_dir, method=method)

    try:
        result = run_pipeline(settings, skip_download=skip_download)
    except (ClimateGridsError, FileNotFoundError, KeyError) as e:
        console.print(f"[red]❌ Pipeline failed: {e}[/red]")
        raise typer.Exit(1)

    print_bucket_summary(result.table)

    table = Table(title="📊 Processing Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Counties", str(result.table['ARS'].nunique()))
    table.add_row("Years", str(result.table['year'].nunique()))
    table.add_row("Records", str(len(result.table)))
    table.add_row("Table", str(result.table_path))
    table.add_row("Map", str(result.map_path))
    console.print(table)
    console.print("[green]✅ Pipeline completed successfully![/green]")


@app.command("info")
def info(config_file: ConfigOption = None):
    """
    ℹ️ Show the effective configuration and bucket definitions.
    """
    settings = load_settings(config_file)

    table = Table(title="⚙️ Configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("URL template", settings.download.url_template)
    table.add_row("Years", ", ".join(str(y) for y in settings.download.years))
    table.add_row("Download dir", str(settings.download.download_dir))
    table.add_row("Shapefile", str(settings.counties.shapefile))
    table.add_row("Source CRS", settings.grid.source_crs)
    table.add_row("Target CRS", settings.grid.target_crs)
    table.add_row("Zonal method", settings.zonal.method)
    table.add_row("Map size", f"{settings.map.width_px}x{settings.map.height_px} px @ {settings.map.dpi} dpi")
    table.add_row("Output dir", str(settings.output.base_output_dir))
    console.print(table)

    buckets = bucket_table(settings.classification.breaks, settings.classification.labels)
    bucket_view = Table(title="🎨 Buckets")
    bucket_view.add_column("Bucket", style="cyan")
    bucket_view.add_column("Lower (exclusive)", justify="right")
    bucket_view.add_column("Upper (inclusive)", justify="right")
    for _, row in buckets.iterrows():
        bucket_view.add_row(row["bucket"], str(row["lower_exclusive"]), str(row["upper_inclusive"]))
    console.print(bucket_view)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
