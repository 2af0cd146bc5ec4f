"""Core pipeline: yearly grids -> county means -> classified map.

Provides a single ``run_pipeline()`` function that runs the whole batch
job without interactive prompts.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence

import geopandas as gpd
import pandas as pd
from pydantic import BaseModel, Field, model_validator
from rich.console import Console

from climate_grids.climate_config import ClimateGridConfig, get_config
from climate_grids.county_processor import CountyGridProcessor
from climate_grids.download import GridDownloader
from climate_grids.raster import stack_yearly_grids
from climate_grids.visualization import render_faceted_map

console = Console()


class PipelineConfig(BaseModel):
    """Validated run options layered over ``ClimateGridConfig``."""

    config: ClimateGridConfig = Field(default_factory=get_config)
    years: Optional[List[int]] = Field(default=None, description="Override configured years")
    shapefile: Optional[Path] = Field(default=None, description="Override county shapefile")
    output_dir: Optional[Path] = Field(default=None, description="Override output directory")
    skip_download: bool = Field(default=False, description="Use grids already on disk")
    render: bool = Field(default=True, description="Render the faceted map")

    @model_validator(mode="after")
    def apply_overrides(self) -> "PipelineConfig":
        if self.years is None and self.shapefile is None and self.output_dir is None:
            return self

        # Rebuild so overridden values go through validation
        merged = self.config.model_dump()
        if self.years is not None:
            merged["download"]["years"] = self.years
        if self.shapefile is not None:
            merged["counties"]["shapefile"] = self.shapefile
        if self.output_dir is not None:
            merged["output"]["base_output_dir"] = self.output_dir
        self.config = ClimateGridConfig(**merged)
        return self


class PipelineResult(BaseModel):
    """Result returned by ``run_pipeline``."""

    model_config = {"arbitrary_types_allowed": True}

    table: gpd.GeoDataFrame = Field(description="Classified county-year table with geometry.")
    wide: pd.DataFrame = Field(description="County means, one column per year.")
    grid_paths: Dict[int, Path] = Field(default_factory=dict)
    map_path: Optional[Path] = Field(default=None, description="Rendered map image.")
    table_path: Optional[Path] = Field(default=None, description="Saved CSV table.")


def run_pipeline(
    config: Optional[ClimateGridConfig] = None,
    *,
    years: Optional[Sequence[int]] = None,
    shapefile: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    skip_download: bool = False,
    render: bool = True,
) -> PipelineResult:
    """Run the full pipeline.

    Parameters
    ----------
    config : ClimateGridConfig, optional
        Base configuration; defaults to the global configuration.
    years : sequence of int, optional
        Years to process instead of the configured ones.
    shapefile : Path, optional
        County shapefile instead of the configured one.
    output_dir : Path, optional
        Output directory instead of the configured one.
    skip_download : bool
        Use decompressed grids already in the download directory.
    render : bool
        Render the faceted map.

    Returns
    -------
    PipelineResult
        Long table, wide means and output paths.
    """
    pipeline_config = PipelineConfig(
        config=config or get_config(),
        years=list(years) if years is not None else None,
        shapefile=shapefile,
        output_dir=output_dir,
        skip_download=skip_download,
        render=render,
    )
    settings = pipeline_config.config
    run_years = settings.download.years
    settings.setup_directories()

    console.print(f"[bold]Pipeline: years={run_years[0]}-{run_years[-1]} ({len(run_years)}), "
                  f"counties={settings.counties.shapefile}, "
                  f"crs={settings.grid.target_crs}[/bold]")

    # ------------------------------------------------------------------
    # Stage 1: Download & decompress
    # ------------------------------------------------------------------
    with GridDownloader(settings.download) as downloader:
        if pipeline_config.skip_download:
            console.print("[bold cyan]Stage 1: Using grids on disk[/bold cyan]")
            grid_paths = downloader.existing_grids(run_years)
        else:
            console.print("[bold cyan]Stage 1: Download grids[/bold cyan]")
            grid_paths = downloader.fetch_all(run_years)

    # ------------------------------------------------------------------
    # Stage 2: Raster stack
    # ------------------------------------------------------------------
    console.print("[bold cyan]Stage 2: Stack yearly grids[/bold cyan]")
    stack = stack_yearly_grids(
        grid_paths,
        source_crs=settings.grid.source_crs,
        nodata=settings.grid.nodata,
    )

    # ------------------------------------------------------------------
    # Stage 3: Counties & zonal means
    # ------------------------------------------------------------------
    console.print("[bold cyan]Stage 3: County means[/bold cyan]")
    with CountyGridProcessor(settings) as processor:
        counties = processor.prepare_shapefile()
        console.print(f"[green]Loaded shapefile: {len(counties)} counties[/green]")

        wide = processor.compute_means(stack, counties)

        # --------------------------------------------------------------
        # Stage 4: Reshape & classify
        # --------------------------------------------------------------
        console.print("[bold cyan]Stage 4: Reshape & classify[/bold cyan]")
        table = processor.build_table(wide, counties)

        table_path = None
        if settings.output.save_table:
            table_path = processor.save_results(
                table,
                metadata={"grid_files": {str(y): str(p) for y, p in grid_paths.items()}},
            )
            console.print(f"[green]Saved: {table_path} ({len(table)} rows)[/green]")

    # ------------------------------------------------------------------
    # Stage 5: Render
    # ------------------------------------------------------------------
    map_path = None
    if pipeline_config.render:
        console.print("[bold cyan]Stage 5: Render map[/bold cyan]")
        map_path = render_faceted_map(table, settings.output.map_path, settings.map)

    return PipelineResult(
        table=table,
        wide=wide,
        grid_paths=grid_paths,
        map_path=map_path,
        table_path=table_path,
    )
