"""
Climate Grids

Downloads yearly gridded climate data, averages it per county and
renders faceted choropleth maps of fixed value buckets.
"""

from climate_grids._version import __version__

# Public API exports
from climate_grids.climate_config import (
    ClimateGridConfig,
    DownloadConfig,
    GridConfig,
    CountyConfig,
    ZonalConfig,
    ClassificationConfig,
    MapConfig,
    OutputConfig,
    get_config,
    set_config,
)
from climate_grids.exceptions import ClimateGridsError, GridDownloadError, GridFormatError
from climate_grids.download import GridDownloader
from climate_grids.raster import load_ascii_grid, stack_yearly_grids, reproject_stack
from climate_grids.county_processor import CountyGridProcessor
from climate_grids.transform import wide_to_long, build_county_year_table
from climate_grids.visualization import render_faceted_map
from climate_grids.pipeline import run_pipeline

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "ClimateGridConfig",
    "DownloadConfig",
    "GridConfig",
    "CountyConfig",
    "ZonalConfig",
    "ClassificationConfig",
    "MapConfig",
    "OutputConfig",
    "get_config",
    "set_config",
    # Errors
    "ClimateGridsError",
    "GridDownloadError",
    "GridFormatError",
    # Core functions
    "GridDownloader",
    "load_ascii_grid",
    "stack_yearly_grids",
    "reproject_stack",
    "CountyGridProcessor",
    "wide_to_long",
    "build_county_year_table",
    "render_faceted_map",
    "run_pipeline",
]
