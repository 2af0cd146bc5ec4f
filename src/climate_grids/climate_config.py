#!/usr/bin/env python
"""Configuration management for the county grid pipeline."""

from pathlib import Path
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
import os


DEFAULT_URL_TEMPLATE = (
    "https://opendata.dwd.de/climate_environment/CDC/grids_germany/annual/"
    "hot_days/grids_germany_annual_hot_days_{year}17.asc.gz"
)

DEFAULT_BREAKS = [-1.0, 1.0, 5.0, 10.0, 15.0, 20.0, 25.0, 30.0, 100.0]
DEFAULT_LABELS = ["0-1", "2-5", "6-10", "11-15", "16-20", "21-25", "26-30", "31+"]

# YlOrRd, one colour per bucket
DEFAULT_COLORS = [
    "#FFFFCC", "#FFEDA0", "#FED976", "#FEB24C",
    "#FD8D3C", "#FC4E2A", "#E31A1C", "#B10026",
]


def parse_years(value: str) -> List[int]:
    """Parse a year range such as ``2018-2023`` or ``2019,2021``."""
    years: List[int] = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start, end = part.split("-", 1)
            start_year, end_year = int(start), int(end)
            if end_year < start_year:
                raise ValueError(f"Invalid year range: {part}")
            years.extend(range(start_year, end_year + 1))
        else:
            years.append(int(part))
    if not years:
        raise ValueError(f"No years found in '{value}'")
    return years


class DownloadConfig(BaseModel):
    """Where and how yearly grid files are fetched."""

    url_template: str = Field(default=DEFAULT_URL_TEMPLATE, description="URL template with a {year} placeholder")
    years: List[int] = Field(default_factory=lambda: list(range(2018, 2024)), description="Years to download")
    download_dir: Path = Field(default=Path("./data/grids"), description="Directory for downloaded grids")
    timeout: float = Field(default=60.0, gt=0, description="HTTP timeout in seconds")
    overwrite: bool = Field(default=False, description="Re-download files already on disk")
    chunk_size: int = Field(default=1024 * 64, gt=0, description="Streaming chunk size in bytes")

    @field_validator("url_template")
    def validate_template(cls, v):
        if "{year}" not in v:
            raise ValueError("URL template must contain a '{year}' placeholder")
        return v

    @field_validator("years")
    def validate_years(cls, v):
        if not v:
            raise ValueError("At least one year is required")
        if len(set(v)) != len(v):
            raise ValueError(f"Years must be unique: {v}")
        return sorted(v)

    def url_for(self, year: int) -> str:
        """Format the download URL for one year."""
        return self.url_template.format(year=year)

    def filename_for(self, year: int) -> str:
        """Name of the compressed file for one year, taken from the URL."""
        return self.url_for(year).rstrip("/").rsplit("/", 1)[-1]


class GridConfig(BaseModel):
    """Spatial reference settings for the raster stack."""

    source_crs: str = Field(default="EPSG:31467", description="CRS of the ASCII grids")
    target_crs: str = Field(default="EPSG:25832", description="Common planar CRS for rasters and counties")
    nodata: Optional[float] = Field(default=None, description="No-data value override (default: read from file)")


class CountyConfig(BaseModel):
    """County boundary layer settings."""

    shapefile: Path = Field(default=Path("./data/VG250_KRS.shp"), description="County shapefile")
    id_column: str = Field(default="ARS", description="Administrative identifier column")
    name_column: str = Field(default="GEN", description="County name column")


class ZonalConfig(BaseModel):
    """Zonal statistics settings."""

    method: str = Field(default="clip", description="Zonal method: clip or mask")
    all_touched: bool = Field(default=False, description="Count every cell touched by a polygon")

    @field_validator("method")
    def validate_method(cls, v):
        valid_methods = ["clip", "mask"]
        if v not in valid_methods:
            raise ValueError(f"Method must be one of {valid_methods}")
        return v


class ClassificationConfig(BaseModel):
    """Fixed bucket breakpoints applied to county means."""

    breaks: List[float] = Field(default_factory=lambda: list(DEFAULT_BREAKS))
    labels: List[str] = Field(default_factory=lambda: list(DEFAULT_LABELS))

    @model_validator(mode="after")
    def validate_buckets(self) -> "ClassificationConfig":
        if len(self.breaks) < 2:
            raise ValueError("At least two breakpoints are required")
        if any(lower >= upper for lower, upper in zip(self.breaks, self.breaks[1:])):
            raise ValueError(f"Breakpoints must be strictly increasing: {self.breaks}")
        if len(self.labels) != len(self.breaks) - 1:
            raise ValueError(
                f"Expected {len(self.breaks) - 1} labels for {len(self.breaks)} breakpoints, "
                f"got {len(self.labels)}"
            )
        return self


class MapConfig(BaseModel):
    """Faceted choropleth rendering settings."""

    width_px: int = Field(default=3000, gt=0, description="Image width in pixels")
    height_px: int = Field(default=2400, gt=0, description="Image height in pixels")
    dpi: int = Field(default=300, gt=0, description="Image resolution")
    ncols: int = Field(default=3, ge=1, description="Panels per row")
    colors: List[str] = Field(default_factory=lambda: list(DEFAULT_COLORS))
    title: Optional[str] = Field(default="Hot days per year by county", description="Figure title")
    legend_title: str = Field(default="Days", description="Legend title")
    edgecolor: str = Field(default="#333333", description="County outline colour")
    linewidth: float = Field(default=0.1, ge=0, description="County outline width")

    @property
    def figsize(self) -> tuple:
        """Figure size in inches for the configured pixel size."""
        return (self.width_px / self.dpi, self.height_px / self.dpi)


class OutputConfig(BaseModel):
    """Output file settings."""

    base_output_dir: Path = Field(default=Path("./outputs"), description="Base output directory")
    map_filename: str = Field(default="county_map.png", description="Rendered map filename")
    table_filename: str = Field(default="county_year_values.csv", description="Long table filename")
    save_table: bool = Field(default=True, description="Save the county-year table as CSV")

    @property
    def map_path(self) -> Path:
        return self.base_output_dir / self.map_filename

    @property
    def table_path(self) -> Path:
        return self.base_output_dir / self.table_filename


class ClimateGridConfig(BaseModel):
    """Main pipeline configuration."""

    download: DownloadConfig = Field(default_factory=DownloadConfig)
    grid: GridConfig = Field(default_factory=GridConfig)
    counties: CountyConfig = Field(default_factory=CountyConfig)
    zonal: ZonalConfig = Field(default_factory=ZonalConfig)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    map: MapConfig = Field(default_factory=MapConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @model_validator(mode="after")
    def validate_colors(self) -> "ClimateGridConfig":
        n_buckets = len(self.classification.labels)
        if len(self.map.colors) != n_buckets:
            raise ValueError(f"Expected {n_buckets} map colours, got {len(self.map.colors)}")
        return self

    def setup_directories(self):
        """Create necessary directories."""
        self.download.download_dir.mkdir(parents=True, exist_ok=True)
        self.output.base_output_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls) -> "ClimateGridConfig":
        """Create config from environment variables."""
        config_data: Dict[str, Dict] = {}

        if url_template := os.getenv("CLIMATE_GRIDS_URL_TEMPLATE"):
            config_data.setdefault("download", {})["url_template"] = url_template

        if years := os.getenv("CLIMATE_GRIDS_YEARS"):
            config_data.setdefault("download", {})["years"] = parse_years(years)

        if download_dir := os.getenv("CLIMATE_GRIDS_DOWNLOAD_DIR"):
            config_data.setdefault("download", {})["download_dir"] = download_dir

        if shapefile := os.getenv("CLIMATE_GRIDS_SHAPEFILE"):
            config_data.setdefault("counties", {})["shapefile"] = shapefile

        if target_crs := os.getenv("CLIMATE_GRIDS_TARGET_CRS"):
            config_data.setdefault("grid", {})["target_crs"] = target_crs

        if output_dir := os.getenv("CLIMATE_GRIDS_OUTPUT_DIR"):
            config_data.setdefault("output", {})["base_output_dir"] = output_dir

        return cls(**config_data)

    def save_config(self, path: Path):
        """Save configuration to file."""
        import json
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2)

    @classmethod
    def load_config(cls, path: Path) -> "ClimateGridConfig":
        """Load configuration from file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls(**data)


# Global configuration instance
DEFAULT_CONFIG = ClimateGridConfig()


def get_config() -> ClimateGridConfig:
    """Get the global configuration instance."""
    return DEFAULT_CONFIG


def set_config(config: ClimateGridConfig):
    """Set the global configuration instance."""
    global DEFAULT_CONFIG
    DEFAULT_CONFIG = config
