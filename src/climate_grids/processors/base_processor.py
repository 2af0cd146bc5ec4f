#!/usr/bin/env python
"""Base processor class for county-level zonal statistics."""

from abc import ABC, abstractmethod
from pathlib import Path
import warnings

import geopandas as gpd
import numpy as np
import pandas as pd
import xarray as xr
from rich.console import Console

warnings.filterwarnings("ignore", category=RuntimeWarning)

console = Console()


class BaseCountyProcessor(ABC):
    """Base class for county-level raster processing."""

    def __init__(self, id_column: str = "ARS", name_column: str = "GEN"):
        """Initialize the processor.

        Args:
            id_column: Column holding the administrative identifier
            name_column: Column holding the county name
        """
        self.id_column = id_column
        self.name_column = name_column

    def prepare_shapefile(
        self, shapefile_path: Path, target_crs: str = "EPSG:25832"
    ) -> gpd.GeoDataFrame:
        """Load and prepare the county shapefile.

        Args:
            shapefile_path: Path to the shapefile
            target_crs: Target coordinate reference system

        Returns:
            GeoDataFrame with standardized columns in ``target_crs``

        Raises:
            KeyError: If the identifier column is missing
        """
        console.print(f"[blue]Loading shapefile:[/blue] {shapefile_path}")

        gdf = gpd.read_file(shapefile_path)

        if gdf.crs is None:
            raise ValueError(f"Shapefile has no CRS: {shapefile_path}")

        if gdf.crs.to_string() != target_crs:
            console.print(
                f"[yellow]Converting CRS from {gdf.crs} to {target_crs}[/yellow]"
            )
            gdf = gdf.to_crs(target_crs)

        gdf = self._standardize_columns(gdf)

        gdf.sindex  # Force creation of spatial index

        return gdf

    def _standardize_columns(self, gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        """Standardize column names and add required fields.

        Args:
            gdf: Input GeoDataFrame

        Returns:
            GeoDataFrame with ``ARS``, ``county_name``, ``raster_id`` and geometry
        """
        if self.id_column not in gdf.columns:
            raise KeyError(
                f"Column '{self.id_column}' not found in shapefile. "
                f"Available: {list(gdf.columns)}"
            )

        gdf = gdf.copy()
        gdf["ARS"] = gdf[self.id_column].astype(str)

        if self.name_column in gdf.columns:
            gdf["county_name"] = gdf[self.name_column]
        else:
            gdf["county_name"] = gdf["ARS"]

        # Numeric zone id used when rasterizing counties
        gdf["raster_id"] = np.arange(1, len(gdf) + 1, dtype="uint32")

        return gdf[["ARS", "county_name", "raster_id", "geometry"]].reset_index(drop=True)

    def _standardize_coordinates(self, data: xr.DataArray, crs: str) -> xr.DataArray:
        """Standardize dimension names and spatial reference.

        Args:
            data: Input raster stack
            crs: CRS to assign when the data has none

        Returns:
            DataArray with ``y``/``x`` dimensions, CRS and transform written
        """
        if "lon" in data.dims and "lat" in data.dims:
            data = data.rename({"lon": "x", "lat": "y"})

        if data.rio.crs is None:
            data = data.rio.write_crs(crs)

        return data.rio.write_transform()

    @abstractmethod
    def process_variable_data(
        self, data: xr.DataArray, gdf: gpd.GeoDataFrame, **kwargs
    ) -> pd.DataFrame:
        """Aggregate raster values for all counties.

        Args:
            data: Raster stack with a ``year`` dimension
            gdf: County geometries
            **kwargs: Processor-specific parameters

        Returns:
            Wide DataFrame indexed by ARS with one column per year
        """
        pass

    def close(self):
        """Clean up resources."""
        pass

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager."""
        self.close()
        return False
