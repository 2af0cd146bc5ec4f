#!/usr/bin/env python
"""County mean processor for yearly raster stacks."""

from pathlib import Path
from typing import Dict, Optional

import pandas as pd
import geopandas as gpd
import xarray as xr
from rich.console import Console

from .base_processor import BaseCountyProcessor
from .processing_strategies import get_strategy
from ..raster import stack_yearly_grids, reproject_stack

console = Console()


class CountyMeanProcessor(BaseCountyProcessor):
    """Computes the mean raster value of every county for every year."""

    def __init__(
        self,
        method: str = "clip",
        all_touched: bool = False,
        id_column: str = "ARS",
        name_column: str = "GEN",
    ):
        """Initialize the processor.

        Args:
            method: Zonal strategy, ``clip`` or ``mask``
            all_touched: Count every cell touched by a county
            id_column: Administrative identifier column in the shapefile
            name_column: County name column in the shapefile
        """
        super().__init__(id_column=id_column, name_column=name_column)
        self.method = method
        self.all_touched = all_touched
        self.strategy = get_strategy(method, all_touched)

    def process_variable_data(
        self,
        data: xr.DataArray,
        gdf: gpd.GeoDataFrame,
        target_crs: Optional[str] = None,
        source_crs: str = "EPSG:31467",
        **kwargs
    ) -> pd.DataFrame:
        """Aggregate the raster stack per county.

        Args:
            data: Raster stack (year, y, x)
            gdf: County geometries
            target_crs: Reproject raster and counties to this CRS first
            source_crs: CRS of a raster that carries none
            **kwargs: Unused

        Returns:
            Wide DataFrame indexed by ARS with one column per year
        """
        console.print("[blue]Computing county means...[/blue]")

        data = self._standardize_coordinates(data, crs=source_crs)

        if target_crs is not None:
            data = reproject_stack(data, target_crs)
            if gdf.crs is None or gdf.crs.to_string() != target_crs:
                gdf = gdf.to_crs(target_crs)

        return self.strategy.process(data=data, gdf=gdf)

    def process_grid_files(
        self,
        paths_by_year: Dict[int, Path],
        gdf: gpd.GeoDataFrame,
        source_crs: str = "EPSG:31467",
        target_crs: Optional[str] = None,
        nodata: Optional[float] = None,
    ) -> pd.DataFrame:
        """Stack yearly ASCII grids from disk and aggregate them per county.

        Args:
            paths_by_year: Mapping of year to grid path
            gdf: County geometries
            source_crs: CRS of the grid files
            target_crs: Common planar CRS (defaults to the county CRS)
            nodata: Optional no-data override

        Returns:
            Wide DataFrame indexed by ARS with one column per year
        """
        stack = stack_yearly_grids(paths_by_year, source_crs=source_crs, nodata=nodata)
        return self.process_variable_data(
            data=stack,
            gdf=gdf,
            target_crs=target_crs or gdf.crs.to_string(),
            source_crs=source_crs,
        )
