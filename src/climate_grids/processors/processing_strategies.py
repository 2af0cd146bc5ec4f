#!/usr/bin/env python
"""Zonal mean strategies for county-level raster aggregation."""

from abc import ABC, abstractmethod

import numpy as np
import pandas as pd
import geopandas as gpd
import xarray as xr
from rioxarray.exceptions import NoDataInBounds
from shapely.geometry import box
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn

from ..utils.spatial_utils import (
    get_year_information,
    create_county_raster,
    clip_county_data
)

console = Console()


class ProcessingStrategy(ABC):
    """Abstract base class for zonal mean strategies."""

    def __init__(self, all_touched: bool = False):
        """Initialize the strategy.

        Args:
            all_touched: Count every cell touched by a county instead of
                only cells whose centre lies inside it
        """
        self.all_touched = all_touched

    @abstractmethod
    def process(
        self,
        data: xr.DataArray,
        gdf: gpd.GeoDataFrame,
    ) -> pd.DataFrame:
        """Compute the mean raster value per county and year.

        Args:
            data: Raster stack (year, y, x)
            gdf: County geometries with ``ARS`` and ``raster_id``

        Returns:
            Wide DataFrame indexed by ARS, one column per year, NaN where
            no valid cell falls inside a county
        """
        pass

    def _align_crs(self, data: xr.DataArray, gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        """Bring county geometries into the raster CRS."""
        if data.rio.crs is None:
            raise ValueError("Raster has no CRS; write one before aggregating")

        if gdf.crs is None:
            raise ValueError("County GeoDataFrame has no CRS")

        if gdf.crs != data.rio.crs:
            console.print(f"[yellow]CRS mismatch - Data: {data.rio.crs}, Counties: {gdf.crs}; reprojecting counties[/yellow]")
            gdf = gdf.to_crs(data.rio.crs)

        if 'raster_id' not in gdf.columns:
            gdf = gdf.assign(raster_id=np.arange(1, len(gdf) + 1, dtype='uint32'))
        return gdf

    @staticmethod
    def _empty_result(years: np.ndarray) -> pd.DataFrame:
        frame = pd.DataFrame(columns=list(years), dtype="float64")
        frame.index.name = "ARS"
        return frame


class VectorizedStrategy(ProcessingStrategy):
    """Clips the stack to each county with rioxarray and averages per year.

    Counties whose clip contains no cells yield NaN for every year.
    """

    def process(
        self,
        data: xr.DataArray,
        gdf: gpd.GeoDataFrame,
    ) -> pd.DataFrame:
        console.print("[yellow]Processing counties with rioxarray clipping...[/yellow]")

        gdf = self._align_crs(data, gdf)
        years = get_year_information(data)

        if gdf.empty:
            return self._empty_result(years)

        console.print(f"[cyan]Processing {len(gdf)} counties over {len(years)} years[/cyan]")
        console.print(f"[cyan]Data shape: {data.shape} (year, y, x)[/cyan]")

        rows = {}
        empty_clips = 0

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            console=console
        ) as progress:
            task = progress.add_task("Processing counties...", total=len(gdf))

            for _, county in gdf.iterrows():
                clipped = self._clip_county(data, county)

                if clipped is None:
                    empty_clips += 1
                    rows[county['ARS']] = np.full(len(years), np.nan)
                else:
                    rows[county['ARS']] = clipped.mean(dim=['y', 'x'], skipna=True).values

                progress.advance(task)

        if empty_clips:
            console.print(f"[yellow]{empty_clips} counties had no raster cells[/yellow]")

        result = pd.DataFrame.from_dict(rows, orient='index', columns=list(years))
        result.index.name = "ARS"
        return result

    def _clip_county(self, data: xr.DataArray, county):
        """Clip the stack to one county, or None when no cell falls inside."""
        geometry = county.geometry
        if geometry is None or geometry.is_empty or not geometry.intersects(box(*data.rio.bounds())):
            return None

        try:
            clipped = clip_county_data(data, county.geometry, all_touched=self.all_touched)
        except NoDataInBounds:
            return None

        if clipped.size == 0:
            return None
        return clipped


class RasterMaskStrategy(ProcessingStrategy):
    """Rasterizes county ids once and groups cell values per county.

    Where county polygons overlap, the cell belongs to the later county.
    """

    def process(
        self,
        data: xr.DataArray,
        gdf: gpd.GeoDataFrame,
    ) -> pd.DataFrame:
        console.print("[yellow]Processing counties with a rasterized zone mask...[/yellow]")

        gdf = self._align_crs(data, gdf)
        years = get_year_information(data)

        if gdf.empty:
            return self._empty_result(years)

        zones = create_county_raster(gdf, data, all_touched=self.all_touched).ravel()
        inside = zones > 0

        values = data.transpose('year', 'y', 'x').values.reshape(len(years), -1)

        cells = pd.DataFrame(values[:, inside].T, columns=list(years))
        cells['raster_id'] = zones[inside]

        means = cells.groupby('raster_id').mean()
        means = means.reindex(gdf['raster_id'].to_numpy())
        means.index = pd.Index(gdf['ARS'].to_numpy(), name="ARS")
        means.columns = list(years)

        console.print(f"[cyan]Aggregated {int(inside.sum())} cells into {len(gdf)} counties[/cyan]")
        return means


def get_strategy(method: str = "clip", all_touched: bool = False) -> ProcessingStrategy:
    """Select the zonal strategy by name (``clip`` or ``mask``)."""
    if method == "clip":
        return VectorizedStrategy(all_touched=all_touched)
    if method == "mask":
        return RasterMaskStrategy(all_touched=all_touched)
    raise ValueError(f"Unknown zonal method: {method}. Supported: ['clip', 'mask']")
