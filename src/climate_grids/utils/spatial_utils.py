#!/usr/bin/env python
"""Spatial processing utilities for gridded climate data."""

import numpy as np
import geopandas as gpd
import xarray as xr
from rasterio.features import rasterize
from rich.console import Console

console = Console()


def create_county_raster(
    gdf: gpd.GeoDataFrame,
    data: xr.DataArray,
    all_touched: bool = False
) -> np.ndarray:
    """Burn county zone ids onto the raster grid.

    Args:
        gdf: GeoDataFrame with county geometries in the raster CRS
        data: Raster whose grid defines the output shape and transform
        all_touched: Burn every cell touched by a polygon instead of cell centres

    Returns:
        2-D array of ``raster_id`` values, 0 outside all counties
    """
    console.print("[cyan]Creating county raster mask...[/cyan]")

    gdf_with_ids = gdf
    if 'raster_id' not in gdf_with_ids.columns:
        gdf_with_ids = gdf.copy()
        gdf_with_ids['raster_id'] = range(1, len(gdf) + 1)

    shapes = [(geom, int(raster_id)) for geom, raster_id in
              zip(gdf_with_ids.geometry, gdf_with_ids.raster_id)
              if geom is not None and not geom.is_empty]

    out_shape = (data.rio.height, data.rio.width)
    if not shapes:
        return np.zeros(out_shape, dtype='uint32')

    county_raster = rasterize(
        shapes,
        out_shape=out_shape,
        transform=data.rio.transform(),
        fill=0,
        all_touched=all_touched,
        dtype='uint32'
    )

    unique_counties = np.unique(county_raster[county_raster > 0])
    console.print(f"[cyan]County raster created with {len(unique_counties)} counties[/cyan]")

    return county_raster


def get_year_information(data: xr.DataArray) -> np.ndarray:
    """Return the year labels of a raster stack.

    Args:
        data: DataArray with a ``year`` dimension

    Returns:
        Array of integer years
    """
    if 'year' not in data.dims:
        raise ValueError(f"Raster has no 'year' dimension: {data.dims}")
    return data['year'].values.astype(int)


def clip_county_data(
    data: xr.DataArray,
    county_geometry,
    all_touched: bool = False
) -> xr.DataArray:
    """Clip data to a county geometry using rioxarray.

    Args:
        data: xarray DataArray with spatial coordinates
        county_geometry: Shapely geometry for the county
        all_touched: Whether to include all touched pixels

    Returns:
        Clipped DataArray
    """
    return data.rio.clip([county_geometry], all_touched=all_touched, drop=True)
