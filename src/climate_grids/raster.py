#!/usr/bin/env python
"""Load yearly ASCII grids into one multi-layer raster."""

from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd
import rioxarray
import xarray as xr
from rich.console import Console

from climate_grids.exceptions import GridFormatError

console = Console()


def load_ascii_grid(
    path: Path,
    source_crs: str = "EPSG:31467",
    nodata: Optional[float] = None,
) -> xr.DataArray:
    """Read a single ESRI ASCII grid as a 2-D DataArray.

    Args:
        path: Path to the ``.asc`` file
        source_crs: CRS to assign when the file carries none
        nodata: No-data value; when None the value from the file header is used

    Returns:
        DataArray with ``y``/``x`` dimensions and no-data cells set to NaN
    """
    with rioxarray.open_rasterio(path, masked=nodata is None) as src:
        grid = src.load()

    if "band" in grid.dims:
        grid = grid.squeeze("band", drop=True)

    grid = grid.astype("float64")
    if nodata is not None:
        grid = grid.where(grid != nodata)

    if grid.rio.crs is None:
        grid = grid.rio.write_crs(source_crs)

    return grid.rio.write_nodata(np.nan)


def stack_yearly_grids(
    paths_by_year: Dict[int, Path],
    source_crs: str = "EPSG:31467",
    nodata: Optional[float] = None,
) -> xr.DataArray:
    """Stack yearly grids along a ``year`` dimension.

    Args:
        paths_by_year: Mapping of year to grid path
        source_crs: CRS assigned to grids without one
        nodata: Optional no-data override

    Returns:
        3-D DataArray (year, y, x) sorted by year

    Raises:
        GridFormatError: On duplicate years or grids that do not line up
    """
    years = [int(year) for year in paths_by_year]
    if not years:
        raise GridFormatError("No grids to stack")
    if len(set(years)) != len(years):
        raise GridFormatError(f"Duplicate years in grid set: {sorted(years)}")

    grids = []
    for year in sorted(years):
        grid = load_ascii_grid(paths_by_year[year], source_crs=source_crs, nodata=nodata)
        if grids and grid.shape != grids[0].shape:
            raise GridFormatError(
                f"Grid for {year} has shape {grid.shape}, expected {grids[0].shape}"
            )
        grids.append(grid)

    return stack_arrays(grids, sorted(years))


def stack_arrays(grids, years) -> xr.DataArray:
    """Concatenate already loaded 2-D grids along a ``year`` dimension."""
    crs = grids[0].rio.crs
    try:
        stack = xr.concat(grids, dim=pd.Index(list(years), name="year"), join="exact")
    except ValueError as e:
        raise GridFormatError(f"Grids are not aligned: {e}") from e

    stack.name = "value"
    stack = stack.rio.write_crs(crs)
    stack = stack.rio.write_nodata(np.nan)

    console.print(
        f"[cyan]Stacked {len(years)} grids ({years[0]}-{years[-1]}), "
        f"shape {stack.shape}, CRS {crs}[/cyan]"
    )
    return stack


def reproject_stack(stack: xr.DataArray, target_crs: str) -> xr.DataArray:
    """Reproject the raster stack to ``target_crs``, keeping NaN as no-data."""
    if stack.rio.crs is not None and stack.rio.crs.to_string() == target_crs:
        return stack

    console.print(f"[yellow]Reprojecting raster from {stack.rio.crs} to {target_crs}[/yellow]")
    return stack.rio.reproject(target_crs, nodata=np.nan)
