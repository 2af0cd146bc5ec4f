#!/usr/bin/env python
"""Tests for loading and stacking ASCII grids."""

import numpy as np
import pytest

from climate_grids.exceptions import GridFormatError
from climate_grids.raster import load_ascii_grid, reproject_stack, stack_yearly_grids

from conftest import CRS, GRID_VALUES, write_ascii_grid


class TestLoadAsciiGrid:
    """Test single grid loading."""

    def test_values_and_nodata(self, sample_grid_files):
        grid = load_ascii_grid(sample_grid_files[2020], source_crs=CRS)

        assert grid.dims == ("y", "x")
        assert grid.shape == (2, 4)
        assert np.isnan(grid.values[1, 1])
        np.testing.assert_array_equal(grid.values[0], [2.0, 4.0, 10.0, 20.0])

    def test_crs_assigned(self, sample_grid_files):
        grid = load_ascii_grid(sample_grid_files[2020], source_crs=CRS)
        assert grid.rio.crs.to_string() == CRS

    def test_nodata_override(self, temp_dir):
        path = write_ascii_grid(temp_dir / "zeros.asc", np.array([[0.0, 3.0], [5.0, 0.0]]), nodata=-1.0)

        grid = load_ascii_grid(path, source_crs=CRS, nodata=0.0)

        assert int(np.isnan(grid.values).sum()) == 2
        assert float(grid.mean(skipna=True)) == pytest.approx(4.0)


class TestStackYearlyGrids:
    """Test stacking grids by year."""

    def test_stack_labels_layers_by_year(self, sample_grid_files):
        stack = stack_yearly_grids(sample_grid_files, source_crs=CRS)

        assert stack.dims == ("year", "y", "x")
        assert list(stack["year"].values) == [2020, 2021]
        assert stack.rio.crs.to_string() == CRS
        np.testing.assert_array_equal(
            stack.sel(year=2021).values[0], GRID_VALUES[2021][0]
        )

    def test_stack_sorted_by_year(self, sample_grid_files):
        reversed_paths = {2021: sample_grid_files[2021], 2020: sample_grid_files[2020]}
        stack = stack_yearly_grids(reversed_paths, source_crs=CRS)
        assert list(stack["year"].values) == [2020, 2021]

    def test_shape_mismatch(self, sample_grid_files, temp_dir):
        other = write_ascii_grid(temp_dir / "small.asc", np.ones((3, 3)))

        with pytest.raises(GridFormatError):
            stack_yearly_grids({2020: sample_grid_files[2020], 2022: other}, source_crs=CRS)

    def test_empty(self):
        with pytest.raises(ValueError):
            stack_yearly_grids({})


class TestReprojectStack:
    """Test reprojection of the stack."""

    def test_same_crs_is_noop(self, sample_grid_files):
        stack = stack_yearly_grids(sample_grid_files, source_crs=CRS)
        assert reproject_stack(stack, CRS) is stack

    def test_reproject_keeps_years(self, sample_grid_files):
        stack = stack_yearly_grids(sample_grid_files, source_crs=CRS)

        reprojected = reproject_stack(stack, "EPSG:3035")

        assert reprojected.rio.crs.to_string() == "EPSG:3035"
        assert list(reprojected["year"].values) == [2020, 2021]
        assert float(np.nanmax(reprojected.values)) <= 60.0
