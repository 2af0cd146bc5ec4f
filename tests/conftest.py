#!/usr/bin/env python
"""Pytest configuration and shared fixtures for climate-grids tests."""

import gzip
import shutil
import tempfile
from pathlib import Path

import numpy as np
import pytest
import geopandas as gpd
from shapely.geometry import box

from climate_grids.climate_config import ClimateGridConfig

CRS = "EPSG:25832"
X_ORIGIN = 500000.0
Y_ORIGIN = 5500000.0
CELL_SIZE = 1000.0
NODATA = -999.0

# Two years on a 2x4 grid; columns 0-1 fall in county A, columns 2-3 in county B.
# A 2020: (2, 4, 6) -> 4.0      B 2020: (10, 20, 30, 40) -> 25.0
# A 2021: (0, 0, 1) -> 1/3      B 2021: (50, 60) -> 55.0
GRID_VALUES = {
    2020: np.array([
        [2.0, 4.0, 10.0, 20.0],
        [6.0, NODATA, 30.0, 40.0],
    ]),
    2021: np.array([
        [0.0, 0.0, 50.0, 60.0],
        [1.0, NODATA, NODATA, NODATA],
    ]),
}

EXPECTED_MEANS = {
    ("09001", 2020): 4.0,
    ("09001", 2021): 1.0 / 3.0,
    ("09002", 2020): 25.0,
    ("09002", 2021): 55.0,
    ("09003", 2020): 0.0,
    ("09003", 2021): 0.0,
}

EXPECTED_BUCKETS = {
    ("09001", 2020): "2-5",
    ("09001", 2021): "0-1",
    ("09002", 2020): "21-25",
    ("09002", 2021): "31+",
    ("09003", 2020): "0-1",
    ("09003", 2021): "0-1",
}


def write_ascii_grid(path: Path, values: np.ndarray, nodata: float = NODATA) -> Path:
    """Write an ESRI ASCII grid with the test origin and cell size."""
    nrows, ncols = values.shape
    lines = [
        f"ncols {ncols}",
        f"nrows {nrows}",
        f"xllcorner {X_ORIGIN}",
        f"yllcorner {Y_ORIGIN}",
        f"cellsize {CELL_SIZE}",
        f"NODATA_value {nodata}",
    ]
    for row in values:
        lines.append(" ".join(f"{v:.1f}" for v in row))
    path.write_text("\n".join(lines) + "\n")
    return path


def gzip_bytes(path: Path) -> bytes:
    """Gzip-compress a file's content."""
    return gzip.compress(path.read_bytes())


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_dir = tempfile.mkdtemp(prefix="climate_grids_tests_")
    yield Path(temp_dir)
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def sample_counties_gdf():
    """Three counties: A and B cover the grid, C lies outside it."""
    counties = [
        {"ARS": "09001", "GEN": "Kreis A", "BEZ": "Landkreis",
         "geometry": box(X_ORIGIN, Y_ORIGIN, X_ORIGIN + 2000, Y_ORIGIN + 2000)},
        {"ARS": "09002", "GEN": "Kreis B", "BEZ": "Landkreis",
         "geometry": box(X_ORIGIN + 2000, Y_ORIGIN, X_ORIGIN + 4000, Y_ORIGIN + 2000)},
        {"ARS": "09003", "GEN": "Kreis C", "BEZ": "Kreisfreie Stadt",
         "geometry": box(X_ORIGIN + 100000, Y_ORIGIN, X_ORIGIN + 101000, Y_ORIGIN + 1000)},
    ]
    return gpd.GeoDataFrame(counties, crs=CRS)


@pytest.fixture
def sample_shapefile(sample_counties_gdf, temp_dir):
    """Write the sample counties as a shapefile."""
    shapefile_path = temp_dir / "counties.shp"
    sample_counties_gdf.to_file(shapefile_path)
    return shapefile_path


@pytest.fixture
def sample_grid_files(temp_dir):
    """Decompressed ASCII grids for 2020 and 2021."""
    grid_dir = temp_dir / "grids"
    grid_dir.mkdir()
    return {
        year: write_ascii_grid(grid_dir / f"grid_{year}.asc", values)
        for year, values in GRID_VALUES.items()
    }


@pytest.fixture
def test_config(temp_dir, sample_shapefile):
    """Configuration pointing at the temporary directory and test layout."""
    return ClimateGridConfig(
        download={
            "url_template": "https://example.org/grids/grid_{year}.asc.gz",
            "years": [2020, 2021],
            "download_dir": temp_dir / "downloads",
        },
        grid={"source_crs": CRS, "target_crs": CRS},
        counties={"shapefile": sample_shapefile},
        map={"width_px": 600, "height_px": 400, "dpi": 100, "ncols": 2},
        output={"base_output_dir": temp_dir / "outputs"},
    )


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        if any(
            name in item.nodeid
            for name in ["test_config", "test_transform", "test_download", "test_raster"]
        ):
            item.add_marker(pytest.mark.unit)

        if "test_pipeline" in item.nodeid or "test_cli" in item.nodeid:
            item.add_marker(pytest.mark.integration)


def pytest_addoption(parser):
    """Add command line options for test selection."""
    parser.addoption(
        "--runslow", action="store_true", default=False, help="run slow tests"
    )


def pytest_runtest_setup(item):
    """Skip slow tests unless requested."""
    if "slow" in item.keywords and not item.config.getoption("--runslow"):
        pytest.skip("need --runslow option to run")
