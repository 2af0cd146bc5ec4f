#!/usr/bin/env python
"""End-to-end tests for the batch pipeline."""

import json

import geopandas as gpd
import pandas as pd
import pytest
import responses

from climate_grids.exceptions import GridDownloadError
from climate_grids.pipeline import PipelineConfig, run_pipeline
from climate_grids.utils.output_utils import load_table

from conftest import EXPECTED_BUCKETS, EXPECTED_MEANS, GRID_VALUES, gzip_bytes, write_ascii_grid


@pytest.fixture
def served_grids(temp_dir, test_config):
    """Register gzipped grids for every configured year."""
    source_dir = temp_dir / "source"
    source_dir.mkdir()
    with responses.RequestsMock() as mock:
        for year, values in GRID_VALUES.items():
            grid = write_ascii_grid(source_dir / f"grid_{year}.asc", values)
            mock.add(responses.GET, test_config.download.url_for(year), body=gzip_bytes(grid), status=200)
        yield mock


@pytest.fixture
def grids_on_disk(test_config):
    """Decompressed grids already in the download directory."""
    download_dir = test_config.download.download_dir
    download_dir.mkdir(parents=True, exist_ok=True)
    return {
        year: write_ascii_grid(download_dir / f"grid_{year}.asc", values)
        for year, values in GRID_VALUES.items()
    }


def check_expected_table(table):
    assert len(table) == len(EXPECTED_MEANS)
    for (ars, year), expected in EXPECTED_MEANS.items():
        row = table[(table["ARS"] == ars) & (table["year"] == year)].iloc[0]
        assert row["mean_value"] == pytest.approx(expected)
        assert str(row["bucket"]) == EXPECTED_BUCKETS[(ars, year)]


class TestRunPipeline:
    """Test the full pipeline."""

    def test_download_through_map(self, test_config, served_grids):
        result = run_pipeline(test_config)

        assert isinstance(result.table, gpd.GeoDataFrame)
        check_expected_table(result.table)
        assert len(served_grids.calls) == 2

        assert sorted(result.grid_paths) == [2020, 2021]
        assert result.map_path == test_config.output.map_path
        assert result.map_path.exists()
        assert result.table_path == test_config.output.table_path

    def test_saved_table_and_metadata(self, test_config, served_grids):
        result = run_pipeline(test_config)

        saved = load_table(result.table_path)
        assert list(saved.columns) == ["ARS", "county_name", "year", "mean_value", "bucket"]
        check_expected_table(saved)

        metadata_path = result.table_path.with_suffix(".metadata.json")
        metadata = json.loads(metadata_path.read_text())
        assert metadata["data_summary"]["total_records"] == 6
        assert metadata["data_summary"]["years_processed"] == [2020, 2021]
        assert set(metadata["grid_files"]) == {"2020", "2021"}

    def test_skip_download(self, test_config, grids_on_disk):
        result = run_pipeline(test_config, skip_download=True, render=False)

        check_expected_table(result.table)
        assert result.map_path is None
        assert result.grid_paths == grids_on_disk

    def test_skip_download_missing_grids(self, test_config):
        with pytest.raises(FileNotFoundError):
            run_pipeline(test_config, skip_download=True)

    def test_year_override(self, test_config, grids_on_disk):
        result = run_pipeline(test_config, years=[2021], skip_download=True, render=False)

        assert result.table["year"].unique().tolist() == [2021]
        assert list(result.wide.columns) == [2021]

    def test_output_dir_override(self, test_config, grids_on_disk, temp_dir):
        result = run_pipeline(test_config, output_dir=temp_dir / "elsewhere", skip_download=True)

        assert result.map_path == temp_dir / "elsewhere" / test_config.output.map_filename
        assert result.map_path.exists()
        assert result.table_path.parent == temp_dir / "elsewhere"

    @responses.activate
    def test_download_failure_propagates(self, test_config):
        responses.add(responses.GET, test_config.download.url_for(2020), status=404)

        with pytest.raises(GridDownloadError):
            run_pipeline(test_config)

        assert not test_config.output.map_path.exists()

    def test_missing_shapefile(self, test_config, grids_on_disk, temp_dir):
        with pytest.raises(FileNotFoundError, match="Shapefile"):
            run_pipeline(test_config, shapefile=temp_dir / "missing.shp", skip_download=True)


class TestPipelineConfig:
    """Test validated run options."""

    def test_overrides_rebuild_config(self, test_config, temp_dir):
        options = PipelineConfig(config=test_config, years=[2021, 2020], output_dir=temp_dir / "out")

        assert options.config.download.years == [2020, 2021]
        assert options.config.output.base_output_dir == temp_dir / "out"

    def test_invalid_override_rejected(self, test_config):
        with pytest.raises(ValueError):
            PipelineConfig(config=test_config, years=[])

    def test_no_overrides_keeps_config(self, test_config):
        options = PipelineConfig(config=test_config)
        assert options.config is test_config
