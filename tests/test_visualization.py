#!/usr/bin/env python
"""Tests for the faceted choropleth map."""

import matplotlib.image as mpimg
import numpy as np
import pandas as pd
import pytest

from climate_grids.climate_config import MapConfig
from climate_grids.transform import build_county_year_table
from climate_grids.visualization import render_faceted_map


@pytest.fixture
def county_year_table(sample_counties_gdf):
    wide = pd.DataFrame(
        {2019: [0.0, 12.0, 40.0], 2020: [4.0, 25.0, np.nan], 2021: [1.0, 55.0, 3.0]},
        index=pd.Index(["09001", "09002", "09003"], name="ARS"),
    )
    return build_county_year_table(wide, sample_counties_gdf)


@pytest.fixture
def small_map_config():
    return MapConfig(width_px=600, height_px=400, dpi=100, ncols=2)


class TestRenderFacetedMap:
    """Test map rendering."""

    def test_image_written_with_configured_size(self, county_year_table, small_map_config, temp_dir):
        output_path = temp_dir / "maps" / "hot_days.png"

        saved = render_faceted_map(county_year_table, output_path, small_map_config)

        assert saved == output_path
        assert output_path.exists()
        image = mpimg.imread(output_path)
        assert image.shape[:2] == (400, 600)

    def test_single_year(self, county_year_table, small_map_config, temp_dir):
        one_year = county_year_table[county_year_table["year"] == 2020]

        saved = render_faceted_map(one_year, temp_dir / "one.png", small_map_config)

        assert mpimg.imread(saved).shape[:2] == (400, 600)

    def test_empty_table_rejected(self, county_year_table, temp_dir):
        with pytest.raises(ValueError, match="empty"):
            render_faceted_map(county_year_table.iloc[0:0], temp_dir / "empty.png")

    def test_bucket_must_be_categorical(self, county_year_table, temp_dir):
        table = county_year_table.assign(bucket=county_year_table["bucket"].astype(str))

        with pytest.raises(ValueError, match="categorical"):
            render_faceted_map(table, temp_dir / "plain.png")

    def test_colour_count_must_match_buckets(self, county_year_table, temp_dir):
        config = MapConfig(colors=["#ffffff"])

        with pytest.raises(ValueError, match="colours"):
            render_faceted_map(county_year_table, temp_dir / "colours.png", config)
