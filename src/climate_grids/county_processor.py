#!/usr/bin/env python
"""County processor tying zonal means, classification and output together."""

from pathlib import Path
from typing import Dict, Optional

import pandas as pd
import geopandas as gpd
import xarray as xr
from rich.console import Console

from .climate_config import ClimateGridConfig, get_config
from .processors import CountyMeanProcessor
from .transform import build_county_year_table
from .utils.output_utils import get_output_manager

console = Console()


class CountyGridProcessor:
    """Turns a yearly raster stack into the classified county-year table.

    Delegates the zonal means to ``CountyMeanProcessor`` and the reshaping
    to ``transform``.
    """

    def __init__(self, config: Optional[ClimateGridConfig] = None):
        """Initialize the county processor.

        Args:
            config: Pipeline configuration (defaults to the global one)
        """
        self.config = config or get_config()
        self._processor = CountyMeanProcessor(
            method=self.config.zonal.method,
            all_touched=self.config.zonal.all_touched,
            id_column=self.config.counties.id_column,
            name_column=self.config.counties.name_column,
        )

    @property
    def target_crs(self) -> str:
        return self.config.grid.target_crs

    def prepare_shapefile(
        self,
        shapefile_path: Optional[Path] = None,
    ) -> gpd.GeoDataFrame:
        """Load counties and reproject them to the common CRS."""
        shapefile_path = Path(shapefile_path or self.config.counties.shapefile)
        if not shapefile_path.exists():
            raise FileNotFoundError(f"Shapefile does not exist: {shapefile_path}")
        return self._processor.prepare_shapefile(shapefile_path, self.target_crs)

    def compute_means(self, stack: xr.DataArray, gdf: gpd.GeoDataFrame) -> pd.DataFrame:
        """Wide county means (ARS index, year columns) in the common CRS."""
        return self._processor.process_variable_data(
            data=stack,
            gdf=gdf,
            target_crs=self.target_crs,
            source_crs=self.config.grid.source_crs,
        )

    def build_table(self, wide: pd.DataFrame, gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        """Long, classified county-year table with geometry."""
        return build_county_year_table(wide, gdf, self.config.classification)

    def process_stack(self, stack: xr.DataArray, gdf: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        """Compute means and build the county-year table in one step."""
        return self.build_table(self.compute_means(stack, gdf), gdf)

    def save_results(
        self,
        table: pd.DataFrame,
        output_path: Optional[Path] = None,
        metadata: Optional[Dict] = None
    ) -> Path:
        """Save the county-year table with a metadata side-car.

        Args:
            table: County-year table
            output_path: Custom output path (optional)
            metadata: Additional metadata (optional)

        Returns:
            Path where results were saved
        """
        output_manager = get_output_manager(self.config)

        save_metadata = {
            "processing_info": {
                "zonal_method": self.config.zonal.method,
                "all_touched": self.config.zonal.all_touched,
                "target_crs": self.target_crs,
                "breaks": self.config.classification.breaks,
            },
            "data_summary": {
                "counties_processed": int(table['ARS'].nunique()) if 'ARS' in table.columns else len(table),
                "years_processed": sorted(int(y) for y in table['year'].unique()) if 'year' in table.columns else [],
                "total_records": len(table)
            }
        }

        if metadata:
            save_metadata.update(metadata)

        return output_manager.save_table(table, output_path=output_path, metadata=save_metadata)

    def close(self):
        """Clean up resources."""
        self._processor.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit with cleanup."""
        self.close()
