#!/usr/bin/env python
"""Utilities for standardized output file and directory management."""

from pathlib import Path
from typing import Optional, Union, Dict, Any
import json
import logging
from datetime import datetime

import pandas as pd

from climate_grids.climate_config import get_config, ClimateGridConfig

logger = logging.getLogger(__name__)


class OutputManager:
    """Manages output files and their metadata side-cars."""

    def __init__(self, config: Optional[ClimateGridConfig] = None):
        """Initialize output manager with configuration."""
        self.config = config or get_config()

    @property
    def map_path(self) -> Path:
        return self.config.output.map_path

    @property
    def table_path(self) -> Path:
        return self.config.output.table_path

    def create_output_directory(self, output_path: Path) -> Path:
        """Create output directory and return the path."""
        output_dir = Path(output_path).parent
        output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created output directory: {output_dir}")
        return output_dir

    def save_table(self,
                   table: pd.DataFrame,
                   output_path: Optional[Path] = None,
                   metadata: Optional[Dict] = None) -> Path:
        """Save a county-year table as CSV, without geometry.

        Writes ``<name>.metadata.json`` next to the CSV when metadata is given.
        """
        output_path = Path(output_path or self.table_path)
        self.create_output_directory(output_path)

        data = pd.DataFrame(table.drop(columns="geometry", errors="ignore"))
        if "bucket" in data.columns:
            data["bucket"] = data["bucket"].astype(str)
        data.to_csv(output_path, index=False)

        logger.info(f"Saved data to: {output_path}")

        if metadata:
            self.save_metadata(output_path, metadata)

        return output_path

    def save_metadata(self, output_path: Path, metadata: Dict[str, Any]) -> Path:
        """Write a metadata side-car for an output file."""
        output_path = Path(output_path)
        metadata_path = output_path.with_suffix('.metadata.json')
        enhanced_metadata = {
            "file_info": {
                "filename": output_path.name,
                "created_at": datetime.now().isoformat(),
                "file_size_bytes": output_path.stat().st_size if output_path.exists() else None
            },
            "processing_config": self.config.model_dump(mode="json"),
            **metadata
        }

        with open(metadata_path, 'w') as f:
            json.dump(enhanced_metadata, f, indent=2, default=str)

        logger.info(f"Saved metadata to: {metadata_path}")
        return metadata_path


def load_table(path: Union[str, Path]) -> pd.DataFrame:
    """Load a saved county-year table, keeping ARS codes as strings."""
    return pd.read_csv(path, dtype={"ARS": str})


def get_output_manager(config: Optional[ClimateGridConfig] = None) -> OutputManager:
    """Get a configured output manager instance."""
    return OutputManager(config)
