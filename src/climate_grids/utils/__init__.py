"""
Utility modules for county grid processing.

This package provides spatial helpers, bucket classification,
output management and logging setup.
"""

from .spatial_utils import (
    get_year_information,
    clip_county_data,
    create_county_raster,
)
from .data_utils import (
    bucket_edges,
    bucket_table,
    classify_values,
)
from .output_utils import (
    OutputManager,
    get_output_manager,
    load_table,
)
from .logging_utils import setup_logging

__all__ = [
    # Spatial utilities
    "get_year_information",
    "clip_county_data",
    "create_county_raster",
    # Classification utilities
    "bucket_edges",
    "bucket_table",
    "classify_values",
    # Output utilities
    "OutputManager",
    "get_output_manager",
    "load_table",
    # Logging
    "setup_logging",
]
