"""
County zonal statistics processors.

This package provides the county processor and the strategies used
to average raster cells inside county polygons.
"""

from .base_processor import BaseCountyProcessor
from .mean_processor import CountyMeanProcessor
from .processing_strategies import (
    ProcessingStrategy,
    VectorizedStrategy,
    RasterMaskStrategy,
    get_strategy,
)

__all__ = [
    # Base processor
    "BaseCountyProcessor",
    # Zonal mean processor
    "CountyMeanProcessor",
    # Processing strategies
    "ProcessingStrategy",
    "VectorizedStrategy",
    "RasterMaskStrategy",
    "get_strategy",
]
