#!/usr/bin/env python
"""Classification helpers for county mean values."""

from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from climate_grids.climate_config import DEFAULT_BREAKS, DEFAULT_LABELS


def bucket_edges(breaks: Sequence[float]) -> List[float]:
    """Widen the outer breakpoints to infinity so every value gets a bucket.

    The inner boundaries are kept as given.
    """
    edges = [float(b) for b in breaks]
    edges[0] = -np.inf
    edges[-1] = np.inf
    return edges


def classify_values(
    values,
    breaks: Optional[Sequence[float]] = None,
    labels: Optional[Sequence[str]] = None,
) -> pd.Categorical:
    """Assign each value to one of the fixed buckets.

    Intervals are closed on the right, so a value equal to a boundary
    (e.g. exactly 5) falls into the lower bucket.

    Args:
        values: Numeric values (array-like)
        breaks: Bucket breakpoints (default ``-1, 1, 5, ..., 30, 100``)
        labels: One label per bucket

    Returns:
        Ordered categorical with all bucket labels as categories
    """
    breaks = list(breaks) if breaks is not None else list(DEFAULT_BREAKS)
    labels = list(labels) if labels is not None else list(DEFAULT_LABELS)

    if len(labels) != len(breaks) - 1:
        raise ValueError(
            f"Expected {len(breaks) - 1} labels for {len(breaks)} breakpoints, got {len(labels)}"
        )

    values = np.asarray(values, dtype="float64")
    if np.isnan(values).any():
        raise ValueError("Cannot classify missing values; fill them first")

    return pd.cut(
        values,
        bins=bucket_edges(breaks),
        labels=labels,
        right=True,
        ordered=True,
    )


def bucket_table(
    breaks: Optional[Sequence[float]] = None,
    labels: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Describe the buckets as a table of label, lower and upper bound."""
    breaks = list(breaks) if breaks is not None else list(DEFAULT_BREAKS)
    labels = list(labels) if labels is not None else list(DEFAULT_LABELS)
    edges = bucket_edges(breaks)
    return pd.DataFrame({
        "bucket": labels,
        "lower_exclusive": edges[:-1],
        "upper_inclusive": edges[1:],
    })
