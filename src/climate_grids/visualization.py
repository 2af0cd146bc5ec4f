#!/usr/bin/env python
"""Faceted choropleth maps of classified county-year values."""

import math
from pathlib import Path
from typing import Optional

import geopandas as gpd
import matplotlib
matplotlib.use('Agg')  # Use non-interactive backend
import matplotlib.pyplot as plt
from matplotlib.patches import Patch
from rich.console import Console

from climate_grids.climate_config import MapConfig

console = Console()


def render_faceted_map(
    table: gpd.GeoDataFrame,
    output_path: Path,
    map_config: Optional[MapConfig] = None,
) -> Path:
    """Draw one choropleth panel per year and save the figure.

    Every panel colours counties by their bucket with the same colour for
    the same bucket across years. The legend lists all buckets, including
    ones not observed.

    Args:
        table: County-year table with ``year``, ``bucket`` and geometry
        output_path: Image file to write
        map_config: Size, resolution, layout and colours

    Returns:
        Path to the saved image
    """
    map_config = map_config or MapConfig()

    if table.empty:
        raise ValueError("Cannot render a map from an empty table")

    bucket_dtype = table['bucket'].dtype
    if not hasattr(bucket_dtype, 'categories'):
        raise ValueError("Column 'bucket' must be categorical")

    labels = list(bucket_dtype.categories)
    if len(labels) != len(map_config.colors):
        raise ValueError(f"Expected {len(labels)} colours, got {len(map_config.colors)}")

    colour_for = dict(zip(labels, map_config.colors))
    years = sorted(table['year'].unique())
    ncols = min(map_config.ncols, len(years))
    nrows = math.ceil(len(years) / ncols)

    console.print(f"[blue]Rendering {len(years)} panels ({nrows}x{ncols})...[/blue]")

    fig, axes = plt.subplots(nrows, ncols, figsize=map_config.figsize, dpi=map_config.dpi, squeeze=False)
    if map_config.title:
        fig.suptitle(map_config.title, fontsize=12, fontweight='bold')

    axes_flat = axes.flatten()

    for ax, year in zip(axes_flat, years):
        year_data = table[table['year'] == year]
        year_data.plot(
            ax=ax,
            color=year_data['bucket'].map(colour_for).astype(object).tolist(),
            edgecolor=map_config.edgecolor,
            linewidth=map_config.linewidth,
        )
        ax.set_title(str(year), fontsize=9, fontweight='bold')
        ax.set_aspect('equal')
        ax.axis('off')

    # Hide unused panels
    for ax in axes_flat[len(years):]:
        ax.axis('off')

    handles = [
        Patch(facecolor=colour_for[label], edgecolor=map_config.edgecolor, label=label)
        for label in labels
    ]
    fig.legend(
        handles=handles,
        title=map_config.legend_title,
        loc='center right',
        fontsize=7,
        title_fontsize=8,
        frameon=False,
    )
    fig.subplots_adjust(left=0.02, right=0.86, bottom=0.02, top=0.9, wspace=0.05, hspace=0.15)

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    console.print(f"Saving map to {output_path}...")
    # No tight bbox: the image keeps the configured pixel size
    fig.savefig(output_path, dpi=map_config.dpi)
    plt.close(fig)

    console.print(f"[green]Map saved ({map_config.width_px}x{map_config.height_px} px)[/green]")
    return output_path
