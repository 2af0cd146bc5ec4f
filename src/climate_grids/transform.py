"""Reshape wide county means into classified county-year records.

Operates on the wide DataFrame produced by ``CountyMeanProcessor``
(one row per county, one column per year) and turns it into the long
table used for mapping: one row per county and year, with a fixed
bucket and the county geometry attached.
"""

from typing import Optional

import geopandas as gpd
import pandas as pd
from rich.console import Console

from climate_grids.climate_config import ClassificationConfig
from climate_grids.utils.data_utils import classify_values

console = Console()

OUTPUT_COLUMNS = ["ARS", "county_name", "year", "mean_value", "bucket"]


def wide_to_long(wide: pd.DataFrame) -> pd.DataFrame:
    """Pivot year columns into rows.

    Parameters
    ----------
    wide : DataFrame
        Indexed by ARS with one column per year.

    Returns
    -------
    DataFrame
        Columns ``ARS``, ``year``, ``mean_value``; missing means become 0.
        Sorted by ARS, then year.
    """
    frame = wide.copy()
    frame.index = frame.index.astype(str)
    frame.index.name = "ARS"
    frame.columns = [int(column) for column in frame.columns]

    long_dataframe = (
        frame.reset_index()
        .melt(id_vars="ARS", var_name="year", value_name="mean_value")
    )
    long_dataframe["year"] = long_dataframe["year"].astype(int)
    long_dataframe["mean_value"] = (
        pd.to_numeric(long_dataframe["mean_value"], errors="coerce")
        .fillna(0.0)
        .astype("float64")
    )

    return long_dataframe.sort_values(["ARS", "year"]).reset_index(drop=True)


def build_county_year_table(
    wide: pd.DataFrame,
    gdf: gpd.GeoDataFrame,
    classification: Optional[ClassificationConfig] = None,
) -> gpd.GeoDataFrame:
    """Build the classified county-year table with geometry.

    Every county of ``gdf`` receives exactly one record per year of
    ``wide``. Counties missing from ``wide`` get a mean of 0.

    Parameters
    ----------
    wide : DataFrame
        Wide county means (ARS index, year columns).
    gdf : GeoDataFrame
        Counties with ``ARS`` and geometry.
    classification : ClassificationConfig, optional
        Bucket breakpoints and labels.

    Returns
    -------
    GeoDataFrame
        Columns ``ARS, county_name, year, mean_value, bucket, geometry``.
    """
    classification = classification or ClassificationConfig()

    if gdf["ARS"].duplicated().any():
        duplicated = gdf.loc[gdf["ARS"].duplicated(), "ARS"].unique().tolist()
        raise ValueError(f"Duplicate ARS codes in county layer: {duplicated[:10]}")

    counties = gdf.copy()
    counties["ARS"] = counties["ARS"].astype(str)

    aligned = wide.copy()
    aligned.index = aligned.index.astype(str)
    unknown = aligned.index.difference(counties["ARS"])
    if len(unknown):
        console.print(f"[yellow]Ignoring {len(unknown)} ARS codes not in the county layer[/yellow]")
    aligned = aligned.reindex(counties["ARS"])

    long_dataframe = wide_to_long(aligned)
    long_dataframe["bucket"] = classify_values(
        long_dataframe["mean_value"],
        breaks=classification.breaks,
        labels=classification.labels,
    )

    if "county_name" not in counties.columns:
        counties["county_name"] = counties["ARS"]

    table = counties[["ARS", "county_name", "geometry"]].merge(
        long_dataframe, on="ARS", how="inner", validate="one_to_many"
    )
    table = gpd.GeoDataFrame(
        table[OUTPUT_COLUMNS + ["geometry"]], geometry="geometry", crs=gdf.crs
    )
    table = table.sort_values(["year", "ARS"]).reset_index(drop=True)

    console.print(
        f"[green]County-year table: {table['ARS'].nunique()} counties x "
        f"{table['year'].nunique()} years = {len(table)} rows[/green]"
    )
    return table


def attach_geometry(
    records: pd.DataFrame,
    gdf: gpd.GeoDataFrame,
    classification: Optional[ClassificationConfig] = None,
) -> gpd.GeoDataFrame:
    """Rebuild a mappable table from saved county-year records.

    Buckets are recomputed from ``mean_value`` so that the categorical
    carries every bucket label.
    """
    wide = records.assign(ARS=records["ARS"].astype(str)).pivot(
        index="ARS", columns="year", values="mean_value"
    )
    return build_county_year_table(wide, gdf, classification)


def summarize_buckets(table: pd.DataFrame) -> pd.DataFrame:
    """Count counties per year and bucket, including empty buckets."""
    return (
        table.groupby(["year", "bucket"], observed=False)
        .size()
        .unstack("bucket", fill_value=0)
    )
