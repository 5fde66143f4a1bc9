"""Core pipeline logic: fetch the four sources and build monthly tables.

This module orchestrates the loading, cleaning and aggregation of four
datasets:

* Confirmed COVID-19 cases per country and day (Our World in Data).
* Search interest for a fixed keyword list (Google Trends via pytrends).
* Daily Wikipedia page views for a fixed article list.
* The bioRxiv/medRxiv COVID-19 preprint collection.

The primary entry point is :func:`run_pipeline`, which returns a payload
of DataFrames: one monthly series per source, the cases split by
continent, the filtered preprint records, and the ``combined`` table in
which the configured sources are min-max rescaled onto [0, 100].
"""

from __future__ import annotations

from .aggregate import (
    combine_series,
    filter_preprints,
    monthly_cases_by_continent,
    monthly_cases_global,
    monthly_pageviews,
    monthly_preprints,
    monthly_trends,
    restrict_window,
)
from .config import COMBINED_SOURCES, PREPRINT_QUERY, REPORT_END, REPORT_START
from .fetch import fetch_cases, fetch_pageviews, fetch_preprints, fetch_trends

from typing import Dict, List

import logging
import pandas as pd

# Module‑level logger
logger = logging.getLogger(__name__)

# Payload keys, in the order they are written to the cache
TABLE_NAMES: List[str] = [
    "cases_global",
    "cases_continent",
    "trends",
    "pageviews",
    "preprints",
    "combined",
    "preprint_records",
]

# Source name in the combined table -> payload key of its monthly series
SOURCE_TABLES: Dict[str, str] = {
    "cases": "cases_global",
    "trends": "trends",
    "pageviews": "pageviews",
    "preprints": "preprints",
}


def _require_rows(df: pd.DataFrame, name: str) -> pd.DataFrame:
    if df.empty:
        raise ValueError(f"{name} fetch returned an empty DataFrame.")
    return df


def build_tables(
    cases: pd.DataFrame,
    trends: pd.DataFrame,
    pageviews: pd.DataFrame,
    preprints: pd.DataFrame,
    *,
    start: str = REPORT_START,
    end: str = REPORT_END,
    query: List[str] = PREPRINT_QUERY,
    combined_sources: List[str] = COMBINED_SOURCES,
) -> Dict[str, pd.DataFrame]:
    """Aggregate already-fetched raw frames into the report payload.

    Parameters
    ----------
    cases, trends, pageviews, preprints : pd.DataFrame
        Raw frames as returned by the fetchers in :mod:`.fetch`.
    start, end : str
        Report window; months outside it are dropped from every series.
    query : list of str
        Keywords a preprint title or abstract must mention.
    combined_sources : list of str
        Sources (keys of :data:`SOURCE_TABLES`) stacked into ``combined``.

    Returns
    -------
    Dict[str, pd.DataFrame]
        Tables keyed by :data:`TABLE_NAMES`.
    """
    records = filter_preprints(preprints, query=query)
    window = (records["date"] >= pd.Timestamp(start).to_period("M").to_timestamp()) & (
        records["date"] < pd.Timestamp(end).to_period("M").to_timestamp()
        + pd.offsets.MonthBegin(1)
    )
    records = records[window].reset_index(drop=True)

    payload: Dict[str, pd.DataFrame] = {
        "cases_global": restrict_window(monthly_cases_global(cases), start, end),
        "cases_continent": restrict_window(
            monthly_cases_by_continent(cases), start, end
        ),
        "trends": restrict_window(monthly_trends(trends), start, end),
        "pageviews": restrict_window(monthly_pageviews(pageviews), start, end),
        "preprints": monthly_preprints(records),
        "preprint_records": records,
    }

    unknown = [s for s in combined_sources if s not in SOURCE_TABLES]
    if unknown:
        raise KeyError(f"Unknown combined sources: {unknown}")
    payload["combined"] = combine_series(
        {source: payload[SOURCE_TABLES[source]] for source in combined_sources}
    )

    logger.info(
        "Built %d monthly rows per source, %d combined rows, %d preprint records",
        len(payload["cases_global"]),
        len(payload["combined"]),
        len(records),
    )
    return {name: payload[name] for name in TABLE_NAMES}


def run_pipeline(
    *,
    start: str = REPORT_START,
    end: str = REPORT_END,
) -> Dict[str, pd.DataFrame]:
    """Run the full fetch + aggregation pipeline.

    Any network or parse error raised by a fetcher propagates unchanged;
    an empty fetch result raises ``ValueError``.
    """
    # 1. Load raw inputs
    cases = _require_rows(fetch_cases(), "Case")
    trends = _require_rows(fetch_trends(start=start, end=end), "Trends")
    pageviews = _require_rows(fetch_pageviews(start=start, end=end), "Page view")
    preprints = _require_rows(fetch_preprints(), "Preprint")

    # 2. Aggregate, rescale and package
    return build_tables(cases, trends, pageviews, preprints, start=start, end=end)
