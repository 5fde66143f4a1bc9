"""
Monthly aggregation and rescaling of the raw source frames.

Every source is reduced to a monthly series with columns ``month`` (first
day of the month) and ``value``. :func:`combine_series` then stacks the
series, tags each row with its source and adds a per-source min-max
rescaled ``scaled`` column in [0, 100].
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

import pandas as pd

from .config import PREPRINT_QUERY, REPORT_END, REPORT_START, TREND_THRESHOLD

SCALE_MAX: float = 100.0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def ensure_columns(df: pd.DataFrame, required: List[str]) -> None:
    """Raise an error if the DataFrame lacks any of the required columns."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise KeyError(f"Missing expected columns: {missing}")


def to_month_start(dates: pd.Series) -> pd.Series:
    """Truncate dates to the first day of their calendar month."""
    return pd.to_datetime(dates).dt.to_period("M").dt.to_timestamp()


def _monthly_sum(
    df: pd.DataFrame,
    *,
    date_col: str,
    value_col: str,
    by: Optional[List[str]] = None,
) -> pd.DataFrame:
    by = by or []
    frame = df.copy()
    frame["month"] = to_month_start(frame[date_col])
    grouped = (
        frame.groupby(["month", *by], as_index=False)[value_col]
        .sum()
        .rename(columns={value_col: "value"})
    )
    grouped["value"] = grouped["value"].astype(float)
    return grouped.sort_values([*by, "month"], ignore_index=True)[
        [*by, "month", "value"]
    ]


# ---------------------------------------------------------------------------
# Per-source monthly series
# ---------------------------------------------------------------------------


def _country_cases(cases: pd.DataFrame) -> pd.DataFrame:
    ensure_columns(cases, ["continent", "date", "new_cases"])
    # Aggregate rows ("World", "Europe", income groups) carry no continent
    countries = cases[cases["continent"].fillna("").astype(str).str.strip() != ""]
    countries = countries.copy()
    countries["new_cases"] = pd.to_numeric(
        countries["new_cases"], errors="coerce"
    ).fillna(0)
    return countries


def monthly_cases_global(cases: pd.DataFrame) -> pd.DataFrame:
    """Sum new cases over all countries per month."""
    return _monthly_sum(_country_cases(cases), date_col="date", value_col="new_cases")


def monthly_cases_by_continent(cases: pd.DataFrame) -> pd.DataFrame:
    """Sum new cases per continent and month."""
    return _monthly_sum(
        _country_cases(cases),
        date_col="date",
        value_col="new_cases",
        by=["continent"],
    )


def monthly_trends(
    trends: pd.DataFrame, threshold: float = TREND_THRESHOLD
) -> pd.DataFrame:
    """
    Sum search interest per month across keywords.

    Values below ``threshold`` (including the service's ``"<1"`` marker,
    which does not parse as a number) count as zero.
    """
    ensure_columns(trends, ["date", "value"])
    frame = trends.copy()
    frame["value"] = pd.to_numeric(frame["value"], errors="coerce").fillna(0)
    frame.loc[frame["value"] < threshold, "value"] = 0
    return _monthly_sum(frame, date_col="date", value_col="value")


def monthly_pageviews(pageviews: pd.DataFrame) -> pd.DataFrame:
    """Sum page views per month across articles."""
    ensure_columns(pageviews, ["date", "views"])
    frame = pageviews.copy()
    frame["views"] = pd.to_numeric(frame["views"], errors="coerce").fillna(0)
    return _monthly_sum(frame, date_col="date", value_col="views")


def filter_preprints(
    records: pd.DataFrame, query: List[str] = PREPRINT_QUERY
) -> pd.DataFrame:
    """Keep records whose title or abstract mentions any query term (case-insensitive)."""
    ensure_columns(records, ["date", "title", "abstract"])
    pattern = "|".join(re.escape(term) for term in query)
    title = records["title"].fillna("").astype(str)
    abstract = records["abstract"].fillna("").astype(str)
    mask = title.str.contains(pattern, case=False, regex=True) | abstract.str.contains(
        pattern, case=False, regex=True
    )

    filtered = records[mask].copy()
    filtered["date"] = pd.to_datetime(filtered["date"], errors="coerce")
    filtered = filtered.dropna(subset=["date"])
    filtered["title"] = filtered["title"].fillna("").astype(str)
    filtered["abstract"] = filtered["abstract"].fillna("").astype(str)
    return filtered.sort_values("date", kind="stable", ignore_index=True)


def monthly_preprints(records: pd.DataFrame) -> pd.DataFrame:
    """Count preprint records per month."""
    ensure_columns(records, ["date"])
    frame = records.copy()
    frame["n"] = 1
    return _monthly_sum(frame, date_col="date", value_col="n")


def restrict_window(
    series: pd.DataFrame, start: str = REPORT_START, end: str = REPORT_END
) -> pd.DataFrame:
    """Keep months between the months of ``start`` and ``end`` (inclusive)."""
    lo = pd.Timestamp(start).to_period("M").to_timestamp()
    hi = pd.Timestamp(end).to_period("M").to_timestamp()
    mask = series["month"].between(lo, hi, inclusive="both")
    return series[mask].reset_index(drop=True)


# ---------------------------------------------------------------------------
# Rescaling / combination
# ---------------------------------------------------------------------------


def rescale_minmax(values: pd.Series, upper: float = SCALE_MAX) -> pd.Series:
    """
    Linearly map ``values`` onto [0, upper].

    The minimum maps to 0 and the maximum to ``upper``. A constant series
    has no spread to preserve and maps to all zeros.
    """
    values = pd.to_numeric(values, errors="coerce").astype(float)
    lo, hi = values.min(), values.max()
    if pd.isna(lo) or hi == lo:
        return pd.Series(0.0, index=values.index)
    return (values - lo) / (hi - lo) * upper


def combine_series(series_by_source: Dict[str, pd.DataFrame]) -> pd.DataFrame:
    """
    Stack monthly series into one long table.

    Columns: month, source, value, scaled. ``scaled`` is computed within
    each source so sources with very different units become comparable.
    """
    parts = []
    for source, series in series_by_source.items():
        ensure_columns(series, ["month", "value"])
        part = series[["month", "value"]].copy()
        part["source"] = source
        part["scaled"] = rescale_minmax(part["value"])
        parts.append(part)

    if not parts:
        return pd.DataFrame(columns=["month", "source", "value", "scaled"])

    combined = pd.concat(parts, ignore_index=True)
    order = {source: i for i, source in enumerate(series_by_source)}
    combined["source_order"] = combined["source"].map(order)
    combined = (
        combined.sort_values(["source_order", "month"], ignore_index=True)
        .drop(columns=["source_order"])
    )
    return combined[["month", "source", "value", "scaled"]]


def summarize_peaks(combined: pd.DataFrame) -> pd.DataFrame:
    """Return the peak month and raw peak value for each source."""
    ensure_columns(combined, ["month", "source", "value"])
    if combined.empty:
        return pd.DataFrame(columns=["source", "peak_month", "peak_value"])
    idx = combined.groupby("source", sort=False)["value"].idxmax()
    peaks = combined.loc[idx, ["source", "month", "value"]].rename(
        columns={"month": "peak_month", "value": "peak_value"}
    )
    return peaks.reset_index(drop=True)
