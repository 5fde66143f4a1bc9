"""
Fetchers for the four external datasets behind the report.

Each function returns a raw, long-format DataFrame and lets any network
or parse error propagate to the caller; there is no retry.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import pandas as pd
import requests
from pytrends.request import TrendReq

from .config import (
    CASES_SOURCE,
    PAGEVIEW_API,
    PAGEVIEW_ARTICLES,
    PAGEVIEW_PROJECT,
    PREPRINT_SOURCE,
    REPORT_END,
    REPORT_START,
    REQUEST_TIMEOUT,
    TREND_GEO,
    TREND_KEYWORDS,
    TREND_LANGUAGE,
    USER_AGENT,
)

logger = logging.getLogger(__name__)

CASES_COLUMNS: List[str] = ["location", "continent", "date", "new_cases"]


def _get_json(url: str) -> dict:
    response = requests.get(
        url, headers={"User-Agent": USER_AGENT}, timeout=REQUEST_TIMEOUT
    )
    response.raise_for_status()
    return response.json()


def fetch_cases(source: str | Path = CASES_SOURCE) -> pd.DataFrame:
    """Load daily confirmed cases per location from the surveillance export."""
    logger.info("Fetching case counts from %s", source)
    df = pd.read_csv(source, usecols=CASES_COLUMNS)
    logger.info("Fetched %d case rows", len(df))
    return df


def fetch_trends(
    keywords: List[str] = TREND_KEYWORDS,
    start: str = REPORT_START,
    end: str = REPORT_END,
    *,
    geo: str = TREND_GEO,
) -> pd.DataFrame:
    """
    Fetch search interest over time and return it in long format.

    Columns: date, keyword, value. Values are kept as reported (object dtype
    where the service marks tiny values as ``"<1"``).
    """
    logger.info("Fetching search trends for %s", keywords)
    client = TrendReq(hl=TREND_LANGUAGE, tz=0)
    client.build_payload(keywords, timeframe=f"{start} {end}", geo=geo)
    wide = client.interest_over_time()
    if wide.empty:
        return pd.DataFrame(columns=["date", "keyword", "value"])

    wide = wide.drop(columns=["isPartial"], errors="ignore")
    long = (
        wide.reset_index()
        .rename(columns={wide.index.name or "index": "date"})
        .melt(id_vars="date", var_name="keyword", value_name="value")
    )
    logger.info("Fetched %d trend rows", len(long))
    return long


def fetch_pageviews(
    articles: List[str] = PAGEVIEW_ARTICLES,
    start: str = REPORT_START,
    end: str = REPORT_END,
    *,
    project: str = PAGEVIEW_PROJECT,
) -> pd.DataFrame:
    """Fetch daily user page views per article. Columns: date, article, views."""
    start_stamp = pd.Timestamp(start).strftime("%Y%m%d") + "00"
    end_stamp = pd.Timestamp(end).strftime("%Y%m%d") + "00"

    records = []
    for article in articles:
        url = PAGEVIEW_API.format(
            project=project, article=article, start=start_stamp, end=end_stamp
        )
        logger.info("Fetching page views for %s", article)
        items = _get_json(url).get("items", [])
        for item in items:
            records.append(
                {
                    "date": pd.to_datetime(item["timestamp"][:8], format="%Y%m%d"),
                    "article": article,
                    "views": item["views"],
                }
            )

    logger.info("Fetched %d page-view rows", len(records))
    return pd.DataFrame(records, columns=["date", "article", "views"])


def fetch_preprints(source: str = PREPRINT_SOURCE) -> pd.DataFrame:
    """Load the preprint collection snapshot. Columns: date, title, abstract, site, doi."""
    logger.info("Fetching preprint snapshot from %s", source)
    rels = _get_json(source).get("rels", [])
    df = pd.DataFrame(
        [
            {
                "date": r.get("rel_date"),
                "title": r.get("rel_title") or "",
                "abstract": r.get("rel_abs") or "",
                "site": r.get("rel_site") or "",
                "doi": r.get("rel_doi") or "",
            }
            for r in rels
        ],
        columns=["date", "title", "abstract", "site", "doi"],
    )
    logger.info("Fetched %d preprint records", len(df))
    return df
