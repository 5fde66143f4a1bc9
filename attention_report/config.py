"""
Configuration constants for the COVID attention report pipeline.
"""

from pathlib import Path
from typing import Dict, List, Tuple

# ======================================================
#  DATA SOURCES
# ======================================================
# Our World in Data surveillance export (one row per location/day)
CASES_SOURCE: str = "https://covid.ourworldindata.org/data/owid-covid-data.csv"

# bioRxiv/medRxiv COVID-19 collection snapshot
PREPRINT_SOURCE: str = (
    "https://connect.biorxiv.org/relate/collection_json.php?grp=181"
)

PAGEVIEW_API: str = (
    "https://wikimedia.org/api/rest_v1/metrics/pageviews/per-article/"
    "{project}/all-access/user/{article}/daily/{start}/{end}"
)
PAGEVIEW_PROJECT: str = "en.wikipedia"
PAGEVIEW_ARTICLES: List[str] = [
    "COVID-19_pandemic",
    "COVID-19",
    "SARS-CoV-2",
]

# Wikimedia rejects requests without a descriptive agent
USER_AGENT: str = "covid-attention-report/1.0 (data journalism; batch build)"
REQUEST_TIMEOUT: int = 30

# ======================================================
#  SEARCH TRENDS
# ======================================================
TREND_KEYWORDS: List[str] = ["coronavirus", "covid"]
TREND_GEO: str = ""  # worldwide
TREND_LANGUAGE: str = "en-US"

# Values below this are reported as "<1" by the service and counted as zero
TREND_THRESHOLD: float = 1.0

# ======================================================
#  PREPRINTS / TEXT
# ======================================================
PREPRINT_QUERY: List[str] = [
    "covid",
    "sars-cov-2",
    "coronavirus",
    "2019-ncov",
]

# Kept out of the word cloud so the query terms do not dominate it
EXCLUDED_TERMS: List[str] = [
    "covid",
    "covid19",
    "sars",
    "cov",
    "sarscov2",
    "coronavirus",
    "ncov",
    "2019ncov",
    "pandemic",
    "patient",
    "study",
    "result",
    "method",
    "conclusion",
    "background",
]

WORDCLOUD_SIZE: Tuple[int, int] = (1200, 600)
WORDCLOUD_MAX_WORDS: int = 200
TOP_TOKENS: int = 20

# ======================================================
#  REPORT WINDOW / COMBINATION
# ======================================================
REPORT_START: str = "2020-01-01"
REPORT_END: str = "2022-12-31"

COMBINED_SOURCES: List[str] = ["cases", "trends", "pageviews"]

SOURCE_LABELS: Dict[str, str] = {
    "cases": "Confirmed cases",
    "trends": "Search interest",
    "pageviews": "Wikipedia page views",
    "preprints": "Preprints",
}

SOURCE_COLORS: Dict[str, str] = {
    "cases": "#d62728",
    "trends": "#1f77b4",
    "pageviews": "#2ca02c",
    "preprints": "#9467bd",
}

# ======================================================
#  CACHE / OUTPUT
# ======================================================
# Bump whenever a change to the pipeline invalidates existing caches
CACHE_VERSION: str = "v1"

PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent
DATA_DIR: Path = PROJECT_ROOT / "data"
OUTPUT_DIR: Path = PROJECT_ROOT / "output"
REPORT_FILENAME: str = "covid_attention_report.html"
WORDCLOUD_FILENAME: str = "preprint_wordcloud.png"
TOKENS_FILENAME: str = "preprint_tokens.txt"
