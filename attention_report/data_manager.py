"""Data manager for loading and caching pipeline results.

This module encapsulates the logic for computing the derived tables in
``pipeline.py`` plus the cleaned preprint tokens from
``text_pipeline.py``, and persisting them to disk.  Artifacts live in one
directory per set of query parameters: the directory name carries a hash
of the sources, keywords, report window and the cache version, so
changing any of them starts a fresh cache instead of silently reusing a
stale one.  Within a directory, presence of any file means presence of
all; delete the directory to invalidate it.
"""

import hashlib
import json
import logging
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from . import config, pipeline, text_pipeline

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Cache setup
# ---------------------------------------------------------------------------

# Columns to restore as datetimes / keep as plain strings when reading back
DATE_COLUMNS: Dict[str, List[str]] = {
    "cases_global": ["month"],
    "cases_continent": ["month"],
    "trends": ["month"],
    "pageviews": ["month"],
    "preprints": ["month"],
    "combined": ["month"],
    "preprint_records": ["date"],
}
TEXT_COLUMNS: Dict[str, List[str]] = {
    "cases_continent": ["continent"],
    "combined": ["source"],
    "preprint_records": ["title", "abstract", "site", "doi"],
}


def _resolve_cache_dir() -> Path:
    """Select a writable base directory for caching.

    The lookup order is:

    1. A ``data`` folder at the repository root.
    2. A temporary directory in ``/tmp``.

    Each candidate path is tested for writability by attempting to
    create and delete a sentinel file.  The first path that succeeds
    is returned.
    """
    candidates = [
        config.DATA_DIR,
        Path(tempfile.gettempdir()) / "covid_attention_cache",
    ]
    for path in candidates:
        try:
            path.mkdir(parents=True, exist_ok=True)
            test_file = path / ".write_test"
            test_file.write_text("ok", encoding="utf-8")
            test_file.unlink()
            return path
        except OSError:
            continue

    fallback = candidates[-1]
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def query_parameters() -> Dict[str, object]:
    """Everything that changes what the fetches and text cleaning produce."""
    return {
        "version": config.CACHE_VERSION,
        "cases_source": config.CASES_SOURCE,
        "preprint_source": config.PREPRINT_SOURCE,
        "preprint_query": config.PREPRINT_QUERY,
        "pageview_project": config.PAGEVIEW_PROJECT,
        "pageview_articles": config.PAGEVIEW_ARTICLES,
        "trend_keywords": config.TREND_KEYWORDS,
        "trend_geo": config.TREND_GEO,
        "trend_threshold": config.TREND_THRESHOLD,
        "excluded_terms": config.EXCLUDED_TERMS,
        "combined_sources": config.COMBINED_SOURCES,
        "start": config.REPORT_START,
        "end": config.REPORT_END,
    }


def cache_key(params: Optional[Dict[str, object]] = None) -> str:
    """Short, stable hash of the query parameters."""
    params = query_parameters() if params is None else params
    blob = json.dumps(params, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(blob).hexdigest()[:12]


def default_cache_dir() -> Path:
    return _resolve_cache_dir() / f"cache_{config.CACHE_VERSION}_{cache_key()}"


def table_path(cache_dir: Path, name: str) -> Path:
    return cache_dir / f"{name}.csv"


def tokens_path(cache_dir: Path) -> Path:
    return cache_dir / config.TOKENS_FILENAME


def _atomic_to_csv(df: pd.DataFrame, path: Path) -> None:
    """Write a DataFrame to CSV atomically.

    The CSV is first written to a temporary file in the same directory
    and then renamed to the final location.  This avoids leaving a
    partially written file if the process is interrupted mid‑write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    df.to_csv(tmp_path, index=False)
    tmp_path.replace(path)


def _atomic_write_tokens(tokens: List[str], path: Path) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    text_pipeline.write_tokens(tokens, tmp_path)
    tmp_path.replace(path)


def read_table(cache_dir: Path, name: str) -> pd.DataFrame:
    """Read one cached table back with its original column types."""
    return pd.read_csv(
        table_path(cache_dir, name),
        parse_dates=DATE_COLUMNS.get(name, []),
        dtype={col: str for col in TEXT_COLUMNS.get(name, [])},
        keep_default_na=False,
        float_precision="round_trip",
    )


def is_populated(cache_dir: Path) -> bool:
    """True when the directory exists and holds at least one entry."""
    return cache_dir.is_dir() and any(cache_dir.iterdir())


def compute_payload() -> Dict[str, object]:
    """Runs the fetch/aggregation pipeline and the text cleaning."""
    payload: Dict[str, object] = dict(pipeline.run_pipeline())
    texts = text_pipeline.preprint_texts(payload["preprint_records"])
    payload["tokens"] = text_pipeline.clean_tokens(texts)
    return payload


def save_payload(payload: Dict[str, object], cache_dir: Path) -> None:
    """Persist every derived table and the token list."""
    cache_dir.mkdir(parents=True, exist_ok=True)
    for name in pipeline.TABLE_NAMES:
        _atomic_to_csv(payload[name], table_path(cache_dir, name))
    _atomic_write_tokens(payload["tokens"], tokens_path(cache_dir))
    logger.info("Cache written to %s", cache_dir)


def read_payload(cache_dir: Path) -> Dict[str, object]:
    """Load every cached artifact; a missing file raises ``FileNotFoundError``."""
    payload: Dict[str, object] = {
        name: read_table(cache_dir, name) for name in pipeline.TABLE_NAMES
    }
    payload["tokens"] = text_pipeline.read_tokens(tokens_path(cache_dir))
    return payload


def load_payload(
    force_recompute: bool = False, cache_dir: Optional[Path] = None
) -> Dict[str, object]:
    """
    Load data from disk cache if available, otherwise compute and save.

    Parameters
    ----------
    force_recompute : bool, optional
        If ``True``, recompute the pipeline even if cache files exist.
    cache_dir : Path, optional
        Directory holding the artifacts. Defaults to a directory named
        after :func:`cache_key` under the resolved data directory.

    Returns
    -------
    Dict[str, object]
        The tables keyed by ``pipeline.TABLE_NAMES`` plus ``"tokens"``,
        the cleaned preprint token list.
    """
    cache_dir = default_cache_dir() if cache_dir is None else Path(cache_dir)

    if not force_recompute and is_populated(cache_dir):
        logger.info("Loading pipeline output from cache directory %s", cache_dir)
        return read_payload(cache_dir)

    logger.info("Computing pipeline data – this may take a while…")
    payload = compute_payload()
    save_payload(payload, cache_dir)
    return payload
