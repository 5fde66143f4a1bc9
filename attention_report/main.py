"""
Build the COVID attention report end to end.

Run with ``python -m attention_report.main``; there are no flags. Data
comes from the cache directory when it is populated, otherwise it is
fetched and cached first.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .config import OUTPUT_DIR, REPORT_FILENAME, WORDCLOUD_FILENAME
from .data_manager import load_payload
from .report import render_report
from .text_pipeline import render_wordcloud

logger = logging.getLogger(__name__)


def build_report(
    output_dir: Path = OUTPUT_DIR, cache_dir: Optional[Path] = None
) -> Path:
    """Load (or compute) the payload, draw the word cloud and write the HTML."""
    payload = load_payload(cache_dir=cache_dir)

    wordcloud_path = render_wordcloud(
        payload["tokens"], Path(output_dir) / WORDCLOUD_FILENAME
    )
    report_path = Path(output_dir) / REPORT_FILENAME
    render_report(payload, wordcloud_path, report_path)
    return report_path


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    report_path = build_report()

    print("\n--- REPORT BUILD COMPLETE ---")
    print(f"Saved report to {report_path}")


if __name__ == "__main__":
    main()
