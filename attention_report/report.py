from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
import plotly.graph_objects as go
from jinja2 import Environment, FileSystemLoader

from .aggregate import summarize_peaks
from .config import SOURCE_LABELS, TOP_TOKENS
from .plotting import create_combined_plot, create_continent_plot, create_series_plot
from .text_pipeline import token_frequencies

logger = logging.getLogger(__name__)


def _get_template_env() -> Environment:
    """Create Jinja2 environment with templates directory."""
    templates_dir = Path(__file__).parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _format_count(value: float) -> str:
    """Format large counts as human-readable strings (K, M)."""
    if abs(value) >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    elif abs(value) >= 1_000:
        return f"{value / 1_000:.1f}K"
    else:
        return f"{value:,.0f}"


def _figure_html(fig: go.Figure, include_js: bool) -> str:
    return fig.to_html(
        full_html=False,
        include_plotlyjs="cdn" if include_js else False,
        config={"displaylogo": False},
    )


def _encode_image(path: Path) -> str:
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")


def _prepare_context(
    payload: Dict[str, Any], tokens: List[str], wordcloud_path: Path
) -> Dict[str, Any]:
    """
    Prepare template context from the pipeline payload.

    Returns dictionary suitable for passing to the Jinja2 template.
    """
    combined: pd.DataFrame = payload["combined"]
    records: pd.DataFrame = payload["preprint_records"]

    peaks = [
        {
            "source": SOURCE_LABELS.get(row.source, row.source),
            "month": row.peak_month.strftime("%B %Y"),
            "value": _format_count(row.peak_value),
        }
        for row in summarize_peaks(combined).itertuples(index=False)
    ]

    figures = [
        create_combined_plot(combined),
        create_continent_plot(payload["cases_continent"]),
        create_series_plot(payload["trends"], "trends", y_axis_label="Summed index"),
        create_series_plot(payload["pageviews"], "pageviews", y_axis_label="Views"),
        create_series_plot(
            payload["preprints"], "preprints", y_axis_label="Preprints", as_bars=True
        ),
    ]
    charts = [_figure_html(fig, include_js=(i == 0)) for i, fig in enumerate(figures)]

    months = combined["month"]
    return {
        "period_start": months.min().strftime("%B %Y") if len(months) else "",
        "period_end": months.max().strftime("%B %Y") if len(months) else "",
        "sources": [SOURCE_LABELS.get(s, s) for s in combined["source"].unique()],
        "peaks": peaks,
        "combined_chart": charts[0],
        "continent_chart": charts[1],
        "trends_chart": charts[2],
        "pageviews_chart": charts[3],
        "preprints_chart": charts[4],
        "n_preprints": len(records),
        "n_tokens": len(tokens),
        "top_tokens": token_frequencies(tokens, TOP_TOKENS).to_dict("records"),
        "wordcloud_b64": _encode_image(wordcloud_path),
    }


def render_report(
    payload: Dict[str, Any],
    wordcloud_path: Path,
    output_path: Optional[Path] = None,
) -> str:
    """
    Render the HTML report from the payload and the word-cloud image.

    Args:
        payload: Tables from ``data_manager.load_payload`` including "tokens"
        wordcloud_path: PNG produced by ``text_pipeline.render_wordcloud``
        output_path: Where to write the HTML; nothing is written when None

    Returns:
        Complete HTML string (charts embedded, plotly.js via CDN)

    Failure modes:
        - Raises jinja2.TemplateError if template is malformed
        - Raises FileNotFoundError if the word-cloud image is missing
    """
    env = _get_template_env()
    template = env.get_template("report.html.j2")
    context = _prepare_context(payload, payload["tokens"], wordcloud_path)
    html = template.render(**context)

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(html, encoding="utf-8")
        logger.info("Report written to %s", output_path)
    return html
