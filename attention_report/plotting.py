import pandas as pd
import plotly.graph_objects as go

from .config import SOURCE_COLORS, SOURCE_LABELS


# ============================================================
# Configuration / constants
# ============================================================

CONTINENT_COLORS: dict[str, str] = {
    "Africa": "#8c564b",
    "Asia": "#ff7f0e",
    "Europe": "#1f77b4",
    "North America": "#d62728",
    "Oceania": "#17becf",
    "South America": "#2ca02c",
}

HOVER_TEMPLATE_SCALED = (
    "Source: %{customdata[0]}<br>"
    "Month: %{x|%b %Y}<br>"
    "Scaled: %{y:.1f} (0 = lowest month, 100 = peak month)<br>"
    "Raw value: %{customdata[1]:,.0f}<extra></extra>"
)

HOVER_TEMPLATE_RAW = "Month: %{x|%b %Y}<br>%{y:,.0f}<extra></extra>"


# ============================================================
# Helper functions
# ============================================================


def _base_layout(fig: go.Figure, title: str, y_axis_label: str) -> go.Figure:
    fig.update_xaxes(title_text="Month", dtick="M3", tickformat="%b\n%Y")
    fig.update_yaxes(title_text=y_axis_label, tickformat=",", rangemode="tozero")
    fig.update_layout(
        title=dict(text=f"<b>{title}</b>", x=0.5),
        height=500,
        legend=dict(
            orientation="h",
            x=0.5,
            y=1.02,
            xanchor="center",
            yanchor="bottom",
            bordercolor="#c7c7c7",
            borderwidth=1,
            bgcolor="#f9f9f9",
            font=dict(size=12),
        ),
        margin=dict(t=100, l=60, r=40, b=40),
        plot_bgcolor="#f5f7fb",
        hovermode="x unified",
    )
    return fig


# ============================================================
# Figures
# ============================================================


def create_combined_plot(combined: pd.DataFrame) -> go.Figure:
    """
    One line per source on the shared 0-100 scale.

    Parameters
    ----------
    combined : pd.DataFrame
        Output of ``aggregate.combine_series`` with columns
        'month', 'source', 'value' and 'scaled'.
    """
    fig = go.Figure()
    for source, sub in combined.groupby("source", sort=False):
        label = SOURCE_LABELS.get(source, source)
        color = SOURCE_COLORS.get(source)
        fig.add_trace(
            go.Scatter(
                x=sub["month"],
                y=sub["scaled"],
                mode="lines+markers",
                line=dict(width=3, color=color),
                marker=dict(size=7, color=color),
                name=label,
                hovertemplate=HOVER_TEMPLATE_SCALED,
                customdata=list(zip([label] * len(sub), sub["value"])),
            )
        )
    fig = _base_layout(
        fig, "Cases and public attention, rescaled to 0–100", "Scaled value"
    )
    fig.update_yaxes(range=[0, 105])
    return fig


def create_continent_plot(cases_continent: pd.DataFrame) -> go.Figure:
    """Stacked monthly confirmed cases per continent."""
    fig = go.Figure()
    for continent, sub in cases_continent.groupby("continent"):
        fig.add_trace(
            go.Scatter(
                x=sub["month"],
                y=sub["value"],
                mode="lines",
                stackgroup="cases",
                line=dict(width=0.5, color=CONTINENT_COLORS.get(continent)),
                name=continent,
                hovertemplate=f"{continent}<br>" + HOVER_TEMPLATE_RAW,
            )
        )
    return _base_layout(fig, "Monthly confirmed cases by continent", "New cases")


def create_series_plot(
    series: pd.DataFrame,
    source: str,
    *,
    y_axis_label: str,
    as_bars: bool = False,
) -> go.Figure:
    """Plot one monthly series in its raw units."""
    label = SOURCE_LABELS.get(source, source)
    color = SOURCE_COLORS.get(source)
    if as_bars:
        trace = go.Bar(
            x=series["month"],
            y=series["value"],
            marker_color=color,
            name=label,
            hovertemplate=HOVER_TEMPLATE_RAW,
        )
    else:
        trace = go.Scatter(
            x=series["month"],
            y=series["value"],
            mode="lines+markers",
            line=dict(width=3, color=color),
            marker=dict(size=7, color=color),
            name=label,
            hovertemplate=HOVER_TEMPLATE_RAW,
        )
    fig = go.Figure(trace)
    fig.update_layout(showlegend=False)
    return _base_layout(fig, f"{label} per month", y_axis_label)
