import plotly.graph_objects as go
import pytest

from attention_report import main
from attention_report.config import REPORT_FILENAME, WORDCLOUD_FILENAME
from attention_report.plotting import (
    create_combined_plot,
    create_continent_plot,
    create_series_plot,
)
from attention_report.report import render_report
from attention_report.text_pipeline import render_wordcloud

TOKENS = ["vaccine", "hospital", "older", "adult", "school", "transmission"] * 5 + ["vaccine"] * 3


@pytest.fixture
def payload(tables):
    return {**tables, "tokens": list(TOKENS)}


@pytest.fixture
def wordcloud_path(tmp_path):
    return render_wordcloud(TOKENS, tmp_path / "cloud.png", size=(200, 100))


def test_combined_plot_has_one_trace_per_source(tables):
    fig = create_combined_plot(tables["combined"])

    assert isinstance(fig, go.Figure)
    assert [trace.name for trace in fig.data] == [
        "Confirmed cases",
        "Search interest",
        "Wikipedia page views",
    ]
    assert all(max(trace.y) == 100 for trace in fig.data)


def test_continent_plot_stacks_continents(tables):
    fig = create_continent_plot(tables["cases_continent"])
    assert sorted(trace.name for trace in fig.data) == ["Asia", "Europe"]
    assert {trace.stackgroup for trace in fig.data} == {"cases"}


def test_series_plot_bars(tables):
    fig = create_series_plot(tables["preprints"], "preprints", y_axis_label="Preprints", as_bars=True)
    assert fig.data[0].type == "bar"
    assert list(fig.data[0].y) == [1.0, 1.0, 1.0]


def test_render_report_writes_html(payload, wordcloud_path, tmp_path):
    out = tmp_path / "site" / "report.html"

    html = render_report(payload, wordcloud_path, out)

    assert out.read_text(encoding="utf-8") == html
    assert "data:image/png;base64," in html
    assert "January 2021" in html and "March 2021" in html
    assert "Confirmed cases" in html
    assert "plotly" in html
    # top token table
    assert "<td>vaccine</td>" in html


def test_render_report_without_output_path(payload, wordcloud_path, tmp_path):
    html = render_report(payload, wordcloud_path)
    assert html.startswith("<!DOCTYPE html>")
    assert not list(tmp_path.glob("*.html"))


def test_render_report_missing_image(payload, tmp_path):
    with pytest.raises(FileNotFoundError):
        render_report(payload, tmp_path / "missing.png")


def test_build_report(monkeypatch, payload, tmp_path):
    seen = {}

    def fake_load_payload(cache_dir=None):
        seen["cache_dir"] = cache_dir
        return payload

    monkeypatch.setattr(main, "load_payload", fake_load_payload)

    report_path = main.build_report(tmp_path / "out", cache_dir=tmp_path / "cache")

    assert report_path == tmp_path / "out" / REPORT_FILENAME
    assert report_path.exists()
    assert (tmp_path / "out" / WORDCLOUD_FILENAME).exists()
    assert seen["cache_dir"] == tmp_path / "cache"
