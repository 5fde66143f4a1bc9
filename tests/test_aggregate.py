import pandas as pd
import pytest

from attention_report.aggregate import (
    combine_series,
    ensure_columns,
    filter_preprints,
    monthly_cases_by_continent,
    monthly_cases_global,
    monthly_pageviews,
    monthly_preprints,
    monthly_trends,
    rescale_minmax,
    restrict_window,
    summarize_peaks,
    to_month_start,
)


def _months(*stamps):
    return list(pd.to_datetime(list(stamps)))


def test_to_month_start_truncates_to_first_day():
    dates = pd.Series(["2021-01-31", "2021-02-01", "2020-02-29"])
    assert list(to_month_start(dates)) == _months("2021-01-01", "2021-02-01", "2020-02-01")


def test_ensure_columns_names_missing_columns():
    with pytest.raises(KeyError, match="new_cases"):
        ensure_columns(pd.DataFrame({"date": []}), ["date", "new_cases"])


def test_global_cases_sum_countries_within_month(raw_cases):
    monthly = monthly_cases_global(raw_cases)

    assert list(monthly.columns) == ["month", "value"]
    assert list(monthly["month"]) == _months("2021-01-01", "2021-02-01", "2021-03-01")
    # the "World" aggregate row is not double counted
    assert list(monthly["value"]) == [22.0, 3.0, 20.0]


def test_continent_cases_one_row_per_month_and_continent(raw_cases):
    monthly = monthly_cases_by_continent(raw_cases)

    assert not monthly.duplicated(["month", "continent"]).any()
    asia = monthly[monthly["continent"] == "Asia"]
    europe = monthly[monthly["continent"] == "Europe"]
    assert list(asia["value"]) == [7.0, 3.0, 0.0]
    assert list(europe["month"]) == _months("2021-01-01", "2021-03-01")
    assert list(europe["value"]) == [15.0, 20.0]
    assert monthly["value"].sum() == monthly_cases_global(raw_cases)["value"].sum()


def test_months_strictly_increasing_within_group(raw_cases):
    monthly = monthly_cases_by_continent(raw_cases)
    for _, group in monthly.groupby("continent"):
        assert group["month"].is_monotonic_increasing
        assert group["month"].is_unique


def test_trends_below_threshold_count_as_zero(raw_trends):
    monthly = monthly_trends(raw_trends)
    assert list(monthly["value"]) == [50.0, 100.0, 30.0]


def test_trends_threshold_is_configurable(raw_trends):
    monthly = monthly_trends(raw_trends, threshold=40)
    assert list(monthly["value"]) == [50.0, 80.0, 0.0]


def test_pageviews_summed_across_articles(raw_pageviews):
    monthly = monthly_pageviews(raw_pageviews)
    assert list(monthly["value"]) == [150.0, 400.0, 250.0]


def test_filter_preprints_matches_title_or_abstract_case_insensitively(raw_preprints):
    filtered = filter_preprints(raw_preprints)

    assert "Influenza seasonality in Europe" not in set(filtered["title"])
    # matched on abstract only
    assert "Masks and school transmission" in set(filtered["title"])
    assert len(filtered) == 4
    assert filtered["date"].is_monotonic_increasing


def test_filter_preprints_with_custom_query(raw_preprints):
    filtered = filter_preprints(raw_preprints, query=["influenza"])
    assert list(filtered["title"]) == ["Influenza seasonality in Europe"]


def test_monthly_preprints_counts_records(raw_preprints):
    monthly = monthly_preprints(filter_preprints(raw_preprints))
    assert list(monthly["month"]) == _months(
        "2020-12-01", "2021-01-01", "2021-02-01", "2021-03-01"
    )
    assert list(monthly["value"]) == [1.0, 1.0, 1.0, 1.0]


def test_restrict_window_is_inclusive_of_partial_months():
    series = pd.DataFrame(
        {
            "month": _months("2020-12-01", "2021-01-01", "2021-03-01", "2021-04-01"),
            "value": [1.0, 2.0, 3.0, 4.0],
        }
    )
    kept = restrict_window(series, "2021-01-15", "2021-03-02")
    assert list(kept["value"]) == [2.0, 3.0]


def test_rescale_maps_extremes_to_0_and_100():
    values = pd.Series([5.0, 15.0, 10.0, 25.0])
    scaled = rescale_minmax(values)

    assert scaled.min() == 0.0
    assert scaled.max() == 100.0
    assert list(scaled) == [0.0, 50.0, 25.0, 100.0]


def test_rescale_is_monotonic():
    values = pd.Series([3.0, 1e6, 42.0, 7.5, 999.0])
    scaled = rescale_minmax(values)
    assert list(values.sort_values().index) == list(scaled.sort_values().index)


def test_rescale_constant_series_is_zero():
    scaled = rescale_minmax(pd.Series([4.0, 4.0, 4.0]))
    assert list(scaled) == [0.0, 0.0, 0.0]


def test_combine_series_scales_each_source_separately(raw_cases, raw_pageviews):
    combined = combine_series(
        {
            "cases": monthly_cases_global(raw_cases),
            "pageviews": monthly_pageviews(raw_pageviews),
        }
    )

    assert list(combined.columns) == ["month", "source", "value", "scaled"]
    assert list(combined["source"].unique()) == ["cases", "pageviews"]
    for _, group in combined.groupby("source"):
        assert group["scaled"].min() == 0.0
        assert group["scaled"].max() == 100.0

    views = combined[combined["source"] == "pageviews"]
    assert list(views["scaled"]) == [0.0, 100.0, 40.0]


def test_combine_series_empty():
    combined = combine_series({})
    assert combined.empty
    assert list(combined.columns) == ["month", "source", "value", "scaled"]


def test_summarize_peaks(tables):
    peaks = summarize_peaks(tables["combined"]).set_index("source")

    assert peaks.loc["cases", "peak_month"] == pd.Timestamp("2021-01-01")
    assert peaks.loc["cases", "peak_value"] == 22.0
    assert peaks.loc["trends", "peak_month"] == pd.Timestamp("2021-02-01")
    assert peaks.loc["pageviews", "peak_value"] == 400.0
