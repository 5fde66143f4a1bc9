import pandas as pd
import pytest

from attention_report.pipeline import build_tables

WINDOW = {"start": "2021-01-01", "end": "2021-03-31"}
STOP_WORDS = {"the", "of", "in", "and", "we", "a", "among", "between"}


@pytest.fixture
def raw_cases() -> pd.DataFrame:
    # Jan: 10 + 5 + 7 = 22, Feb: 3, Mar: 20 (+ missing value); "World" is an aggregate row
    return pd.DataFrame(
        {
            "location": ["France", "France", "Japan", "Japan", "World", "France", "Japan"],
            "continent": ["Europe", "Europe", "Asia", "Asia", None, "Europe", "Asia"],
            "date": [
                "2021-01-05",
                "2021-01-20",
                "2021-01-31",
                "2021-02-01",
                "2021-01-05",
                "2021-03-15",
                "2021-03-31",
            ],
            "new_cases": [10, 5, 7, 3, 999, 20, None],
        }
    )


@pytest.fixture
def raw_trends() -> pd.DataFrame:
    # Jan: 50 (+ "<1" and 0.5 below threshold), Feb: 80 + 20, Mar: 30
    return pd.DataFrame(
        {
            "date": pd.to_datetime(
                [
                    "2021-01-03",
                    "2021-01-10",
                    "2021-01-03",
                    "2021-02-07",
                    "2021-02-07",
                    "2021-03-07",
                ]
            ),
            "keyword": ["covid", "covid", "coronavirus", "covid", "coronavirus", "covid"],
            "value": [50, "<1", 0.5, 80, 20, 30],
        }
    )


@pytest.fixture
def raw_pageviews() -> pd.DataFrame:
    # Jan: 150, Feb: 400, Mar: 250
    return pd.DataFrame(
        {
            "date": pd.to_datetime(
                ["2021-01-01", "2021-01-31", "2021-02-15", "2021-03-01"]
            ),
            "article": ["COVID-19", "SARS-CoV-2", "COVID-19", "COVID-19"],
            "views": [100, 50, 400, 250],
        }
    )


@pytest.fixture
def raw_preprints() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "date": [
                "2021-01-10",
                "2021-01-20",
                "2021-02-02",
                "2021-03-03",
                "2020-12-30",
            ],
            "title": [
                "COVID-19 vaccines in older adults",
                "Influenza seasonality in Europe",
                "Masks and school transmission",
                "Coronavirus testing strategies",
                "Early COVID-19 case reports",
            ],
            "abstract": [
                "Vaccines reduced hospital admissions among older adults.",
                "A multi-year analysis of influenza.",
                "We model SARS-CoV-2 transmission between pupils.",
                "",
                "Case reports from the first weeks.",
            ],
            "site": ["medRxiv", "bioRxiv", "medRxiv", "medRxiv", "medRxiv"],
            "doi": ["10.1101/a", "10.1101/b", "10.1101/c", "10.1101/d", "10.1101/e"],
        }
    )


@pytest.fixture
def tables(raw_cases, raw_trends, raw_pageviews, raw_preprints):
    return build_tables(raw_cases, raw_trends, raw_pageviews, raw_preprints, **WINDOW)


@pytest.fixture
def simple_lemmatize():
    lemmas = {"vaccines": "vaccine", "coronaviruses": "coronavirus", "admissions": "admission"}
    return lambda word: lemmas.get(word, word)
