"""
Text pipeline: preprint title + abstract -> cleaned tokens -> word cloud.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import nltk
import pandas as pd
from nltk.corpus import stopwords
from nltk.stem import WordNetLemmatizer
from wordcloud import WordCloud

from .aggregate import ensure_columns
from .config import EXCLUDED_TERMS, TOP_TOKENS, WORDCLOUD_MAX_WORDS, WORDCLOUD_SIZE

logger = logging.getLogger(__name__)

NLTK_RESOURCES = {
    "stopwords": "corpora/stopwords",
    "wordnet": "corpora/wordnet",
    "omw-1.4": "corpora/omw-1.4",
}


def ensure_nltk_resources() -> None:
    """Download the NLTK corpora used here if they are not installed yet."""
    for name, path in NLTK_RESOURCES.items():
        try:
            nltk.data.find(path)
        except LookupError:
            logger.info("Downloading NLTK resource %s", name)
            nltk.download(name, quiet=True)


def preprint_texts(records: pd.DataFrame) -> List[str]:
    """Concatenate title and abstract of each preprint record."""
    ensure_columns(records, ["title", "abstract"])
    title = records["title"].fillna("").astype(str)
    abstract = records["abstract"].fillna("").astype(str)
    return (title + " " + abstract).tolist()


def _strip_non_alnum(token: str) -> str:
    return "".join(ch for ch in token if ch.isalnum())


def clean_tokens(
    texts: Iterable[str],
    *,
    stop_words: Optional[Iterable[str]] = None,
    excluded: Iterable[str] = EXCLUDED_TERMS,
    lemmatize: Optional[Callable[[str], str]] = None,
) -> List[str]:
    """
    Turn free text into a flat list of word-cloud tokens.

    Each text is split on whitespace; every token is stripped of
    non-alphanumeric characters and lowercased, then stop words and
    ``excluded`` terms are dropped and the rest lemmatized. The filters run
    again on the lemma, so a plural of an excluded term cannot slip back
    in. Tokens of one character or less are discarded.

    ``stop_words`` defaults to NLTK's English list and ``lemmatize`` to the
    WordNet lemmatizer.
    """
    if stop_words is None or lemmatize is None:
        ensure_nltk_resources()
    stop = set(stopwords.words("english")) if stop_words is None else set(stop_words)
    lemmatize = lemmatize or WordNetLemmatizer().lemmatize
    drop = stop | {term.lower() for term in excluded}

    tokens: List[str] = []
    for text in texts:
        for raw in str(text).split():
            word = _strip_non_alnum(raw).lower()
            if len(word) <= 1 or word in drop:
                continue
            lemma = lemmatize(word).lower()
            if len(lemma) <= 1 or lemma in drop:
                continue
            tokens.append(lemma)
    return tokens


def token_frequencies(tokens: List[str], top_n: int = TOP_TOKENS) -> pd.DataFrame:
    """Most frequent tokens, ties broken by first appearance."""
    counts = Counter(tokens).most_common(top_n)
    return pd.DataFrame(counts, columns=["token", "count"])


def write_tokens(tokens: List[str], path: Path) -> None:
    """Write one token per line."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{token}\n" for token in tokens), encoding="utf-8")


def read_tokens(path: Path) -> List[str]:
    return [line for line in path.read_text(encoding="utf-8").splitlines() if line]


def render_wordcloud(
    tokens: List[str],
    path: Path,
    *,
    size: tuple = WORDCLOUD_SIZE,
    max_words: int = WORDCLOUD_MAX_WORDS,
) -> Path:
    """
    Lay out token frequencies as a PNG word cloud.

    Collocations are enabled so frequent bigrams ("public health") are
    placed as one phrase.
    """
    if not tokens:
        raise ValueError("Cannot render a word cloud from an empty token list.")

    width, height = size
    cloud = WordCloud(
        width=width,
        height=height,
        background_color="white",
        colormap="viridis",
        max_words=max_words,
        collocations=True,
        normalize_plurals=False,
        stopwords=set(),
        random_state=42,
    )
    cloud.generate(" ".join(tokens))

    path.parent.mkdir(parents=True, exist_ok=True)
    cloud.to_file(str(path))
    logger.info("Word cloud written to %s", path)
    return path
