"""Local lexicon sentiment scoring.

Fast, offline labelling used for Reddit search results, where calling the
remote model once per item would be too slow. Uses VADER's compound score
with the conventional +/-0.05 neutral band.
"""

from functools import lru_cache
from typing import Optional

from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

POSITIVE_THRESHOLD = 0.05
NEGATIVE_THRESHOLD = -0.05


@lru_cache
def _get_analyzer() -> SentimentIntensityAnalyzer:
    return SentimentIntensityAnalyzer()


def compound_score(text: Optional[str]) -> float:
    if not text or not text.strip():
        return 0.0
    return _get_analyzer().polarity_scores(text)["compound"]


def label_sentiment(text: Optional[str]) -> str:
    """Label text as positive, negative, neutral, or unknown when empty."""
    if not text or not text.strip():
        return "unknown"

    score = compound_score(text)
    if score >= POSITIVE_THRESHOLD:
        return "positive"
    if score <= NEGATIVE_THRESHOLD:
        return "negative"
    return "neutral"
