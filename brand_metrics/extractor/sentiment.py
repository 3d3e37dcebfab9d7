"""
Keyword sentiment scoring for brand mentions.

Assigns coarse polarity to the sentences already attributed to a brand. Each
keyword counts once per sentence when it appears anywhere in the lowercased
text, so "excellent" also hits "excel" and "unlimited" hits "limited". A
sentence is positive when more positive keywords appear than negative ones,
negative in the opposite case, and neutral otherwise.

    sentiment_score = (positive - negative) / attributed sentences * 100

This is a deterministic heuristic, not a classifier. The keyword lists are
calibration defaults configurable through SentimentLexicon.
"""

import logging
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any, Protocol

from ..config.constants import SCORE_PRECISION
from ..config.schema import SentimentLexicon

logger = logging.getLogger(__name__)


class _HasText(Protocol):
    text: str


@dataclass(frozen=True)
class SentimentResult:
    """
    Sentiment of a brand's attributed sentences within one response.

    Attributes:
        sentiment_score: (positive - negative) / total * 100, in [-100, 100]
        positive_mentions: Sentences classified positive
        negative_mentions: Sentences classified negative
        neutral_mentions: Sentences classified neutral
    """

    sentiment_score: float = 0.0
    positive_mentions: int = 0
    negative_mentions: int = 0
    neutral_mentions: int = 0

    def __post_init__(self):
        """Validate score range."""
        if not -100.0 <= self.sentiment_score <= 100.0:
            raise ValueError(
                f"sentiment_score must be in range [-100, 100], got: {self.sentiment_score}"
            )

    @property
    def total_mentions(self) -> int:
        return self.positive_mentions + self.negative_mentions + self.neutral_mentions

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SentimentResult":
        return cls(
            sentiment_score=float(data.get("sentiment_score", 0.0)),
            positive_mentions=int(data.get("positive_mentions", 0)),
            negative_mentions=int(data.get("negative_mentions", 0)),
            neutral_mentions=int(data.get("neutral_mentions", 0)),
        )


def _matched_keywords(text: str, keywords: Iterable[str]) -> list[str]:
    """Distinct keywords occurring anywhere in the lowercased text."""
    lowered = text.lower()
    return [keyword for keyword in keywords if keyword in lowered]


class SentimentScorer:
    """
    Counts positive and negative keywords in brand-bearing sentences.

    Args:
        lexicon: Keyword lists (production defaults if None)

    Example:
        >>> scorer = SentimentScorer()
        >>> scorer.classify("Acme is the leading and most reliable option")
        'positive'
    """

    def __init__(self, lexicon: SentimentLexicon | None = None):
        self.lexicon = lexicon or SentimentLexicon()

    def classify(self, text: str) -> str:
        """Return "positive", "negative" or "neutral" for one sentence."""
        positive = len(_matched_keywords(text, self.lexicon.positive_keywords))
        negative = len(_matched_keywords(text, self.lexicon.negative_keywords))

        if positive > negative:
            return "positive"
        if negative > positive:
            return "negative"
        return "neutral"

    def score(self, sentences: Iterable[_HasText]) -> SentimentResult:
        """
        Score the sentences attributed to one brand in one response.

        Returns an all-zero result when there are no sentences.
        """
        counts = {"positive": 0, "negative": 0, "neutral": 0}
        for sentence in sentences:
            counts[self.classify(sentence.text)] += 1

        total = sum(counts.values())
        if total == 0:
            return SentimentResult()

        raw_score = (counts["positive"] - counts["negative"]) / total * 100
        return SentimentResult(
            sentiment_score=round(raw_score, SCORE_PRECISION),
            positive_mentions=counts["positive"],
            negative_mentions=counts["negative"],
            neutral_mentions=counts["neutral"],
        )
