"""
Sentence and word segmentation for Brand Metrics.

Splits a model response into sentences on runs of terminal punctuation
('.', '!', '?') and counts whitespace-delimited words. Everything downstream
(brand detection, depth of mention, sentiment) works on these sentences.

Both functions are pure and locale independent: the same input always
produces the same output, and empty input yields no sentences and zero
words rather than an error.

Example:
    >>> sentences = segment("Acme leads the market. Globex follows!")
    >>> [(s.position, s.text, s.word_count) for s in sentences]
    [(0, 'Acme leads the market', 4), (1, 'Globex follows', 2)]
"""

import re
from dataclasses import dataclass

from ..config.constants import SENTENCE_TERMINATORS

_SENTENCE_SPLIT = re.compile(f"[{re.escape(SENTENCE_TERMINATORS)}]+")


@dataclass(frozen=True)
class Sentence:
    """
    A sentence produced by the segmenter.

    Attributes:
        text: Sentence text, stripped, without its terminal punctuation
        position: 0-indexed position within the response
        word_count: Number of whitespace-delimited tokens
    """

    text: str
    position: int
    word_count: int

    def __post_init__(self):
        """Validate position and word_count are non-negative."""
        if self.position < 0:
            raise ValueError(f"position must be >= 0, got: {self.position}")
        if self.word_count < 0:
            raise ValueError(f"word_count must be >= 0, got: {self.word_count}")


def split_into_sentences(text: str) -> list[str]:
    """
    Split text into stripped, non-empty sentence strings.

    Example:
        >>> split_into_sentences("One. Two!! Three?")
        ['One', 'Two', 'Three']
    """
    if not text or not isinstance(text, str):
        return []

    parts = (part.strip() for part in _SENTENCE_SPLIT.split(text))
    return [part for part in parts if part]


def count_words(text: str) -> int:
    """
    Count whitespace-delimited tokens in text.

    Example:
        >>> count_words("  Acme   Corp\\tleads ")
        3
        >>> count_words("")
        0
    """
    if not text or not isinstance(text, str):
        return 0
    return len(text.split())


def segment(text: str) -> list[Sentence]:
    """
    Split text into Sentence objects with positions and word counts.

    Args:
        text: Raw response text

    Returns:
        Sentences in response order; empty list for empty or non-string input
    """
    return [
        Sentence(text=sentence, position=index, word_count=count_words(sentence))
        for index, sentence in enumerate(split_into_sentences(text))
    ]
