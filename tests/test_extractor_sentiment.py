"""
Tests for extractor.sentiment module.

Tests cover:
- Sentence polarity from keyword counts
- Lowercase substring keyword matching, one count per distinct keyword
- Score computation and rounding
- Custom lexicons and lexicon validation
"""

from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from brand_metrics.config.schema import SentimentLexicon
from brand_metrics.extractor.sentiment import SentimentResult, SentimentScorer


def sentences(*texts):
    return [SimpleNamespace(text=text) for text in texts]


@pytest.fixture
def scorer():
    return SentimentScorer()


class TestClassify:
    """Test suite for SentimentScorer.classify()."""

    def test_positive(self, scorer):
        """Test positive keywords dominate."""
        assert scorer.classify("Acme is the leading and most reliable option") == "positive"

    def test_negative(self, scorer):
        """Test negative keywords dominate."""
        assert scorer.classify("Acme is expensive and slow") == "negative"

    def test_tie_is_neutral(self, scorer):
        """Test equal counts are neutral."""
        assert scorer.classify("Acme is the best but expensive") == "neutral"

    def test_no_keywords_is_neutral(self, scorer):
        """Test sentences without keywords are neutral."""
        assert scorer.classify("Acme was founded in Ohio") == "neutral"

    def test_case_insensitive(self, scorer):
        """Test keywords match regardless of case."""
        assert scorer.classify("EXCELLENT support from Acme") == "positive"

    def test_substring_match(self, scorer):
        """Test 'limited' is found inside 'unlimited'."""
        assert scorer.classify("The unlimited plan from Acme") == "negative"

    def test_overlapping_keywords_both_count(self, scorer):
        """Test 'excellent' also counts 'excel', outweighing one negative."""
        assert scorer.classify("Acme is excellent but expensive") == "positive"

    def test_repeated_keyword_counts_once(self, scorer):
        """Test a keyword repeated in a sentence is counted once."""
        assert scorer.classify("Acme is slow, slow, slow but the best and trusted") == "positive"

    def test_hyphenated_keyword(self, scorer):
        """Test multi-part keywords such as 'well-regarded'."""
        assert scorer.classify("Acme is well-regarded") == "positive"


class TestScore:
    """Test suite for SentimentScorer.score()."""

    def test_mixed(self, scorer):
        """Test (2 positive - 1 negative) / 4 sentences."""
        result = scorer.score(
            sentences(
                "Acme is the best",
                "Acme is slow",
                "Acme exists",
                "Acme is trusted",
            )
        )

        assert result == SentimentResult(
            sentiment_score=25.0,
            positive_mentions=2,
            negative_mentions=1,
            neutral_mentions=1,
        )
        assert result.total_mentions == 4

    def test_rounded(self, scorer):
        """Test scores are rounded to two decimals."""
        result = scorer.score(sentences("Acme is reliable", "Acme exists", "Acme again"))
        assert result.sentiment_score == 33.33

    def test_all_negative(self, scorer):
        """Test the lower bound of the score."""
        result = scorer.score(sentences("Acme is poor", "Acme is outdated"))
        assert result.sentiment_score == -100.0

    def test_empty(self, scorer):
        """Test no sentences yields an all-zero result."""
        assert scorer.score([]) == SentimentResult()

    def test_custom_lexicon(self):
        """Test a configured lexicon replaces the defaults."""
        scorer = SentimentScorer(
            SentimentLexicon(positive_keywords=["snappy"], negative_keywords=["clunky"])
        )

        assert scorer.classify("Acme feels snappy") == "positive"
        assert scorer.classify("Acme is the best") == "neutral"


class TestSentimentLexicon:
    """Test suite for SentimentLexicon validation."""

    def test_normalizes_keywords(self):
        """Test keywords are lowercased, stripped and deduplicated."""
        lexicon = SentimentLexicon(positive_keywords=[" Fast", "fast", "GOOD"])
        assert lexicon.positive_keywords == ("fast", "good")

    def test_empty_list_rejected(self):
        """Test an empty keyword list is a configuration error."""
        with pytest.raises(ValidationError, match="keyword list cannot be empty"):
            SentimentLexicon(negative_keywords=[])


class TestSentimentResult:
    """Test suite for SentimentResult."""

    def test_out_of_range(self):
        """Test scores outside [-100, 100] are rejected."""
        with pytest.raises(ValueError, match="sentiment_score must be in range"):
            SentimentResult(sentiment_score=150.0)

    def test_from_dict_defaults(self):
        """Test missing fields default to zero."""
        assert SentimentResult.from_dict({}) == SentimentResult()
