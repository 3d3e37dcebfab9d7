"""
Tests for aggregator.aggregator and aggregator.models.

Tests cover:
- Visibility, share of voice, citation share, depth and sentiment metrics
- Average position and top-three placement counts
- Rank assignment, tie-breaking and rank change
- Scope and date window filtering
- Scope and window validation
- All-scope aggregation with a previous window
"""

import logging
from datetime import UTC, datetime, timedelta

import pytest

from brand_metrics.aggregator.aggregator import (
    MetricsAggregator,
    aggregate_all_scopes,
    scopes_for,
)
from brand_metrics.aggregator.models import (
    RANKED_METRICS,
    AggregationScope,
    DateRange,
    RankedMetric,
    ScopedExtraction,
)
from brand_metrics.config.schema import AggregationSettings, MetricsConfig
from brand_metrics.exceptions import DateRangeError, ScopeError
from brand_metrics.extractor.citation_classifier import Citation
from brand_metrics.extractor.parser import (
    BrandMentionRecord,
    ExtractionResult,
    MentionSentence,
    ResponseSummary,
)
from brand_metrics.extractor.sentiment import SentimentResult


def brand(
    name,
    first_position=None,
    mentions=1,
    depth=0.0,
    hyperlinks=0,
    sentiment=None,
):
    """Build a BrandMentionRecord; first_position=None means not mentioned."""
    if first_position is None:
        return BrandMentionRecord(
            brand_name=name, depth_of_mention=depth, hyperlink_count=hyperlinks
        )

    sentences = tuple(
        MentionSentence(
            text=f"{name} sentence",
            position=first_position - 1 + i,
            word_count=2,
            confidence=1.0,
            detection_method="exact",
        )
        for i in range(mentions)
    )
    return BrandMentionRecord(
        brand_name=name,
        mentioned=True,
        first_position=first_position,
        mention_count=mentions,
        sentences=sentences,
        total_word_count=2 * mentions,
        depth_of_mention=depth,
        sentiment=sentiment or SentimentResult(neutral_mentions=mentions),
        hyperlink_count=hyperlinks,
    )


def record(*brands, citations=(), hyperlinks=0, **metadata):
    """Wrap brand records into a ScopedExtraction."""
    extraction = ExtractionResult(
        response=ResponseSummary(
            text="",
            total_sentences=5,
            total_words=20,
            total_hyperlinks=hyperlinks,
            citations=tuple(citations),
        ),
        brand_metrics=tuple(brands),
    )
    return ScopedExtraction(extraction=extraction, **metadata)


def day(n):
    return datetime(2025, 11, n, tzinfo=UTC)


@pytest.fixture
def aggregator():
    return MetricsAggregator()


class TestVisibility:
    """Test suite for visibility score and its ranking."""

    def test_visibility_ranked_descending(self, aggregator):
        """Test 8/10 and 4/10 mentioned responses rank 1 and 2."""
        records = []
        for i in range(10):
            records.append(
                record(
                    brand("Alpha", 1 if i < 8 else None),
                    brand("Bravo", 2 if i < 4 else None),
                )
            )

        summary = aggregator.summarize(records, brand_names=["Bravo", "Alpha"])
        alpha = summary.get("Alpha")
        bravo = summary.get("Bravo")

        assert summary.total_responses == 10
        assert [b.brand_name for b in summary.brands] == ["Bravo", "Alpha"]
        assert alpha.visibility_score == RankedMetric(value=80.0, rank=1)
        assert bravo.visibility_score == RankedMetric(value=40.0, rank=2)
        assert alpha.appearances == 8

    def test_brand_missing_from_record_counts_as_unmentioned(self, aggregator):
        """Test the denominator is every response in scope."""
        records = [record(brand("Alpha", 1)), record(brand("Bravo", 1))]

        summary = aggregator.summarize(records)

        assert summary.get("Alpha").visibility_score.value == 50.0
        assert summary.get("Bravo").visibility_score.value == 50.0

    def test_ties_ranked_by_brand_order(self, aggregator):
        """Test equal values get distinct ranks in brand order."""
        records = [record(brand("Alpha", 1), brand("Bravo", 2))]

        summary = aggregator.summarize(records, brand_names=["Bravo", "Alpha"])

        assert summary.get("Bravo").visibility_score.rank == 1
        assert summary.get("Alpha").visibility_score.rank == 2


class TestShares:
    """Test suite for share of voice, citation share, depth and sentiment."""

    def test_share_of_voice(self, aggregator):
        """Test mentions over all brand mentions."""
        summary = aggregator.summarize(
            [record(brand("Alpha", 1, mentions=2), brand("Bravo", 3, mentions=1))]
        )

        assert summary.get("Alpha").share_of_voice.value == 66.67
        assert summary.get("Bravo").share_of_voice.value == 33.33
        assert summary.get("Alpha").total_mentions.value == 2

    def test_citation_share(self, aggregator):
        """Test brand hyperlinks over all brand hyperlinks."""
        summary = aggregator.summarize(
            [
                record(brand("Alpha", 1, hyperlinks=2), brand("Bravo", None, hyperlinks=1)),
                record(brand("Alpha", 1, hyperlinks=1), brand("Bravo", None)),
            ]
        )

        assert summary.get("Alpha").citation_share.value == 75.0
        assert summary.get("Bravo").citation_share.value == 25.0
        assert summary.get("Alpha").brand_hyperlinks == 3

    def test_citation_share_without_links(self, aggregator):
        """Test zero hyperlinks gives zero share, not an error."""
        summary = aggregator.summarize([record(brand("Alpha", 1))])
        assert summary.get("Alpha").citation_share.value == 0.0

    def test_depth_mean_over_scope(self, aggregator):
        """Test depth averages over every response in scope."""
        summary = aggregator.summarize(
            [
                record(brand("Alpha", 1, depth=10.0), brand("Bravo", 2, depth=4.0)),
                record(brand("Alpha", 1, depth=6.0), brand("Bravo", None)),
            ]
        )

        assert summary.get("Alpha").depth_of_mention.value == 8.0
        assert summary.get("Bravo").depth_of_mention.value == 2.0

    def test_sentiment(self, aggregator):
        """Test mean score over mentioned responses and positive share."""
        summary = aggregator.summarize(
            [
                record(
                    brand(
                        "Alpha",
                        1,
                        mentions=2,
                        sentiment=SentimentResult(
                            sentiment_score=50.0, positive_mentions=1, neutral_mentions=1
                        ),
                    )
                ),
                record(brand("Alpha", 1)),
                record(brand("Alpha", None)),
            ]
        )
        alpha = summary.get("Alpha")

        assert alpha.sentiment_score.value == 25.0
        assert alpha.sentiment_share == 33.33
        assert alpha.sentiment_breakdown == {"positive": 1, "negative": 0, "neutral": 2}


class TestPositions:
    """Test suite for average position and placement counts."""

    def test_average_position_never_mentioned_last(self, aggregator):
        """Test lower is better and unmentioned brands rank last."""
        summary = aggregator.summarize(
            [record(brand("Alpha", 2), brand("Bravo", None), brand("Charlie", 1))]
        )

        assert summary.get("Charlie").average_position == RankedMetric(1.0, 1)
        assert summary.get("Alpha").average_position == RankedMetric(2.0, 2)
        assert summary.get("Bravo").average_position == RankedMetric(0.0, 3)

    def test_average_position_mean(self, aggregator):
        """Test the mean of first positions where mentioned."""
        summary = aggregator.summarize(
            [record(brand("Alpha", 1)), record(brand("Alpha", 4)), record(brand("Alpha", None))]
        )
        assert summary.get("Alpha").average_position.value == 2.5

    def test_placement_counts(self, aggregator):
        """Test first/second/third placements per response."""
        summary = aggregator.summarize(
            [
                record(brand("Alpha", 1), brand("Bravo", 2), brand("Charlie", 5)),
                record(brand("Alpha", 3), brand("Bravo", 1), brand("Charlie", None)),
            ]
        )
        alpha = summary.get("Alpha")
        bravo = summary.get("Bravo")
        charlie = summary.get("Charlie")

        assert (alpha.first_position_count.value, alpha.second_position_count.value) == (1, 1)
        assert (bravo.first_position_count.value, bravo.second_position_count.value) == (1, 1)
        assert charlie.third_position_count.value == 1
        assert charlie.first_position_count.value == 0

    def test_same_sentence_placement_uses_brand_order(self, aggregator):
        """Test brands first mentioned in the same sentence follow brand order."""
        summary = aggregator.summarize(
            [record(brand("Alpha", 1), brand("Bravo", 1))], brand_names=["Bravo", "Alpha"]
        )

        assert summary.get("Bravo").first_position_count.value == 1
        assert summary.get("Alpha").second_position_count.value == 1


class TestRanks:
    """Test suite for ranks and rank change."""

    def test_every_metric_is_a_permutation(self, aggregator):
        """Test ranks within one metric are 1..N."""
        summary = aggregator.summarize(
            [
                record(brand("Alpha", 1, depth=5.0), brand("Bravo", None), brand("Charlie", 2)),
                record(brand("Alpha", None), brand("Bravo", 1), brand("Charlie", None)),
            ]
        )

        for metric in RANKED_METRICS:
            ranks = sorted(getattr(b, metric).rank for b in summary.brands)
            assert ranks == [1, 2, 3], metric

    def test_rank_change_against_previous(self, aggregator):
        """Test rank change is current minus previous rank."""
        previous = aggregator.summarize(
            [record(brand("Alpha", None), brand("Bravo", 1))],
            brand_names=["Alpha", "Bravo"],
        )
        current = aggregator.summarize(
            [record(brand("Alpha", 1), brand("Bravo", None), brand("Charlie", None))],
            previous=previous,
            brand_names=["Alpha", "Bravo"],
        )

        assert current.get("Alpha").visibility_score.rank_change == -1
        assert current.get("Bravo").visibility_score.rank_change == 1
        assert current.get("Charlie").visibility_score.rank_change is None

    def test_no_previous_means_no_change(self, aggregator):
        """Test rank_change is None without a baseline."""
        summary = aggregator.summarize([record(brand("Alpha", 1))])
        assert summary.get("Alpha").visibility_score.rank_change is None

    def test_previous_as_brand_list(self, aggregator):
        """Test the baseline may be a plain list of brand metrics."""
        previous = aggregator.aggregate(
            [record(brand("Alpha", None), brand("Bravo", 1))]
        )
        current = aggregator.aggregate(
            [record(brand("Alpha", 1), brand("Bravo", None))], previous=previous
        )

        assert current[0].visibility_score.rank_change == -1


class TestSummary:
    """Test suite for scope totals."""

    def test_totals_and_citations(self, aggregator):
        """Test response, prompt, hyperlink and citation totals."""
        citations = [
            Citation("https://alpha.com", "alpha.com", "Alpha", "brand", "Alpha"),
            Citation("https://reddit.com/r/x", "reddit.com", "thread", "social"),
            Citation("https://review.example", "review.example", "review", "earned"),
        ]
        summary = aggregator.summarize(
            [
                record(brand("Alpha", 1), citations=citations, hyperlinks=3, prompt_id="p1"),
                record(brand("Alpha", None), prompt_id="p1"),
                record(brand("Alpha", 2), prompt_id="p2"),
            ]
        )

        assert summary.total_responses == 3
        assert summary.total_prompts == 2
        assert summary.total_hyperlinks == 3
        assert summary.citation_breakdown == {
            "brand": 1,
            "competitor": 0,
            "social": 1,
            "earned": 1,
        }
        assert summary.get("Alpha").owned_citations == 1

    def test_empty_records_with_brands(self, aggregator):
        """Test brands with no records still get zeroed, ranked metrics."""
        summary = aggregator.summarize([], brand_names=["Acme", "Globex"])

        assert summary.total_responses == 0
        assert [b.brand_name for b in summary.brands] == ["Acme", "Globex"]
        assert summary.get("Acme").visibility_score == RankedMetric(0.0, 1)
        assert summary.get("Globex").average_position == RankedMetric(0.0, 2)

    def test_bare_extraction_results(self, aggregator):
        """Test unscoped ExtractionResults are accepted."""
        summary = aggregator.summarize([record(brand("Alpha", 1)).extraction])
        assert summary.get("Alpha").visibility_score.value == 100.0

    def test_to_dict(self, aggregator):
        """Test the serialized summary shape."""
        data = aggregator.summarize(
            [record(brand("Alpha", 1), platform="openai")],
            AggregationScope("platform", "openai"),
        ).to_dict()

        assert data["scope"] == "platform"
        assert data["scope_value"] == "openai"
        assert data["total_brands"] == 1
        assert data["brands"][0]["visibility_score"] == {
            "value": 100.0,
            "rank": 1,
            "rank_change": None,
        }

    def test_precision_configurable(self):
        """Test score precision comes from config."""
        aggregator = MetricsAggregator(
            MetricsConfig(aggregation=AggregationSettings(score_precision=0))
        )
        summary = aggregator.summarize(
            [record(brand("Alpha", 1, mentions=2), brand("Bravo", 1, mentions=1))]
        )
        assert summary.get("Alpha").share_of_voice.value == 67.0


class TestFiltering:
    """Test suite for scope and window filtering."""

    def test_scope_filter(self, aggregator):
        """Test only records matching the scope value are aggregated."""
        records = [
            record(brand("Alpha", 1), platform="openai"),
            record(brand("Alpha", None), platform="openai"),
            record(brand("Alpha", 1), platform="anthropic"),
        ]

        summary = aggregator.summarize(records, AggregationScope("platform", "openai"))

        assert summary.total_responses == 2
        assert summary.get("Alpha").visibility_score.value == 50.0

    def test_prompt_scope(self, aggregator):
        """Test the prompt scope filters on prompt_id."""
        records = [
            record(brand("Alpha", 1), prompt_id="p1"),
            record(brand("Alpha", 1), prompt_id="p2"),
        ]
        summary = aggregator.summarize(records, AggregationScope("prompt", "p2"))

        assert summary.total_responses == 1

    def test_half_open_window(self, aggregator):
        """Test date_from is inclusive and date_to exclusive."""
        records = [
            record(brand("Alpha", 1), tested_at=day(8)),
            record(brand("Alpha", 1), tested_at=day(10)),
            record(brand("Alpha", 1), tested_at=day(15)),
            record(brand("Alpha", 1), tested_at=day(7)),
        ]

        summary = aggregator.summarize(records, date_range=DateRange(day(8), day(15)))

        assert summary.total_responses == 2

    def test_undated_records_excluded_from_window(self, aggregator, caplog):
        """Test records without tested_at are dropped when a window is set."""
        records = [record(brand("Alpha", 1)), record(brand("Alpha", 1), tested_at=day(9))]

        with caplog.at_level(logging.WARNING):
            summary = aggregator.summarize(records, date_range=DateRange(day(8), day(15)))

        assert summary.total_responses == 1
        assert "without tested_at" in caplog.text

    def test_no_window_keeps_undated(self, aggregator):
        """Test all records count when no window is given."""
        summary = aggregator.summarize([record(brand("Alpha", 1)), record(brand("Alpha", 1))])
        assert summary.total_responses == 2


class TestAggregationScope:
    """Test suite for AggregationScope validation."""

    def test_unknown_scope(self):
        """Test unknown scope names are rejected."""
        with pytest.raises(ScopeError, match="scope must be one of"):
            AggregationScope("region", "eu")

    def test_missing_value(self):
        """Test non-overall scopes require a value."""
        with pytest.raises(ScopeError, match="requires a non-empty scope_value"):
            AggregationScope("topic")

    def test_blank_value(self):
        """Test whitespace values are rejected."""
        with pytest.raises(ScopeError):
            AggregationScope("topic", "   ")

    def test_overall_with_value(self):
        """Test overall takes no value."""
        with pytest.raises(ScopeError, match="takes no scope_value"):
            AggregationScope("overall", "x")

    def test_labels(self):
        """Test scope labels."""
        assert AggregationScope().label == "overall"
        assert AggregationScope("persona", "cfo").label == "persona:cfo"


class TestDateRange:
    """Test suite for DateRange validation."""

    def test_naive_rejected(self):
        """Test naive datetimes are rejected."""
        with pytest.raises(DateRangeError, match="timezone-aware"):
            DateRange(datetime(2025, 11, 1), day(2))

    def test_reversed_rejected(self):
        """Test date_from must be before date_to."""
        with pytest.raises(DateRangeError, match="must be before"):
            DateRange(day(5), day(5))

    def test_previous_window(self):
        """Test the previous window has equal length and ends at date_from."""
        window = DateRange(day(8), day(15))
        previous = window.previous()

        assert previous.date_from == day(1)
        assert previous.date_to == day(8)
        assert previous.date_to - previous.date_from == timedelta(days=7)

    def test_from_strings(self):
        """Test ISO strings and bare dates are parsed as UTC."""
        window = DateRange.from_strings("2025-11-08", "2025-11-15T00:00:00Z")
        assert window == DateRange(day(8), day(15))

    @pytest.mark.parametrize(
        "date_from,date_to",
        [("not-a-date", "2025-11-15"), ("2025-11-08T00:00:00", "2025-11-15")],
    )
    def test_from_strings_invalid(self, date_from, date_to):
        """Test unparseable or naive strings raise DateRangeError."""
        with pytest.raises(DateRangeError):
            DateRange.from_strings(date_from, date_to)

    def test_contains_none(self):
        """Test None is never inside a window."""
        assert DateRange(day(1), day(2)).contains(None) is False


class TestScopedExtraction:
    """Test suite for ScopedExtraction."""

    def test_naive_tested_at_rejected(self):
        """Test tested_at must be timezone-aware."""
        with pytest.raises(ValueError, match="timezone-aware"):
            record(brand("Alpha", 1), tested_at=datetime(2025, 11, 1))

    def test_round_trip(self):
        """Test from_dict(to_dict()) preserves metadata and extraction."""
        original = record(
            brand("Alpha", 1, depth=3.5),
            response_id="r1",
            prompt_id="p1",
            platform="openai",
            topic="crm",
            persona="cfo",
            tested_at=day(10),
        )
        assert ScopedExtraction.from_dict(original.to_dict()) == original


class TestAllScopes:
    """Test suite for scopes_for() and aggregate_all_scopes()."""

    @pytest.fixture
    def records(self):
        return [
            record(brand("Alpha", 1), platform="openai", topic="crm", prompt_id="p1",
                   tested_at=day(9)),
            record(brand("Alpha", None), platform="anthropic", topic="crm", prompt_id="p2",
                   tested_at=day(10)),
            record(brand("Alpha", 2), platform="openai", topic="crm", prompt_id="p2",
                   tested_at=day(11)),
        ]

    def test_scope_order(self, records):
        """Test overall first, then each dimension sorted by value."""
        labels = [scope.label for scope in scopes_for(records)]

        assert labels == [
            "overall",
            "platform:anthropic",
            "platform:openai",
            "topic:crm",
            "prompt:p1",
            "prompt:p2",
        ]

    def test_aggregate_all_scopes(self, records):
        """Test one summary per scope in scope order."""
        summaries = aggregate_all_scopes(records, brand_names=["Alpha"])

        assert [s.scope.label for s in summaries][:3] == [
            "overall",
            "platform:anthropic",
            "platform:openai",
        ]
        by_label = {s.scope.label: s for s in summaries}
        assert by_label["overall"].total_responses == 3
        assert by_label["platform:openai"].get("Alpha").visibility_score.value == 100.0
        assert by_label["platform:anthropic"].get("Alpha").visibility_score.value == 0.0

    def test_with_previous_window(self):
        """Test rank change against the preceding equal-length window."""
        records = [
            record(brand("Alpha", None), brand("Bravo", 1), tested_at=day(3)),
            record(brand("Alpha", 1), brand("Bravo", None), tested_at=day(10)),
        ]

        summaries = aggregate_all_scopes(
            records,
            date_range=DateRange(day(8), day(15)),
            previous_records=records,
            brand_names=["Alpha", "Bravo"],
        )
        overall = summaries[0]

        assert overall.total_responses == 1
        assert overall.get("Alpha").visibility_score.rank_change == -1
        assert overall.get("Bravo").visibility_score.rank_change == 1

    def test_empty_input(self):
        """Test no records still yields the overall scope."""
        summaries = aggregate_all_scopes([], brand_names=["Acme"])

        assert len(summaries) == 1
        assert summaries[0].get("Acme").visibility_score.value == 0.0
