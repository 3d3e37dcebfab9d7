"""
Cross-response aggregation into ranked brand metrics.

Rolls a batch of stored extractions for one scope and date window into
per-brand metrics, ranks every metric across brands, and compares ranks
with a caller-supplied previous window.

Per brand:
- visibility_score: mentioned responses / responses in scope * 100
- citation_share: brand hyperlinks / brand hyperlinks of all brands * 100
- average_position: mean first position where mentioned (0 if never)
- depth_of_mention: mean per-response depth over responses in scope
- sentiment_score: mean per-response score where mentioned
- share_of_voice: brand mentions / all brand mentions * 100
- first/second/third_position_count: how often the brand was mentioned
  first, second or third in a response

Aggregating one scope is a single-threaded reduction because ranks need
every brand's value. Independent scopes are aggregated concurrently by
aggregate_all_scopes().

Example:
    >>> aggregator = MetricsAggregator()
    >>> summary = aggregator.summarize(records, AggregationScope("platform", "openai"))
    >>> summary.get("Acme").visibility_score.rank
    1
"""

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from brand_metrics.config.schema import MetricsConfig
from brand_metrics.extractor.citation_classifier import CITATION_TYPES, filter_relevant
from brand_metrics.extractor.parser import ExtractionResult

from .models import (
    RANKED_METRICS,
    SCOPE_FIELDS,
    AggregatedBrandMetrics,
    AggregationScope,
    DateRange,
    RankedMetric,
    ScopeAggregate,
    ScopedExtraction,
)
from .ranking import assign_ranks, rank_change

logger = logging.getLogger(__name__)

OVERALL = AggregationScope()

# Metrics where a lower value ranks better
_ASCENDING_METRICS = frozenset({"average_position"})


@dataclass
class _BrandTally:
    """Running sums for one brand while reducing a scope."""

    appearances: int = 0
    total_mentions: int = 0
    positions: list[int] = field(default_factory=list)
    depth_total: float = 0.0
    sentiment_scores: list[float] = field(default_factory=list)
    positive: int = 0
    negative: int = 0
    neutral: int = 0
    hyperlinks: int = 0
    owned_citations: int = 0
    placements: list[int] = field(default_factory=lambda: [0, 0, 0])


def _as_scoped(record: ScopedExtraction | ExtractionResult) -> ScopedExtraction:
    if isinstance(record, ExtractionResult):
        return ScopedExtraction(extraction=record)
    return record


def _percent(part: float, whole: float) -> float:
    return part / whole * 100 if whole else 0.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _brand_order(
    records: Iterable[ScopedExtraction], brand_names: Sequence[str] | None
) -> list[str]:
    order = list(dict.fromkeys(brand_names or ()))
    seen = set(order)
    for record in records:
        for brand in record.extraction.brand_metrics:
            if brand.brand_name not in seen:
                seen.add(brand.brand_name)
                order.append(brand.brand_name)
    return order


def _previous_ranks(
    previous: ScopeAggregate | Sequence[AggregatedBrandMetrics] | None,
) -> dict[str, dict[str, int]] | None:
    if previous is None:
        return None
    brands = previous.brands if isinstance(previous, ScopeAggregate) else previous
    return {brand.brand_name: brand.ranks() for brand in brands}


class MetricsAggregator:
    """
    Aggregates stored extractions into ranked per-brand metrics.

    Args:
        config: Metrics configuration (production defaults if None)
    """

    def __init__(self, config: MetricsConfig | None = None):
        self.config = config or MetricsConfig()

    def filter_records(
        self,
        records: Iterable[ScopedExtraction | ExtractionResult],
        scope: AggregationScope = OVERALL,
        date_range: DateRange | None = None,
    ) -> list[ScopedExtraction]:
        """
        Keep records inside the scope and the date window.

        Records without tested_at are dropped when a window is given.
        """
        selected = []
        undated = 0
        for record in records:
            record = _as_scoped(record)
            if not scope.matches(record):
                continue
            if date_range is not None and not date_range.contains(record.tested_at):
                if record.tested_at is None:
                    undated += 1
                continue
            selected.append(record)

        if undated:
            logger.warning(
                f"Excluded {undated} records without tested_at from dated window"
            )
        return selected

    def aggregate(
        self,
        records: Iterable[ScopedExtraction | ExtractionResult],
        scope: AggregationScope = OVERALL,
        date_range: DateRange | None = None,
        previous: ScopeAggregate | Sequence[AggregatedBrandMetrics] | None = None,
        brand_names: Sequence[str] | None = None,
    ) -> list[AggregatedBrandMetrics]:
        """Aggregate records and return per-brand metrics in brand order."""
        return list(
            self.summarize(records, scope, date_range, previous, brand_names).brands
        )

    def summarize(
        self,
        records: Iterable[ScopedExtraction | ExtractionResult],
        scope: AggregationScope = OVERALL,
        date_range: DateRange | None = None,
        previous: ScopeAggregate | Sequence[AggregatedBrandMetrics] | None = None,
        brand_names: Sequence[str] | None = None,
    ) -> ScopeAggregate:
        """
        Aggregate one scope and window.

        Args:
            records: Stored extractions (bare ExtractionResults count as
                undated, unscoped records)
            scope: Scope to filter by (overall if omitted)
            date_range: Half-open window to filter by (all time if None)
            previous: Aggregate of the preceding equivalent window, for
                rank change (rank_change is None without it)
            brand_names: Brands listed first, in this order; brands found
                only in records follow in first-seen order

        Returns:
            ScopeAggregate with one AggregatedBrandMetrics per brand
        """
        selected = self.filter_records(records, scope, date_range)
        brands = _brand_order(selected, brand_names)
        brand_index = {name: i for i, name in enumerate(brands)}
        tallies = {name: _BrandTally() for name in brands}

        citation_breakdown = dict.fromkeys(CITATION_TYPES, 0)
        total_hyperlinks = 0
        prompts = set()

        for record in selected:
            extraction = record.extraction
            total_hyperlinks += extraction.response.total_hyperlinks
            if record.prompt_id is not None:
                prompts.add(record.prompt_id)

            for citation in filter_relevant(extraction.response.citations):
                citation_breakdown[citation.type] += 1
                if citation.type == "brand" and citation.brand in tallies:
                    tallies[citation.brand].owned_citations += 1

            mentioned = []
            for brand in extraction.brand_metrics:
                tally = tallies[brand.brand_name]
                tally.depth_total += brand.depth_of_mention
                tally.hyperlinks += brand.hyperlink_count
                if not brand.mentioned:
                    continue

                tally.appearances += 1
                tally.total_mentions += brand.mention_count
                tally.positions.append(brand.first_position)
                tally.sentiment_scores.append(brand.sentiment.sentiment_score)
                tally.positive += brand.sentiment.positive_mentions
                tally.negative += brand.sentiment.negative_mentions
                tally.neutral += brand.sentiment.neutral_mentions
                mentioned.append(brand)

            mentioned.sort(key=lambda b: (b.first_position, brand_index[b.brand_name]))
            for place, brand in enumerate(mentioned[:3]):
                tallies[brand.brand_name].placements[place] += 1

        summary = ScopeAggregate(
            scope=scope,
            date_range=date_range,
            total_responses=len(selected),
            total_prompts=len(prompts),
            total_hyperlinks=total_hyperlinks,
            citation_breakdown=citation_breakdown,
            brands=self._rank(brands, tallies, len(selected), previous),
        )

        logger.info(
            f"Aggregated scope {scope.label}",
            extra={
                "context": {
                    "responses": summary.total_responses,
                    "brands": summary.total_brands,
                    "window": date_range.to_dict() if date_range else None,
                    "has_baseline": previous is not None,
                }
            },
        )
        return summary

    def _rank(
        self,
        brands: list[str],
        tallies: dict[str, _BrandTally],
        total_responses: int,
        previous: ScopeAggregate | Sequence[AggregatedBrandMetrics] | None,
    ) -> tuple[AggregatedBrandMetrics, ...]:
        """
        Build ranked metrics for each brand.

        Never-mentioned brands carry an average position of 0 but rank last
        on it, not first as a plain ascending sort would place them.
        """
        score_precision = self.config.aggregation.score_precision
        depth_precision = self.config.aggregation.depth_precision

        all_hyperlinks = sum(t.hyperlinks for t in tallies.values())
        all_mentions = sum(t.total_mentions for t in tallies.values())

        values: dict[str, list[float]] = {name: [] for name in RANKED_METRICS}
        for name in brands:
            tally = tallies[name]
            values["visibility_score"].append(
                round(_percent(tally.appearances, total_responses), score_precision)
            )
            values["citation_share"].append(
                round(_percent(tally.hyperlinks, all_hyperlinks), score_precision)
            )
            values["average_position"].append(
                round(_mean(tally.positions), score_precision)
            )
            values["depth_of_mention"].append(
                round(
                    tally.depth_total / total_responses if total_responses else 0.0,
                    depth_precision,
                )
            )
            values["sentiment_score"].append(
                round(_mean(tally.sentiment_scores), score_precision)
            )
            values["share_of_voice"].append(
                round(_percent(tally.total_mentions, all_mentions), score_precision)
            )
            values["total_mentions"].append(tally.total_mentions)
            values["first_position_count"].append(tally.placements[0])
            values["second_position_count"].append(tally.placements[1])
            values["third_position_count"].append(tally.placements[2])

        never_mentioned = [tallies[name].appearances == 0 for name in brands]
        ranks = {
            metric: assign_ranks(
                metric_values,
                higher_is_better=metric not in _ASCENDING_METRICS,
                last=never_mentioned if metric in _ASCENDING_METRICS else None,
            )
            for metric, metric_values in values.items()
        }

        baseline = _previous_ranks(previous)
        results = []
        for i, name in enumerate(brands):
            tally = tallies[name]
            previous_brand = baseline.get(name) if baseline is not None else None

            metrics = {
                metric: RankedMetric(
                    value=values[metric][i],
                    rank=ranks[metric][i],
                    rank_change=rank_change(
                        ranks[metric][i],
                        previous_brand.get(metric) if previous_brand else None,
                    ),
                )
                for metric in RANKED_METRICS
            }
            classified = tally.positive + tally.negative + tally.neutral
            results.append(
                AggregatedBrandMetrics(
                    brand_name=name,
                    **metrics,
                    sentiment_share=round(
                        _percent(tally.positive, classified), score_precision
                    ),
                    sentiment_breakdown={
                        "positive": tally.positive,
                        "negative": tally.negative,
                        "neutral": tally.neutral,
                    },
                    appearances=tally.appearances,
                    brand_hyperlinks=tally.hyperlinks,
                    owned_citations=tally.owned_citations,
                )
            )
        return tuple(results)


def scopes_for(records: Iterable[ScopedExtraction]) -> list[AggregationScope]:
    """
    List overall plus every distinct scope value present in records.

    Order is fixed: overall, then platform, topic, persona and prompt
    scopes, each sorted by value.
    """
    records = list(records)
    scopes = [OVERALL]
    for scope_name, attribute in SCOPE_FIELDS.items():
        scope_values = {getattr(r, attribute) for r in records}
        scopes.extend(
            AggregationScope(scope_name, value)
            for value in sorted(v for v in scope_values if v)
        )
    return scopes


def aggregate_all_scopes(
    records: Iterable[ScopedExtraction | ExtractionResult],
    date_range: DateRange | None = None,
    previous_records: Iterable[ScopedExtraction | ExtractionResult] | None = None,
    brand_names: Sequence[str] | None = None,
    config: MetricsConfig | None = None,
) -> list[ScopeAggregate]:
    """
    Aggregate overall and every platform/topic/persona/prompt scope.

    Scopes are independent, so they run on a bounded thread pool. When
    previous_records is given, each scope is first aggregated over the
    preceding window (date_range.previous(), or all previous records when
    no window is given) to supply rank change.

    Returns:
        One ScopeAggregate per scope, in scopes_for() order
    """
    aggregator = MetricsAggregator(config)
    current = aggregator.filter_records(records, OVERALL, date_range)
    prior = None
    prior_window = date_range.previous() if date_range is not None else None
    if previous_records is not None:
        prior = aggregator.filter_records(previous_records, OVERALL, prior_window)

    def run(scope: AggregationScope) -> ScopeAggregate:
        baseline = None
        if prior is not None:
            baseline = aggregator.summarize(
                prior, scope, prior_window, brand_names=brand_names
            )
        return aggregator.summarize(
            current, scope, date_range, previous=baseline, brand_names=brand_names
        )

    scopes = scopes_for(current)
    workers = min(aggregator.config.aggregation.max_scope_workers, len(scopes))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(run, scopes))
