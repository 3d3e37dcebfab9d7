"""
Aggregator package for rolling extractions into ranked brand metrics.

Public API:
    - MetricsAggregator: Aggregate one scope and date window
    - aggregate_all_scopes: Aggregate every scope present in a batch
    - AggregationScope / DateRange: Scope and window descriptors
    - ScopedExtraction: Stored extraction with scoping metadata
    - AggregatedBrandMetrics / RankedMetric / ScopeAggregate: Output types
    - assign_ranks / rank_change: Ranking helpers
"""

from brand_metrics.aggregator.aggregator import (
    MetricsAggregator,
    aggregate_all_scopes,
    scopes_for,
)
from brand_metrics.aggregator.models import (
    RANKED_METRICS,
    SCOPES,
    AggregatedBrandMetrics,
    AggregationScope,
    DateRange,
    RankedMetric,
    ScopeAggregate,
    ScopedExtraction,
)
from brand_metrics.aggregator.ranking import assign_ranks, rank_change

__all__ = [
    "RANKED_METRICS",
    "SCOPES",
    "AggregatedBrandMetrics",
    "AggregationScope",
    "DateRange",
    "MetricsAggregator",
    "RankedMetric",
    "ScopeAggregate",
    "ScopedExtraction",
    "aggregate_all_scopes",
    "assign_ranks",
    "rank_change",
    "scopes_for",
]
