"""
Data models for cross-response aggregation.

Models:
    AggregationScope: Dimension (overall/platform/topic/persona/prompt) + value
    DateRange: Half-open [date_from, date_to) window of aware UTC datetimes
    ScopedExtraction: An ExtractionResult with the metadata used for scoping
    RankedMetric: A metric value with its rank and optional rank change
    AggregatedBrandMetrics: Ranked metrics for one brand in one scope
    ScopeAggregate: Full output of one aggregation call
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from brand_metrics.exceptions import DateRangeError, ScopeError
from brand_metrics.extractor.parser import ExtractionResult
from brand_metrics.utils.time import format_timestamp, parse_timestamp

SCOPES = ("overall", "platform", "topic", "persona", "prompt")

# Scope name -> ScopedExtraction attribute holding the scope value
SCOPE_FIELDS = {
    "platform": "platform",
    "topic": "topic",
    "persona": "persona",
    "prompt": "prompt_id",
}

RANKED_METRICS = (
    "visibility_score",
    "citation_share",
    "average_position",
    "depth_of_mention",
    "sentiment_score",
    "share_of_voice",
    "total_mentions",
    "first_position_count",
    "second_position_count",
    "third_position_count",
)


@dataclass(frozen=True)
class AggregationScope:
    """
    Aggregation dimension and the value selecting records within it.

    "overall" takes no value; every other scope requires one.

    Raises:
        ScopeError: If the scope name is unknown or the value is missing/extra

    Example:
        >>> AggregationScope("platform", "openai").label
        'platform:openai'
    """

    scope: str = "overall"
    scope_value: str | None = None

    def __post_init__(self):
        """Validate scope name and value."""
        if self.scope not in SCOPES:
            raise ScopeError(f"scope must be one of {SCOPES}, got: {self.scope!r}")

        if self.scope == "overall":
            if self.scope_value is not None:
                raise ScopeError(
                    f"scope 'overall' takes no scope_value, got: {self.scope_value!r}"
                )
        elif not isinstance(self.scope_value, str) or not self.scope_value.strip():
            raise ScopeError(f"scope {self.scope!r} requires a non-empty scope_value")

    @property
    def label(self) -> str:
        if self.scope == "overall":
            return "overall"
        return f"{self.scope}:{self.scope_value}"

    def matches(self, record: "ScopedExtraction") -> bool:
        """Return True if the record belongs to this scope."""
        if self.scope == "overall":
            return True
        return getattr(record, SCOPE_FIELDS[self.scope]) == self.scope_value

    def to_dict(self) -> dict[str, Any]:
        return {"scope": self.scope, "scope_value": self.scope_value}


@dataclass(frozen=True)
class DateRange:
    """
    Half-open window [date_from, date_to) of timezone-aware datetimes.

    Raises:
        DateRangeError: If either bound is naive or date_from >= date_to
    """

    date_from: datetime
    date_to: datetime

    def __post_init__(self):
        """Validate bounds are aware and ordered."""
        for name in ("date_from", "date_to"):
            value = getattr(self, name)
            if not isinstance(value, datetime) or value.tzinfo is None:
                raise DateRangeError(
                    f"{name} must be a timezone-aware datetime, got: {value!r}"
                )
        if self.date_from >= self.date_to:
            raise DateRangeError(
                f"date_from ({format_timestamp(self.date_from)}) must be before "
                f"date_to ({format_timestamp(self.date_to)})"
            )

    @classmethod
    def from_strings(cls, date_from: str, date_to: str) -> "DateRange":
        """
        Build a window from ISO 8601 strings.

        Raises:
            DateRangeError: If a string cannot be parsed or has no timezone
        """
        try:
            return cls(parse_timestamp(date_from), parse_timestamp(date_to))
        except ValueError as e:
            raise DateRangeError(str(e)) from e

    def contains(self, moment: datetime | None) -> bool:
        """Return True if moment falls inside the window; None never does."""
        if moment is None:
            return False
        return self.date_from <= moment < self.date_to

    def previous(self) -> "DateRange":
        """
        Return the equal-length window ending where this one starts.

        Example:
            >>> from datetime import UTC
            >>> window = DateRange(datetime(2025, 11, 8, tzinfo=UTC), datetime(2025, 11, 15, tzinfo=UTC))
            >>> window.previous().date_from.day
            1
        """
        length = self.date_to - self.date_from
        return DateRange(self.date_from - length, self.date_from)

    def to_dict(self) -> dict[str, str]:
        return {
            "date_from": format_timestamp(self.date_from),
            "date_to": format_timestamp(self.date_to),
        }


@dataclass(frozen=True)
class ScopedExtraction:
    """
    A stored ExtractionResult with the metadata aggregation scopes on.

    Attributes:
        extraction: Per-response extraction result
        response_id: Caller's identifier for the response
        prompt_id: Prompt the response answered ("prompt" scope)
        platform: Model platform that produced it ("platform" scope)
        topic: Topic of the prompt ("topic" scope)
        persona: Persona of the prompt ("persona" scope)
        tested_at: When the response was collected (aware UTC)
    """

    extraction: ExtractionResult
    response_id: str | None = None
    prompt_id: str | None = None
    platform: str | None = None
    topic: str | None = None
    persona: str | None = None
    tested_at: datetime | None = None

    def __post_init__(self):
        """Validate tested_at is timezone-aware."""
        if self.tested_at is not None and self.tested_at.tzinfo is None:
            raise ValueError(
                f"tested_at must be timezone-aware, got naive datetime: {self.tested_at}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "response_id": self.response_id,
            "prompt_id": self.prompt_id,
            "platform": self.platform,
            "topic": self.topic,
            "persona": self.persona,
            "tested_at": (
                format_timestamp(self.tested_at) if self.tested_at is not None else None
            ),
            "extraction": self.extraction.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScopedExtraction":
        tested_at = data.get("tested_at")
        return cls(
            extraction=ExtractionResult.from_dict(data["extraction"]),
            response_id=data.get("response_id"),
            prompt_id=data.get("prompt_id"),
            platform=data.get("platform"),
            topic=data.get("topic"),
            persona=data.get("persona"),
            tested_at=parse_timestamp(tested_at) if tested_at else None,
        )


@dataclass(frozen=True)
class RankedMetric:
    """
    A metric value paired with its rank (1 = best).

    rank_change is current rank minus previous rank (negative = improved),
    or None when the previous window has no value for the brand.
    """

    value: float
    rank: int
    rank_change: int | None = None

    def __post_init__(self):
        """Validate rank is 1-indexed."""
        if self.rank < 1:
            raise ValueError(f"rank must be >= 1, got: {self.rank}")

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "rank": self.rank, "rank_change": self.rank_change}


@dataclass(frozen=True)
class AggregatedBrandMetrics:
    """
    Ranked metrics for one brand within one scope and window.

    Ranked attributes are listed in RANKED_METRICS. The remaining attributes
    are unranked detail.
    """

    brand_name: str
    visibility_score: RankedMetric
    citation_share: RankedMetric
    average_position: RankedMetric
    depth_of_mention: RankedMetric
    sentiment_score: RankedMetric
    share_of_voice: RankedMetric
    total_mentions: RankedMetric
    first_position_count: RankedMetric
    second_position_count: RankedMetric
    third_position_count: RankedMetric
    sentiment_share: float = 0.0
    sentiment_breakdown: dict[str, int] = field(
        default_factory=lambda: {"positive": 0, "negative": 0, "neutral": 0}
    )
    appearances: int = 0
    brand_hyperlinks: int = 0
    owned_citations: int = 0

    def ranks(self) -> dict[str, int]:
        """Return metric name -> rank for every ranked metric."""
        return {name: getattr(self, name).rank for name in RANKED_METRICS}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"brand_name": self.brand_name}
        for name in RANKED_METRICS:
            data[name] = getattr(self, name).to_dict()
        data.update(
            {
                "sentiment_share": self.sentiment_share,
                "sentiment_breakdown": dict(self.sentiment_breakdown),
                "appearances": self.appearances,
                "brand_hyperlinks": self.brand_hyperlinks,
                "owned_citations": self.owned_citations,
            }
        )
        return data


@dataclass(frozen=True)
class ScopeAggregate:
    """
    Output of aggregating one scope over one window.

    Attributes:
        scope: Scope the records were filtered by
        date_range: Window the records were filtered by (None = all time)
        total_responses: Responses in scope
        total_prompts: Distinct prompt ids in scope
        total_hyperlinks: Hyperlinks across responses in scope
        citation_breakdown: Citation type -> count
        brands: Per-brand metrics in brand order
    """

    scope: AggregationScope
    date_range: DateRange | None
    total_responses: int
    total_prompts: int
    total_hyperlinks: int
    citation_breakdown: dict[str, int]
    brands: tuple[AggregatedBrandMetrics, ...]

    @property
    def total_brands(self) -> int:
        return len(self.brands)

    def get(self, brand_name: str) -> AggregatedBrandMetrics | None:
        """Return the metrics for brand_name, or None if absent."""
        for brand in self.brands:
            if brand.brand_name == brand_name:
                return brand
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "scope": self.scope.scope,
            "scope_value": self.scope.scope_value,
            "date_range": self.date_range.to_dict() if self.date_range else None,
            "total_responses": self.total_responses,
            "total_prompts": self.total_prompts,
            "total_brands": self.total_brands,
            "total_hyperlinks": self.total_hyperlinks,
            "citation_breakdown": dict(self.citation_breakdown),
            "brands": [b.to_dict() for b in self.brands],
        }
