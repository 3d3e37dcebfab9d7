"""
Configuration schema models for Brand Metrics.

This module defines Pydantic models for validating and parsing the
metrics.config.yaml file. Every model is frozen: components receive these
settings at construction and treat them as immutable lookup tables.

Models:
    SimilaritySettings: Edit-distance cost guards
    DetectionSettings: Brand detection cascade thresholds and confidences
    SentimentLexicon: Positive/negative keyword lists
    CitationDomains: Domain tables for citation classification
    AggregationSettings: Output precision and scope fan-out
    BatchSettings: Worker pool sizing for batch extraction
    MetricsConfig: Root configuration model (validates entire YAML)
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import constants


def normalize_domain(domain: str) -> str:
    """
    Normalize a domain table entry to a bare lowercase host.

    Example:
        >>> normalize_domain(" WWW.Acme.com ")
        'acme.com'
    """
    domain = domain.strip().lower()
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


class SimilaritySettings(BaseModel):
    """
    Cost guards for the string similarity utility.

    Attributes:
        min_length_ratio: Below this shorter/longer ratio the longer length
            is returned as the distance without running the DP
        max_compare_length: Strings longer than this use the length heuristic
        long_string_penalty: Fraction of the longer length added by the
            length heuristic
    """

    model_config = ConfigDict(frozen=True)

    min_length_ratio: float = Field(default=constants.MIN_LENGTH_RATIO, ge=0.0, le=1.0)
    max_compare_length: int = Field(default=constants.MAX_COMPARE_LENGTH, ge=1)
    long_string_penalty: float = Field(
        default=constants.LONG_STRING_PENALTY, ge=0.0, le=1.0
    )


class DetectionSettings(BaseModel):
    """
    Thresholds and confidences for the five-strategy detection cascade.

    Defaults are calibration constants from the production detector.
    """

    model_config = ConfigDict(frozen=True)

    exact_confidence: float = Field(default=constants.EXACT_CONFIDENCE, ge=0.0, le=1.0)
    abbreviation_confidence: float = Field(
        default=constants.ABBREVIATION_CONFIDENCE, ge=0.0, le=1.0
    )
    partial_confidence: float = Field(
        default=constants.PARTIAL_CONFIDENCE, ge=0.0, le=1.0
    )
    partial_distant_confidence: float = Field(
        default=constants.PARTIAL_DISTANT_CONFIDENCE, ge=0.0, le=1.0
    )
    partial_max_span: int = Field(default=constants.PARTIAL_MAX_SPAN, ge=0)
    fuzzy_threshold: float = Field(default=constants.FUZZY_THRESHOLD, ge=0.0, le=1.0)
    fuzzy_confidence_factor: float = Field(
        default=constants.FUZZY_CONFIDENCE_FACTOR, ge=0.0, le=1.0
    )
    fuzzy_max_brand_length: int = Field(default=constants.FUZZY_MAX_BRAND_LENGTH, ge=0)
    fuzzy_max_sentence_length: int = Field(
        default=constants.FUZZY_MAX_SENTENCE_LENGTH, ge=0
    )
    fuzzy_max_words: int = Field(default=constants.FUZZY_MAX_WORDS, ge=0)
    fuzzy_max_phrases: int = Field(default=constants.FUZZY_MAX_PHRASES, ge=0)
    variation_confidence: float = Field(
        default=constants.VARIATION_CONFIDENCE, ge=0.0, le=1.0
    )
    variation_min_brand_length: int = Field(
        default=constants.VARIATION_MIN_BRAND_LENGTH, ge=0
    )
    common_words: frozenset[str] = constants.COMMON_WORDS
    similarity: SimilaritySettings = SimilaritySettings()

    @field_validator("common_words")
    @classmethod
    def lowercase_common_words(cls, v: frozenset[str]) -> frozenset[str]:
        """Store common words lowercased for case-insensitive lookup."""
        return frozenset(word.strip().lower() for word in v if word.strip())


class SentimentLexicon(BaseModel):
    """
    Keyword lists for heuristic sentence polarity.

    Attributes:
        positive_keywords: Words signalling a favorable mention
        negative_keywords: Words signalling an unfavorable mention
    """

    model_config = ConfigDict(frozen=True)

    positive_keywords: tuple[str, ...] = constants.POSITIVE_KEYWORDS
    negative_keywords: tuple[str, ...] = constants.NEGATIVE_KEYWORDS

    @field_validator("positive_keywords", "negative_keywords")
    @classmethod
    def validate_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Lowercase keywords, drop blanks, keep first occurrence order."""
        cleaned = []
        for keyword in v:
            keyword = keyword.strip().lower()
            if keyword and keyword not in cleaned:
                cleaned.append(keyword)
        if not cleaned:
            raise ValueError("keyword list cannot be empty")
        return tuple(cleaned)


class CitationDomains(BaseModel):
    """
    Domain tables used to classify citations.

    Attributes:
        brand_domains: Brand name -> domains owned by the tracked brand
        competitor_domains: Competitor name -> domains owned by that competitor
        social_domains: Known social / shared-media platforms

    Example:
        >>> domains = CitationDomains(brand_domains={"Acme": ["www.acme.com"]})
        >>> domains.brand_domains["Acme"]
        ('acme.com',)
    """

    model_config = ConfigDict(frozen=True)

    brand_domains: dict[str, tuple[str, ...]] = {}
    competitor_domains: dict[str, tuple[str, ...]] = {}
    social_domains: tuple[str, ...] = constants.SOCIAL_DOMAINS

    @field_validator("brand_domains", "competitor_domains")
    @classmethod
    def normalize_domain_tables(
        cls, v: dict[str, tuple[str, ...]]
    ) -> dict[str, tuple[str, ...]]:
        """Normalize every domain to a bare lowercase host."""
        return {
            name: tuple(normalize_domain(d) for d in domains if d and d.strip())
            for name, domains in v.items()
        }

    @field_validator("social_domains")
    @classmethod
    def normalize_social_domains(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Normalize social domains to bare lowercase hosts."""
        return tuple(normalize_domain(d) for d in v if d and d.strip())


class AggregationSettings(BaseModel):
    """
    Aggregation output settings.

    Attributes:
        score_precision: Decimal places for scores, shares and positions
        depth_precision: Decimal places for depth of mention
        max_scope_workers: Threads used when aggregating independent scopes
    """

    model_config = ConfigDict(frozen=True)

    score_precision: int = Field(default=constants.SCORE_PRECISION, ge=0, le=10)
    depth_precision: int = Field(default=constants.DEPTH_PRECISION, ge=0, le=10)
    max_scope_workers: int = Field(default=4, ge=1)


class BatchSettings(BaseModel):
    """
    Worker pool sizing for batch extraction.

    Attributes:
        max_workers: Process count; None sizes the pool to os.cpu_count()
        chunksize: Responses handed to a worker per dispatch
    """

    model_config = ConfigDict(frozen=True)

    max_workers: int | None = Field(default=None, ge=1)
    chunksize: int = Field(default=16, ge=1)


class MetricsConfig(BaseModel):
    """
    Root configuration model.

    Every section is optional; an empty config reproduces the production
    defaults.

    Example:
        >>> config = MetricsConfig.model_validate({"detection": {"fuzzy_threshold": 0.8}})
        >>> config.detection.fuzzy_threshold
        0.8
    """

    model_config = ConfigDict(frozen=True)

    detection: DetectionSettings = DetectionSettings()
    sentiment: SentimentLexicon = SentimentLexicon()
    citations: CitationDomains = CitationDomains()
    aggregation: AggregationSettings = AggregationSettings()
    batch: BatchSettings = BatchSettings()
    placeholder_brand: str = constants.PLACEHOLDER_BRAND

    @field_validator("placeholder_brand")
    @classmethod
    def validate_placeholder_brand(cls, v: str) -> str:
        """Validate placeholder_brand is non-empty."""
        if not v or v.isspace():
            raise ValueError("placeholder_brand cannot be empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_confidence_ordering(self) -> "MetricsConfig":
        """Keep the partial-distant confidence at or below the partial confidence."""
        detection = self.detection
        if detection.partial_distant_confidence > detection.partial_confidence:
            raise ValueError(
                "detection.partial_distant_confidence must not exceed "
                "detection.partial_confidence"
            )
        return self
