"""
Per-response extraction orchestration for Brand Metrics.

This module ties together segmentation, brand detection, citation
classification and sentiment scoring into one structured ExtractionResult
per (response, brand list) pair.

Processing pipeline:
1. Segment the response once into sentences
2. Run the detection cascade for every tracked brand on every sentence
3. Build one BrandMentionRecord per brand (first position is 1-indexed)
4. Compute depth of mention, sentiment and brand hyperlink count per brand
5. Extract and classify the response's citations

Malformed input never raises: a non-string response is treated as "" and an
empty or missing brand list is replaced with a placeholder brand, so one bad
record cannot abort a batch job. Both cases are logged as warnings.

Example:
    >>> result = extract_metrics("Our top pick is Acme Corp for reliability.", ["Acme Corp"])
    >>> record = result.brand_metrics[0]
    >>> record.mentioned, record.first_position, record.sentences[0].detection_method
    (True, 1, 'exact')
"""

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..config.schema import CitationDomains, MetricsConfig
from .citation_classifier import (
    Citation,
    CitationClassifier,
    count_brand_hyperlinks,
    count_hyperlinks,
)
from .mention_detector import DETECTION_METHODS, BrandDetector
from .segmenter import Sentence, count_words, segment
from .sentiment import SentimentResult, SentimentScorer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MentionSentence:
    """
    A sentence attributed to a brand, annotated with how it was detected.

    Attributes:
        text: Sentence text
        position: 0-indexed position within the response
        word_count: Number of whitespace-delimited tokens
        confidence: Confidence of the strategy that fired
        detection_method: Name of the strategy that fired
    """

    text: str
    position: int
    word_count: int
    confidence: float
    detection_method: str

    def __post_init__(self):
        """Validate confidence and detection method."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"confidence must be in range [0.0, 1.0], got: {self.confidence}"
            )
        if self.detection_method not in DETECTION_METHODS:
            raise ValueError(
                f"detection_method must be one of {sorted(DETECTION_METHODS)}, "
                f"got: {self.detection_method}"
            )

    @classmethod
    def from_sentence(
        cls, sentence: Sentence, confidence: float, detection_method: str
    ) -> "MentionSentence":
        return cls(
            text=sentence.text,
            position=sentence.position,
            word_count=sentence.word_count,
            confidence=confidence,
            detection_method=detection_method,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "position": self.position,
            "word_count": self.word_count,
            "confidence": self.confidence,
            "detection_method": self.detection_method,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MentionSentence":
        return cls(
            text=data["text"],
            position=int(data["position"]),
            word_count=int(data["word_count"]),
            confidence=float(data["confidence"]),
            detection_method=data["detection_method"],
        )


@dataclass(frozen=True)
class BrandMentionRecord:
    """
    Mention metrics for one brand in one response.

    Invariants (checked on construction):
        first_position is set <=> mentioned <=> mention_count > 0
        mention_count == len(sentences)
        total_word_count == sum of sentence word counts

    Attributes:
        brand_name: Tracked brand name
        mentioned: True if any sentence mentions the brand
        first_position: 1-indexed sentence number of the first mention
        mention_count: Number of sentences mentioning the brand
        sentences: Sentences mentioning the brand, in response order
        total_word_count: Words across the brand's sentences
        depth_of_mention: Position-decayed share of response words, in [0, 100]
        sentiment: Keyword sentiment of the brand's sentences
        hyperlink_count: Hyperlinks whose anchor or markup names the brand
    """

    brand_name: str
    mentioned: bool = False
    first_position: int | None = None
    mention_count: int = 0
    sentences: tuple[MentionSentence, ...] = ()
    total_word_count: int = 0
    depth_of_mention: float = 0.0
    sentiment: SentimentResult = field(default_factory=SentimentResult)
    hyperlink_count: int = 0

    def __post_init__(self):
        """Validate the mention invariants."""
        if self.mentioned != (self.first_position is not None):
            raise ValueError(
                f"first_position must be set if and only if mentioned "
                f"(brand={self.brand_name!r}, mentioned={self.mentioned}, "
                f"first_position={self.first_position})"
            )
        if self.mentioned != (self.mention_count > 0):
            raise ValueError(
                f"mentioned must equal mention_count > 0 "
                f"(brand={self.brand_name!r}, mention_count={self.mention_count})"
            )
        if self.mention_count != len(self.sentences):
            raise ValueError(
                f"mention_count ({self.mention_count}) must equal number of "
                f"sentences ({len(self.sentences)}) for brand {self.brand_name!r}"
            )
        if self.total_word_count != sum(s.word_count for s in self.sentences):
            raise ValueError(
                f"total_word_count ({self.total_word_count}) must equal the sum "
                f"of sentence word counts for brand {self.brand_name!r}"
            )
        if self.first_position is not None and self.first_position < 1:
            raise ValueError(
                f"first_position must be >= 1, got: {self.first_position}"
            )
        if not 0.0 <= self.depth_of_mention <= 100.0:
            raise ValueError(
                f"depth_of_mention must be in range [0, 100], got: {self.depth_of_mention}"
            )
        if self.hyperlink_count < 0:
            raise ValueError(
                f"hyperlink_count must be >= 0, got: {self.hyperlink_count}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "brand_name": self.brand_name,
            "mentioned": self.mentioned,
            "first_position": self.first_position,
            "mention_count": self.mention_count,
            "sentences": [s.to_dict() for s in self.sentences],
            "total_word_count": self.total_word_count,
            "depth_of_mention": self.depth_of_mention,
            "sentiment": self.sentiment.to_dict(),
            "hyperlink_count": self.hyperlink_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BrandMentionRecord":
        return cls(
            brand_name=data["brand_name"],
            mentioned=bool(data.get("mentioned", False)),
            first_position=data.get("first_position"),
            mention_count=int(data.get("mention_count", 0)),
            sentences=tuple(
                MentionSentence.from_dict(s) for s in data.get("sentences", [])
            ),
            total_word_count=int(data.get("total_word_count", 0)),
            depth_of_mention=float(data.get("depth_of_mention", 0.0)),
            sentiment=SentimentResult.from_dict(data.get("sentiment") or {}),
            hyperlink_count=int(data.get("hyperlink_count", 0)),
        )


@dataclass(frozen=True)
class ResponseSummary:
    """
    Response-level totals.

    Attributes:
        text: Response text as analyzed ("" for malformed input)
        total_sentences: Number of non-empty sentences
        total_words: Whitespace-delimited words in the response text
        total_hyperlinks: Markdown hyperlinks in the response
        citations: Classified citations, in response order
    """

    text: str
    total_sentences: int
    total_words: int
    total_hyperlinks: int = 0
    citations: tuple[Citation, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "total_sentences": self.total_sentences,
            "total_words": self.total_words,
            "total_hyperlinks": self.total_hyperlinks,
            "citations": [c.to_dict() for c in self.citations],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResponseSummary":
        return cls(
            text=data.get("text", ""),
            total_sentences=int(data.get("total_sentences", 0)),
            total_words=int(data.get("total_words", 0)),
            total_hyperlinks=int(data.get("total_hyperlinks", 0)),
            citations=tuple(Citation.from_dict(c) for c in data.get("citations", [])),
        )


@dataclass(frozen=True)
class ExtractionResult:
    """
    Complete extraction result for one response and brand list.

    Produced once and never mutated. Records follow the order of the
    (deduplicated) brand list.
    """

    response: ResponseSummary
    brand_metrics: tuple[BrandMentionRecord, ...]

    def get(self, brand_name: str) -> BrandMentionRecord | None:
        """Return the record for brand_name, or None if it was not tracked."""
        for record in self.brand_metrics:
            if record.brand_name == brand_name:
                return record
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "response": self.response.to_dict(),
            "brand_metrics": [r.to_dict() for r in self.brand_metrics],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtractionResult":
        return cls(
            response=ResponseSummary.from_dict(data["response"]),
            brand_metrics=tuple(
                BrandMentionRecord.from_dict(r) for r in data["brand_metrics"]
            ),
        )


def calculate_depth_of_mention(
    sentences: Iterable[Sentence | MentionSentence],
    total_sentences: int,
    total_words: int,
) -> float:
    """
    Position-decayed share of the response's words spent on a brand.

        depth = sum(word_count * exp(-(position + 1) / total_sentences))
                / total_words * 100

    Earlier sentences weigh more. Returns 0.0 when there are no sentences or
    the response has zero sentences or zero words.

    Example:
        >>> s = Sentence(text="Acme is the final pick here", position=2, word_count=5)
        >>> round(calculate_depth_of_mention([s], total_sentences=3, total_words=30), 2)
        6.13
    """
    if total_sentences <= 0 or total_words <= 0:
        return 0.0

    weighted = sum(
        s.word_count * math.exp(-(s.position + 1) / total_sentences) for s in sentences
    )
    return weighted / total_words * 100


class MetricsExtractor:
    """
    Builds ExtractionResults from raw response text.

    Holds one BrandDetector, CitationClassifier and SentimentScorer built
    from the config; safe to reuse across responses.

    Args:
        config: Metrics configuration (production defaults if None)
    """

    def __init__(self, config: MetricsConfig | None = None):
        self.config = config or MetricsConfig()
        self.detector = BrandDetector(self.config.detection)
        self.classifier = CitationClassifier(self.config.citations)
        self.scorer = SentimentScorer(self.config.sentiment)

    def _clean_response(self, response: Any) -> str:
        if isinstance(response, str):
            return response
        if response is not None:
            logger.warning(
                f"Response is not a string ({type(response).__name__}), "
                "treating as empty"
            )
        return ""

    def _clean_brand_names(self, brand_names: Any) -> list[str]:
        if isinstance(brand_names, str):
            logger.warning("brand_names is a single string, wrapping in a list")
            brand_names = [brand_names]

        names: list[str] = []
        if isinstance(brand_names, Sequence):
            for name in brand_names:
                if not isinstance(name, str) or not name.strip():
                    logger.warning(f"Skipping invalid brand name: {name!r}")
                    continue
                name = name.strip()
                if name not in names:
                    names.append(name)
        elif brand_names is not None:
            logger.warning(
                f"brand_names is not a list ({type(brand_names).__name__}), ignoring"
            )

        if not names:
            logger.warning(
                f"No brand names supplied, using placeholder "
                f"{self.config.placeholder_brand!r}"
            )
            names = [self.config.placeholder_brand]
        return names

    def extract(
        self,
        response: Any,
        brand_names: Any,
        domains: CitationDomains | None = None,
    ) -> ExtractionResult:
        """
        Extract per-brand mention metrics and citations from one response.

        Args:
            response: Raw response text (non-strings are treated as "")
            brand_names: Brands to track, in display order
            domains: Domain tables for this call (config tables if None)

        Returns:
            ExtractionResult with one record per unique brand name
        """
        text = self._clean_response(response)
        names = self._clean_brand_names(brand_names)

        sentences = segment(text)
        total_sentences = len(sentences)
        total_words = count_words(text)

        mentions: dict[str, list[MentionSentence]] = {name: [] for name in names}
        for sentence in sentences:
            for name in names:
                result = self.detector.detect(sentence.text, name)
                if result.detected:
                    mentions[name].append(
                        MentionSentence.from_sentence(
                            sentence, result.confidence, result.method
                        )
                    )

        precision = self.config.aggregation.depth_precision
        records = []
        for name in names:
            brand_sentences = tuple(mentions[name])
            depth = calculate_depth_of_mention(
                brand_sentences, total_sentences, total_words
            )
            records.append(
                BrandMentionRecord(
                    brand_name=name,
                    mentioned=bool(brand_sentences),
                    first_position=(
                        brand_sentences[0].position + 1 if brand_sentences else None
                    ),
                    mention_count=len(brand_sentences),
                    sentences=brand_sentences,
                    total_word_count=sum(s.word_count for s in brand_sentences),
                    depth_of_mention=min(round(depth, precision), 100.0),
                    sentiment=self.scorer.score(brand_sentences),
                    hyperlink_count=count_brand_hyperlinks(name, text),
                )
            )

        classifier = self.classifier if domains is None else CitationClassifier(domains)
        citations = tuple(classifier.extract_citations(text))

        logger.debug(
            f"Extracted metrics for {len(names)} brands",
            extra={
                "context": {
                    "sentences": total_sentences,
                    "words": total_words,
                    "mentioned": [r.brand_name for r in records if r.mentioned],
                    "citations": len(citations),
                }
            },
        )

        return ExtractionResult(
            response=ResponseSummary(
                text=text,
                total_sentences=total_sentences,
                total_words=total_words,
                total_hyperlinks=count_hyperlinks(text),
                citations=citations,
            ),
            brand_metrics=tuple(records),
        )


def extract_metrics(
    response: Any,
    brand_names: Any,
    domains: CitationDomains | None = None,
) -> ExtractionResult:
    """Extract metrics with production default settings."""
    return MetricsExtractor().extract(response, brand_names, domains)
