"""
Extractor package for turning response text into per-brand metrics.

Public API:
    - segment / count_words: Sentence segmentation and word counting
    - distance / similarity: Bounded-cost edit distance
    - BrandDetector / detect_brand: Five-strategy brand detection cascade
    - CitationClassifier / extract_citations / filter_relevant: Citations
    - SentimentScorer: Keyword sentiment of brand sentences
    - MetricsExtractor / extract_metrics: Per-response extraction
    - extract_batch: Process-pool fan-out of extraction
"""

from brand_metrics.extractor.batch import ExtractionTask, extract_batch
from brand_metrics.extractor.citation_classifier import (
    Citation,
    CitationClassifier,
    count_brand_hyperlinks,
    count_hyperlinks,
    extract_citations,
    filter_relevant,
)
from brand_metrics.extractor.mention_detector import (
    BrandDetectionResult,
    BrandDetector,
    create_brand_pattern,
    detect_brand,
)
from brand_metrics.extractor.parser import (
    BrandMentionRecord,
    ExtractionResult,
    MentionSentence,
    MetricsExtractor,
    ResponseSummary,
    calculate_depth_of_mention,
    extract_metrics,
)
from brand_metrics.extractor.segmenter import Sentence, count_words, segment
from brand_metrics.extractor.sentiment import SentimentResult, SentimentScorer
from brand_metrics.extractor.similarity import distance, similarity

__all__ = [
    "BrandDetectionResult",
    "BrandDetector",
    "BrandMentionRecord",
    "Citation",
    "CitationClassifier",
    "ExtractionResult",
    "ExtractionTask",
    "MentionSentence",
    "MetricsExtractor",
    "ResponseSummary",
    "Sentence",
    "SentimentResult",
    "SentimentScorer",
    "calculate_depth_of_mention",
    "count_brand_hyperlinks",
    "count_hyperlinks",
    "count_words",
    "create_brand_pattern",
    "detect_brand",
    "distance",
    "extract_batch",
    "extract_citations",
    "extract_metrics",
    "filter_relevant",
    "segment",
    "similarity",
]
