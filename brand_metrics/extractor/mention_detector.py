"""
Brand mention detection for Brand Metrics.

Decides whether, and how confidently, a sentence mentions a brand. Brand
names show up in free text in many surface forms, so detection runs a fixed
cascade of strategies, cheapest and most precise first. The first strategy
that fires wins; scores are never combined.

Cascade (confidence):
1. exact (1.0): the brand as a whole word/phrase
2. abbreviation (0.9): acronyms, syllable prefixes and word combinations
   generated from the brand's significant words
3. partial (0.85, or 0.7 as "partial-distant"): every significant word
   present, confidence drops when they are spread over more than 10 tokens
4. fuzzy (similarity * 0.9): edit-distance match on the first few tokens
   and token pairs, only for short brands and sentences
5. variation (0.8): function-word swaps and article stripping for long names

Security:
- Always uses re.escape() before building a pattern from a brand name

Performance:
- Patterns and per-brand candidate lists are cached
- Fuzzy matching is bounded by brand length, sentence length and token count

Example:
    >>> detector = BrandDetector()
    >>> detector.detect("Our top pick is Acme Corp for reliability", "Acme Corp")
    BrandDetectionResult(detected=True, confidence=1.0, method='exact')
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

from ..config.constants import (
    COMMON_WORDS,
    SYLLABLE_MAX_COUNT,
    SYLLABLE_MIN_WORD_LENGTH,
)
from ..config.schema import DetectionSettings
from .similarity import similarity

DETECTION_METHODS = frozenset(
    {
        "exact",
        "abbreviation",
        "partial",
        "partial-distant",
        "fuzzy",
        "fuzzy-phrase",
        "variation",
    }
)

_VOWELS = frozenset("aeiouy")
_NON_ALNUM = re.compile(r"[\W_]+")
_NON_WORD = re.compile(r"[^\w]")
_NON_WORD_OR_SPACE = re.compile(r"[^\w\s]")

# Interchangeable function words, applied one at a time
_VARIATION_REPLACEMENTS = (
    (re.compile(r"\bfor\b", re.IGNORECASE), "of"),
    (re.compile(r"\bof\b", re.IGNORECASE), "for"),
    (re.compile(r"\byour\b", re.IGNORECASE), "a"),
    (re.compile(r"\ba\b", re.IGNORECASE), "your"),
    (re.compile(r"\bthe\b", re.IGNORECASE), ""),
)
_ARTICLES = re.compile(r"\b(the|a|an|for|of|your)\b", re.IGNORECASE)


@dataclass(frozen=True)
class BrandDetectionResult:
    """
    Outcome of running the detection cascade on one sentence.

    Attributes:
        detected: True if any strategy fired
        confidence: Strategy confidence in [0.0, 1.0]; 0.0 when not detected
        method: Strategy that fired, None when not detected
    """

    detected: bool
    confidence: float
    method: str | None = None

    def __post_init__(self):
        """Validate confidence range and method/detected consistency."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"confidence must be in range [0.0, 1.0], got: {self.confidence}"
            )
        if self.detected and self.method not in DETECTION_METHODS:
            raise ValueError(
                f"method must be one of {sorted(DETECTION_METHODS)}, got: {self.method}"
            )
        if not self.detected and self.method is not None:
            raise ValueError("method must be None when nothing was detected")


NOT_DETECTED = BrandDetectionResult(detected=False, confidence=0.0, method=None)

DetectionStrategy = Callable[[str, str], BrandDetectionResult | None]


@lru_cache(maxsize=4096)
def create_brand_pattern(alias: str) -> re.Pattern:
    """
    Create a whole-word regex pattern for a brand or candidate alias.

    CRITICAL: Bounded on both sides so short names never match inside
    longer words.
    - "HubSpot" matches in "I use HubSpot daily"
    - "hub" does NOT match in "GitHub"

    Boundaries are lookarounds on word characters rather than \\b, so names
    that start or end with punctuation ("C++", ".NET") still match. Internal
    whitespace matches any whitespace run.

    Security: Always escapes special regex characters to prevent injection.

    Args:
        alias: Brand alias to create pattern for (e.g., "HubSpot", "Warmly.io")

    Returns:
        Compiled case-insensitive pattern

    Raises:
        ValueError: If alias is empty or whitespace

    Example:
        >>> bool(create_brand_pattern("HubSpot").search("I recommend hubspot"))
        True
        >>> bool(create_brand_pattern("hub").search("I use GitHub"))
        False
    """
    if not alias or alias.isspace():
        raise ValueError("Brand alias cannot be empty or whitespace")

    # SECURITY: Escape each part before joining with a whitespace class
    escaped = r"\s+".join(re.escape(part) for part in alias.split())

    return re.compile(r"(?<!\w)" + escaped + r"(?!\w)", re.IGNORECASE)


def _clean_word(word: str) -> str:
    return _NON_ALNUM.sub("", word.lower())


@lru_cache(maxsize=1024)
def significant_words(
    brand_name: str, common_words: frozenset[str] = COMMON_WORDS
) -> tuple[str, ...]:
    """
    Reduce a brand name to its significant words.

    Lowercases, strips punctuation, and drops words shorter than 3
    characters, common words, legal suffixes and corporate filler. If nothing
    survives, falls back to every cleaned word of 3+ characters.

    Examples:
        >>> significant_words("The Bank of America Corp.")
        ('bank', 'america')
        >>> significant_words("Global Group Inc")
        ('global', 'group', 'inc')
    """
    cleaned = [_clean_word(word) for word in brand_name.split()]
    words = tuple(w for w in cleaned if len(w) > 2 and w not in common_words)
    if words:
        return words
    return tuple(w for w in cleaned if len(w) > 2)


def first_syllables(word: str, max_syllables: int = SYLLABLE_MAX_COUNT) -> list[str]:
    """
    Prefixes of a word ending at each of its first vowel runs.

    A rough syllable heuristic: a syllable ends where a run of vowels
    (including 'y') ends.

    Examples:
        >>> first_syllables("american")
        ['a', 'ame']
        >>> first_syllables("microsoft")
        ['mi', 'micro']
    """
    prefixes: list[str] = []
    word = word.lower()

    for i, char in enumerate(word):
        if len(prefixes) >= max_syllables:
            break
        is_vowel = char in _VOWELS
        next_is_vowel = i + 1 < len(word) and word[i + 1] in _VOWELS
        if is_vowel and not next_is_vowel:
            prefixes.append(word[: i + 1])

    return prefixes


@lru_cache(maxsize=1024)
def brand_abbreviations(
    brand_name: str, common_words: frozenset[str] = COMMON_WORDS
) -> tuple[str, ...]:
    """
    Generate candidate abbreviations for a brand, in a fixed order.

    Generic across industries, nothing is hardcoded per brand:
    1. Initials of all significant words ("American Express" -> "ae")
    2. Initials of the first two significant words
    3. Syllable prefixes (2-6 chars) of significant words of 6+ chars
    4. First significant word alone (multi-word brands)
    5. First two significant words concatenated
    6. First word plus last word's initial
    7. First letter plus 3-5 char prefixes of each later word of 4+ chars

    Example:
        >>> brand_abbreviations("American Express")[:4]
        ('ae', 'ame', 'expre', 'american')
    """
    words = significant_words(brand_name, common_words)
    candidates: dict[str, None] = {}

    def add(candidate: str, min_length: int) -> None:
        if len(candidate) >= min_length:
            candidates.setdefault(candidate, None)

    if len(words) > 1:
        full_initials = "".join(w[0] for w in words)
        add(full_initials, 2)
        add("".join(w[0] for w in words[:2]), 2)

    for word in words:
        if len(word) >= SYLLABLE_MIN_WORD_LENGTH:
            for syllable in first_syllables(word, SYLLABLE_MAX_COUNT):
                if len(syllable) <= 6:
                    add(syllable, 2)

    if len(words) > 1:
        add(words[0], 3)
        add(words[0] + words[1], 3)
        add(words[0] + words[-1][0], 3)

        first_letter = words[0][0]
        for word in words[1:]:
            if len(word) >= 4:
                for length in range(3, min(5, len(word)) + 1):
                    add(first_letter + word[:length], 3)

    return tuple(candidates)


@lru_cache(maxsize=1024)
def brand_variations(brand_name: str) -> tuple[str, ...]:
    """
    Generate surface variations of a long brand name.

    Swaps interchangeable function words one at a time ("for" <-> "of",
    "a" <-> "your"), drops "the", and finally strips every article and
    preposition. Whitespace is collapsed; unchanged or empty results are
    skipped.

    Example:
        >>> brand_variations("Bank for Your Business")
        ('Bank of Your Business', 'Bank for a Business', 'Bank Business')
    """
    variations: dict[str, None] = {}

    for pattern, replacement in _VARIATION_REPLACEMENTS:
        variation = " ".join(pattern.sub(replacement, brand_name).split())
        if variation and variation != brand_name:
            variations.setdefault(variation, None)

    stripped = " ".join(_ARTICLES.sub("", brand_name).split())
    if stripped and stripped != brand_name:
        variations.setdefault(stripped, None)

    return tuple(variations)


class BrandDetector:
    """
    Ordered five-strategy brand detection cascade.

    Each strategy shares the signature (sentence, brand_name) ->
    BrandDetectionResult | None and returns None when it does not fire.
    detect() evaluates them in order and returns the first result.

    Args:
        settings: Thresholds and confidences (production defaults if None)

    Example:
        >>> detector = BrandDetector()
        >>> detector.detect("Travelers often pick the AE card", "American Express").method
        'abbreviation'
    """

    def __init__(self, settings: DetectionSettings | None = None):
        self.settings = settings or DetectionSettings()
        self.strategies: tuple[DetectionStrategy, ...] = (
            self.match_exact,
            self.match_abbreviation,
            self.match_partial,
            self.match_fuzzy,
            self.match_variation,
        )

    def detect(self, sentence: str, brand_name: str) -> BrandDetectionResult:
        """
        Run the cascade and return the first strategy that fires.

        Empty or non-string inputs are never detected.
        """
        if not isinstance(sentence, str) or not isinstance(brand_name, str):
            return NOT_DETECTED

        brand_name = brand_name.strip()
        if not sentence.strip() or not brand_name:
            return NOT_DETECTED

        for strategy in self.strategies:
            result = strategy(sentence, brand_name)
            if result is not None:
                return result

        return NOT_DETECTED

    def match_exact(self, sentence: str, brand_name: str) -> BrandDetectionResult | None:
        """Strategy 1: whole-word, case-insensitive brand match."""
        if create_brand_pattern(brand_name).search(sentence):
            return BrandDetectionResult(True, self.settings.exact_confidence, "exact")
        return None

    def match_abbreviation(
        self, sentence: str, brand_name: str
    ) -> BrandDetectionResult | None:
        """Strategy 2: any generated abbreviation as a whole word."""
        for abbreviation in brand_abbreviations(brand_name, self.settings.common_words):
            if create_brand_pattern(abbreviation).search(sentence):
                return BrandDetectionResult(
                    True, self.settings.abbreviation_confidence, "abbreviation"
                )
        return None

    def match_partial(self, sentence: str, brand_name: str) -> BrandDetectionResult | None:
        """
        Strategy 3: every significant word present as a whole word.

        Fires only when each word can also be located as a token, so the
        span between the matched words can be measured.
        """
        words = significant_words(brand_name, self.settings.common_words)
        if len(words) < 2:
            return None

        if not all(create_brand_pattern(word).search(sentence) for word in words):
            return None

        tokens = [_clean_word(token) for token in sentence.split()]
        indices = []
        for word in words:
            if word not in tokens:
                return None
            indices.append(tokens.index(word))

        span = max(indices) - min(indices)
        if span <= self.settings.partial_max_span:
            return BrandDetectionResult(True, self.settings.partial_confidence, "partial")
        return BrandDetectionResult(
            True, self.settings.partial_distant_confidence, "partial-distant"
        )

    def match_fuzzy(self, sentence: str, brand_name: str) -> BrandDetectionResult | None:
        """
        Strategy 4: edit-distance match on leading tokens and token pairs.

        Skipped for long brands or sentences. Scans at most the first
        fuzzy_max_words tokens and the first fuzzy_max_phrases adjacent pairs.
        """
        settings = self.settings
        if (
            len(brand_name) > settings.fuzzy_max_brand_length
            or len(sentence) > settings.fuzzy_max_sentence_length
        ):
            return None

        tokens = sentence.split()
        max_words = min(len(tokens), settings.fuzzy_max_words)

        for i in range(max_words):
            word = _NON_WORD.sub("", tokens[i])
            if 3 <= len(word) <= len(brand_name) + 5:
                score = similarity(word, brand_name, settings.similarity)
                if score >= settings.fuzzy_threshold:
                    return BrandDetectionResult(
                        True, score * settings.fuzzy_confidence_factor, "fuzzy"
                    )

            if i < max_words - 1 and i < settings.fuzzy_max_phrases:
                phrase = _NON_WORD_OR_SPACE.sub("", f"{tokens[i]} {tokens[i + 1]}")
                if len(phrase) >= 4:
                    score = similarity(phrase, brand_name, settings.similarity)
                    if score >= settings.fuzzy_threshold:
                        return BrandDetectionResult(
                            True,
                            score * settings.fuzzy_confidence_factor,
                            "fuzzy-phrase",
                        )

        return None

    def match_variation(
        self, sentence: str, brand_name: str
    ) -> BrandDetectionResult | None:
        """Strategy 5: function-word variations of long brand names."""
        if len(brand_name) <= self.settings.variation_min_brand_length:
            return None

        for variation in brand_variations(brand_name):
            if create_brand_pattern(variation).search(sentence):
                return BrandDetectionResult(
                    True, self.settings.variation_confidence, "variation"
                )
        return None


_default_detector = BrandDetector()


def detect_brand(sentence: str, brand_name: str) -> BrandDetectionResult:
    """
    Detect a brand in a sentence with production default settings.

    Example:
        >>> detect_brand("I use HubSpot daily", "hubspot").confidence
        1.0
    """
    return _default_detector.detect(sentence, brand_name)
