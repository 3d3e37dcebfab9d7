"""
Configuration constants for Brand Metrics.

Default lookup tables and calibration constants shared across the extractor
and aggregator. The tables are immutable; components receive them through
the pydantic settings in config.schema, never by importing mutable state.

The numeric thresholds are empirically chosen calibration constants. They
are exposed as configurable defaults and pinned by tests so that any product
tuning shows up as a deliberate change.
"""

# Placeholder brand used when a caller passes no brands at all
PLACEHOLDER_BRAND = "Unknown Brand"

# Sentence and word segmentation
SENTENCE_TERMINATORS = ".!?"

# String similarity cost guards
MIN_LENGTH_RATIO = 0.5
MAX_COMPARE_LENGTH = 50
LONG_STRING_PENALTY = 0.3

# Brand detection confidences
EXACT_CONFIDENCE = 1.0
ABBREVIATION_CONFIDENCE = 0.9
PARTIAL_CONFIDENCE = 0.85
PARTIAL_DISTANT_CONFIDENCE = 0.7
VARIATION_CONFIDENCE = 0.8

# Brand detection thresholds
PARTIAL_MAX_SPAN = 10
FUZZY_THRESHOLD = 0.7
FUZZY_CONFIDENCE_FACTOR = 0.9
FUZZY_MAX_BRAND_LENGTH = 30
FUZZY_MAX_SENTENCE_LENGTH = 200
FUZZY_MAX_WORDS = 5
FUZZY_MAX_PHRASES = 3
VARIATION_MIN_BRAND_LENGTH = 10

# Abbreviation generation
SYLLABLE_MIN_WORD_LENGTH = 6
SYLLABLE_MAX_COUNT = 2

# Output precision
SCORE_PRECISION = 2
DEPTH_PRECISION = 4

# Words removed before generating abbreviations and partial matches.
# Articles, prepositions, auxiliaries and corporate filler.
COMMON_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
        "been", "being", "have", "has", "had", "do", "does", "did", "will",
        "would", "could", "should", "may", "might", "must",
        "company", "inc", "incorporated", "corp", "corporation", "ltd",
        "limited", "llc", "group", "holdings", "enterprises", "industries",
        "international", "global",
    }
)

POSITIVE_KEYWORDS = (
    "leading", "best", "excellent", "outstanding", "superior", "premium",
    "advanced", "innovative", "reliable", "trusted", "comprehensive", "strong",
    "well-regarded", "excel", "attractive", "competitive", "expert",
    "specialized", "dedicated",
)

NEGATIVE_KEYWORDS = (
    "poor", "bad", "worst", "inferior", "weak", "unreliable", "expensive",
    "limited", "outdated", "slow", "problematic", "issues", "concerns",
    "disappointing", "failing",
)

# Shared-media platforms. Subdomains match too (m.facebook.com, uk.linkedin.com).
SOCIAL_DOMAINS = (
    # Major social networks
    "facebook.com", "fb.com", "twitter.com", "x.com", "t.co", "twitter.co.uk",
    "instagram.com", "ig.com", "instagram.co.uk", "linkedin.com",
    "linkedin.co.uk", "youtube.com", "youtu.be", "youtube.co.uk", "tiktok.com",
    "tiktok.co.uk", "snapchat.com", "snapchat.co.uk", "pinterest.com",
    "pinterest.co.uk", "reddit.com", "reddit.co.uk",
    # Messaging
    "whatsapp.com", "wa.me", "telegram.org", "telegram.me", "t.me",
    "discord.com", "discord.gg", "signal.org", "viber.com", "line.me",
    "wechat.com",
    # Video
    "twitch.tv", "twitch.com", "vimeo.com", "vimeo.co.uk", "dailymotion.com",
    "dailymotion.co.uk",
    # Content sharing
    "medium.com", "medium.co.uk", "tumblr.com", "tumblr.co.uk", "flickr.com",
    "flickr.co.uk", "imgur.com",
    # Q&A and discussion
    "quora.com", "quora.co.uk", "stackoverflow.com", "stackexchange.com",
    "threads.net", "mastodon.social", "mastodon.online",
    # Other
    "clubhouse.com", "meetup.com", "nextdoor.com", "foursquare.com",
    "mewe.com", "truthsocial.com", "minds.com",
    # Blogging (user-generated content)
    "blogspot.com", "blogger.com", "wordpress.com", "wordpress.co.uk",
    "substack.com",
)
