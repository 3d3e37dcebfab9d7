"""
Citation extraction and classification for Brand Metrics.

Finds markdown-style hyperlinks ("[anchor](https://host/path)") in a
response and classifies each one by its domain:

- brand: a domain owned by the tracked brand
- competitor: a domain owned by a tracked competitor
- social: a known social / shared-media platform
- earned: anything else (third-party coverage), the default

Classification is a pure function of the domain tables in CitationDomains.
A table entry matches its exact domain and any subdomain of it
("blog.acme.com" is owned by "acme.com").

Independently of domains, count_brand_hyperlinks() attributes a link to a
brand when the brand name appears in its anchor text or markup; that count
feeds citation share.

Example:
    >>> classifier = CitationClassifier(CitationDomains(brand_domains={"Acme": ["acme.com"]}))
    >>> [c.type for c in classifier.extract_citations("See [Acme](https://acme.com/page)")]
    ['brand']
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import Any
from urllib.parse import urlsplit

from ..config.schema import CitationDomains, normalize_domain

logger = logging.getLogger(__name__)

CITATION_TYPES = ("brand", "competitor", "social", "earned")

_HYPERLINK = re.compile(r"\[([^\]]*)\]\((https?://[^)]+)\)")


@dataclass(frozen=True)
class Citation:
    """
    A hyperlink found in a response.

    Attributes:
        url: Link target as written in the response
        domain: Bare lowercase host without "www."
        anchor_text: Link text between the square brackets
        type: One of "brand", "competitor", "social", "earned"
        brand: Owning brand or competitor name for brand/competitor links
    """

    url: str
    domain: str
    anchor_text: str
    type: str
    brand: str | None = None

    def __post_init__(self):
        """Validate citation type."""
        if self.type not in CITATION_TYPES:
            raise ValueError(
                f"type must be one of {CITATION_TYPES}, got: {self.type}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Citation":
        return cls(
            url=data["url"],
            domain=data.get("domain") or clean_domain(data["url"]),
            anchor_text=data.get("anchor_text", ""),
            type=data["type"],
            brand=data.get("brand"),
        )


def clean_domain(url: str) -> str:
    """
    Normalize a URL to a bare lowercase host.

    Falls back to the raw URL when no host can be parsed.

    Examples:
        >>> clean_domain("https://WWW.Acme.com/pricing?ref=1")
        'acme.com'
        >>> clean_domain("not a url")
        'not a url'
    """
    try:
        host = urlsplit(url.strip()).hostname
    except ValueError:
        host = None

    if not host:
        return url
    return normalize_domain(host)


def _domain_matches(domain: str, table: Iterable[str]) -> bool:
    return any(domain == entry or domain.endswith("." + entry) for entry in table)


def iter_hyperlinks(response: str) -> Iterable[re.Match]:
    """Yield a match per markdown hyperlink (group 1 anchor, group 2 URL)."""
    if not response or not isinstance(response, str):
        return iter(())
    return _HYPERLINK.finditer(response)


def count_hyperlinks(response: str) -> int:
    """
    Count every markdown hyperlink in the response.

    Example:
        >>> count_hyperlinks("[a](https://a.com) and [b](http://b.org)")
        2
    """
    return sum(1 for _ in iter_hyperlinks(response))


def count_brand_hyperlinks(brand_name: str, response: str) -> int:
    """
    Count hyperlinks whose anchor text or markup mentions the brand.

    Case-insensitive substring match, independent of domain tables.

    Example:
        >>> count_brand_hyperlinks("Acme", "[Acme review](https://x.com) [other](https://acme.io)")
        2
    """
    if not brand_name or not isinstance(brand_name, str):
        return 0

    needle = brand_name.strip().lower()
    if not needle:
        return 0

    count = 0
    for match in iter_hyperlinks(response):
        if needle in match.group(1).lower() or needle in match.group(0).lower():
            count += 1
    return count


class CitationClassifier:
    """
    Classifies response hyperlinks against brand, competitor and social tables.

    Args:
        domains: Domain tables (production social list, no brand tables if None)
    """

    def __init__(self, domains: CitationDomains | None = None):
        self.domains = domains or CitationDomains()

    def classify(self, domain: str) -> tuple[str, str | None]:
        """
        Classify a bare domain in priority order brand -> competitor -> social -> earned.

        Returns:
            (citation type, owning brand name or None)
        """
        for brand_name, table in self.domains.brand_domains.items():
            if _domain_matches(domain, table):
                return "brand", brand_name

        for competitor_name, table in self.domains.competitor_domains.items():
            if _domain_matches(domain, table):
                return "competitor", competitor_name

        if _domain_matches(domain, self.domains.social_domains):
            return "social", None

        return "earned", None

    def extract_citations(self, response: str) -> list[Citation]:
        """
        Extract and classify every hyperlink in the response, in order.

        Returns an empty list for empty or non-string input.
        """
        citations = []
        for match in iter_hyperlinks(response):
            anchor_text, url = match.group(1), match.group(2).strip()
            domain = clean_domain(url)
            citation_type, brand = self.classify(domain)
            citations.append(
                Citation(
                    url=url,
                    domain=domain,
                    anchor_text=anchor_text,
                    type=citation_type,
                    brand=brand,
                )
            )
        return citations


def extract_citations(
    response: str, domains: CitationDomains | None = None
) -> list[Citation]:
    """Convenience wrapper around CitationClassifier.extract_citations()."""
    return CitationClassifier(domains).extract_citations(response)


def filter_relevant(citations: Iterable[Citation | dict | None] | None) -> list[Citation]:
    """
    Keep only well-formed brand, competitor, social and earned citations.

    Accepts Citation objects or their dict form (as read back from storage).
    None entries, unknown types and dicts missing required fields are dropped.

    Example:
        >>> filter_relevant([None, {"url": "https://a.com", "type": "unknown"},
        ...                  {"url": "https://b.com", "type": "earned"}])[0].domain
        'b.com'
    """
    relevant = []
    for citation in citations or ():
        if isinstance(citation, Citation):
            relevant.append(citation)
            continue

        if not isinstance(citation, dict) or citation.get("type") not in CITATION_TYPES:
            continue

        try:
            relevant.append(Citation.from_dict(citation))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.debug(f"Dropping malformed citation {citation!r}: {e}")

    return relevant
