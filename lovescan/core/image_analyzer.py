"""
Reverse-Image Match Analyzer
=============================
Scores the reverse-image-search hits for a profile photo.

Rules are applied in order and only ever raise the level:

1. match on a scam-report / blacklist domain      -> HIGH
2. match on a stock-photo provider                -> at least MEDIUM
3. more than 5 matches in total                   -> at least MEDIUM
4. more than 2 near-exact matches (score > 90)    -> at least MEDIUM
5. more than 2 matches on social-media platforms  -> at least MEDIUM
6. a match labelled fake/scam/stolen/catfish      -> at least MEDIUM
7. nothing above fired                            -> LOW, limited online presence

The underlying signal is categorical, so the score is a fixed value
per level.
"""

import logging
from urllib.parse import urlparse

from lovescan.schemas import Confidence, ImageMatch, RiskFinding, RiskLevel, Source

logger = logging.getLogger(__name__)

SCAM_DOMAIN_TOKENS = ("scam", "fraud", "fake", "alert", "blacklist")
STOCK_PHOTO_TOKENS = (
    "stock", "shutterstock", "getty", "unsplash", "pexels",
    "pixabay", "dreamstime", "depositphotos", "alamy", "123rf",
)
SOCIAL_MEDIA_TOKENS = ("facebook", "instagram", "linkedin", "twitter", "tiktok")
SUSPICIOUS_LABELS = ("fake", "scam", "stolen", "catfish")

MANY_MATCHES = 5
NEAR_EXACT_SCORE = 90
NEAR_EXACT_MATCHES = 2
SOCIAL_MATCHES = 2

LEVEL_SCORES = {
    RiskLevel.HIGH: 85,
    RiskLevel.MEDIUM: 55,
    RiskLevel.LOW: 20,
}

_LEVEL_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


def domain_from_url(url: str) -> str:
    """Hostname of a URL (or bare domain) with any leading "www." removed."""
    if not url:
        return ""
    candidate = url.strip().lower()
    if "://" not in candidate:
        candidate = f"//{candidate}"
    host = urlparse(candidate).hostname or ""
    return host[4:] if host.startswith("www.") else host


def _raise_level(current: RiskLevel, floor: RiskLevel) -> RiskLevel:
    return floor if _LEVEL_RANK[floor] > _LEVEL_RANK[current] else current


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def analyze(matches: list[ImageMatch]) -> RiskFinding | None:
    """
    Score reverse-image-search matches into an Image RiskFinding.

    Args:
        matches: Hits for the scanned photo (domain, score, labels)

    Returns:
        RiskFinding, or None when there are no matches to judge
    """
    if not matches:
        return None

    domains = [domain_from_url(m.domain) or m.domain.lower() for m in matches]

    scam_hits = [d for d in domains if any(token in d for token in SCAM_DOMAIN_TOKENS)]
    stock_hits = [d for d in domains if any(token in d for token in STOCK_PHOTO_TOKENS)]
    social_hits = [d for d in domains if any(token in d for token in SOCIAL_MEDIA_TOKENS)]
    near_exact = [m for m in matches if m.score > NEAR_EXACT_SCORE]
    labelled = [
        m for m in matches
        if any(term in label.lower() for label in m.labels for term in SUSPICIOUS_LABELS)
    ]

    level = RiskLevel.LOW
    trace = [level.value]
    concerns = []

    def bump(floor: RiskLevel, concern: str):
        nonlocal level
        level = _raise_level(level, floor)
        trace.append(level.value)
        concerns.append(concern)

    if scam_hits:
        bump(RiskLevel.HIGH, f"Found on {_plural(len(scam_hits), 'scam reporting website')}")

    if stock_hits:
        bump(RiskLevel.MEDIUM,
             f"Image appears to be a stock photo (found on {_plural(len(stock_hits), 'stock site')})")

    if len(matches) > MANY_MATCHES:
        bump(RiskLevel.MEDIUM, f"Image appears on {len(matches)} different websites")

    if len(near_exact) > NEAR_EXACT_MATCHES:
        bump(RiskLevel.MEDIUM, f"{len(near_exact)} exact or near-exact matches found")

    if len(social_hits) > SOCIAL_MATCHES:
        bump(RiskLevel.MEDIUM, f"Image found on {len(social_hits)} social media platforms")

    if labelled:
        bump(RiskLevel.MEDIUM, "Image analysis detected suspicious content indicators")

    if not concerns:
        concerns.append("Limited online presence detected")

    finding = RiskFinding(
        source=Source.IMAGE,
        score=LEVEL_SCORES[level],
        level=level,
        concerns=concerns,
        confidence=Confidence.HIGH,
        details={
            "matchCount": len(matches),
            "uniqueDomains": sorted(set(domains)),
            "scamDomains": scam_hits,
            "stockDomains": stock_hits,
            "socialDomains": social_hits,
            "nearExactMatches": len(near_exact),
            "levelTrace": trace,
        },
    )

    logger.info(f"[IMAGE] {len(matches)} matches -> {level.value} ({len(concerns)} concerns)")
    return finding
