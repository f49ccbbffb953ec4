"""
Screenshot Metric Extractor
============================
Parses OCR text from a social-media screenshot into ExtractedMetrics.

Each metric (followers, following, posts, likes, comments) has a
prioritized list of patterns; the most specific pattern is tried first
and the first match wins:

1. explicit "Label: number" ("Followers: 2.1K")
2. number with a K/M/B suffix before the metric word ("14.5M followers",
   "14.5 M followers")
3. plain or comma-grouped number before the metric word
   ("14,500,000 followers", "1234 posts")
4. metric word followed by the number ("Followers 2.1K"), used by
   profile layouts that put the label first

A metric whose patterns all miss stays None. It is never defaulted
to 0. Pure functions, no I/O.
"""

import re
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from lovescan.schemas import ExtractedMetrics, Platform

logger = logging.getLogger(__name__)


# ==============================
# NUMBER PARSING
# ==============================

# comma-grouped integers first so "14,500,000" is not read as "14"
_NUMBER = r"(\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?)"
_SUFFIX = r"([kmb])"

SUFFIX_MULTIPLIERS = {
    "k": Decimal(1_000),
    "m": Decimal(1_000_000),
    "b": Decimal(1_000_000_000),
}


def parse_count(number: str, suffix: str | None = None) -> int | None:
    """
    Normalize "14.5" + "M", "14,532" or "2.1" + "k" to an integer.

    Returns None if the number cannot be parsed.
    """
    try:
        value = Decimal(number.replace(",", ""))
    except (InvalidOperation, AttributeError):
        return None

    if suffix:
        value *= SUFFIX_MULTIPLIERS.get(suffix.lower(), Decimal(1))

    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _metric_patterns(word: str) -> list[re.Pattern]:
    return [
        re.compile(rf"{word}[ \t]*:[ \t]*{_NUMBER}(?:[ \t]?{_SUFFIX}\b)?", re.IGNORECASE),
        re.compile(rf"{_NUMBER}\s?{_SUFFIX}\s*{word}", re.IGNORECASE),
        re.compile(rf"{_NUMBER}\s*{word}", re.IGNORECASE),
        re.compile(rf"{word}\s*[:\-]?\s*{_NUMBER}(?:\s?{_SUFFIX}\b)?", re.IGNORECASE),
    ]


FOLLOWER_PATTERNS = _metric_patterns(r"followers?\b")
FOLLOWING_PATTERNS = _metric_patterns(r"following\b")
POST_PATTERNS = _metric_patterns(r"posts?\b")
COMMENT_PATTERNS = _metric_patterns(r"comments?\b")
LIKE_PATTERNS = _metric_patterns(r"likes?\b") + [
    # "Liked by anna and 1,234 others"
    re.compile(rf"and\s+{_NUMBER}\s?{_SUFFIX}?\s+others\b", re.IGNORECASE),
]


def _first_count(text: str, patterns: list[re.Pattern]) -> int | None:
    for pattern in patterns:
        match = pattern.search(text)
        if not match:
            continue
        suffix = match.group(2) if match.lastindex and match.lastindex >= 2 else None
        count = parse_count(match.group(1), suffix)
        if count is not None:
            return count
    return None


# ==============================
# FLAGS & PLATFORM
# ==============================

CHECKMARK_GLYPHS = ("✓", "✔", "☑")
VERIFIED_REGEX = re.compile(r"\bverified\b|blue (?:checkmark|check|tick)", re.IGNORECASE)
BUSINESS_WORDS = ("business", "professional", "creator")

# checked in order, first hit wins
PLATFORM_KEYWORDS = [
    (Platform.INSTAGRAM, ("instagram",)),
    (Platform.FACEBOOK, ("facebook",)),
    (Platform.TWITTER, ("twitter",)),
    (Platform.LINKEDIN, ("linkedin",)),
    (Platform.TIKTOK, ("tiktok",)),
]


def detect_platform(text: str) -> Platform:
    lowered = (text or "").lower()
    for platform, keywords in PLATFORM_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return platform
    return Platform.UNKNOWN


def _is_verified(text: str, labels: list[str]) -> bool:
    if any(glyph in text for glyph in CHECKMARK_GLYPHS):
        return True
    if VERIFIED_REGEX.search(text):
        return True
    return any("verified" in label.lower() or "checkmark" in label.lower() for label in labels)


def _is_business(text: str) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in BUSINESS_WORDS)


# ==============================
# PUBLIC API
# ==============================

def extract(ocr_text: str, labels: list[str] | None = None) -> ExtractedMetrics:
    """
    Parse one OCR text blob into ExtractedMetrics.

    Args:
        ocr_text: Raw text returned by the OCR collaborator
        labels: Optional vision labels for the same screenshot

    Returns:
        ExtractedMetrics with undetected counts left as None
    """
    text = ocr_text or ""
    labels = [label for label in (labels or []) if isinstance(label, str)]

    metrics = ExtractedMetrics(
        follower_count=_first_count(text, FOLLOWER_PATTERNS),
        following_count=_first_count(text, FOLLOWING_PATTERNS),
        post_count=_first_count(text, POST_PATTERNS),
        likes_count=_first_count(text, LIKE_PATTERNS),
        comments_count=_first_count(text, COMMENT_PATTERNS),
        is_verified=_is_verified(text, labels),
        is_business=_is_business(text),
        platform=detect_platform(text),
    )

    logger.debug(f"[METRICS] Extracted {metrics.model_dump(exclude_none=True)}")
    return metrics


def merge_metrics(*metrics: ExtractedMetrics | None) -> ExtractedMetrics | None:
    """
    Field-wise merge of metrics from several screenshots.

    The first detected value of each count wins; verified/business are
    true if any screenshot shows them; the first known platform wins.
    Returns None when no metrics were given.
    """
    present = [m for m in metrics if m is not None]
    if not present:
        return None

    def first(field: str):
        for m in present:
            value = getattr(m, field)
            if value is not None:
                return value
        return None

    platform = next((m.platform for m in present if m.platform != Platform.UNKNOWN), Platform.UNKNOWN)

    return ExtractedMetrics(
        follower_count=first("follower_count"),
        following_count=first("following_count"),
        post_count=first("post_count"),
        likes_count=first("likes_count"),
        comments_count=first("comments_count"),
        is_verified=any(m.is_verified for m in present),
        is_business=any(m.is_business for m in present),
        platform=platform,
    )
