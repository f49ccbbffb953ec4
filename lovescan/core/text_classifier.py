"""
Chat Text Risk Classifier
==========================
Scans one free-text evidence item against the pattern catalog.

Scoring uses a fixed weight per distinct category triggered:
score = min(100, categories * 25). Repeated matches of the same
category count once, so the score is monotonic in the number of
distinct tactics present and capped at 100.

Empty or whitespace-only text yields no finding at all (absent
evidence, not zero risk). No language detection is performed; non-Latin
text simply matches nothing.
"""

import logging

from lovescan.core.aggregator import level_for_score
from lovescan.core.patterns import CATALOG_VERSION, CATEGORY_ORDER, PATTERN_RULES
from lovescan.schemas import Category, Confidence, RiskFinding, Source

logger = logging.getLogger(__name__)

POINTS_PER_CATEGORY = 25


def find_category_hits(text: str) -> dict[Category, list]:
    """
    Return matching rules grouped by category, in catalog order.

    Categories with no matching rule are omitted.
    """
    lowered = (text or "").lower()
    hits: dict[Category, list] = {}

    for category in CATEGORY_ORDER:
        matched = [
            rule for rule in PATTERN_RULES
            if rule.category == category and rule.matcher.search(lowered)
        ]
        if matched:
            hits[category] = matched

    return hits


def classify(text: str) -> RiskFinding | None:
    """
    Classify chat text into a Chat RiskFinding.

    Args:
        text: Pasted chat log or OCR text of a chat screenshot

    Returns:
        RiskFinding, or None when the text is empty or whitespace
    """
    if not text or not text.strip():
        return None

    hits = find_category_hits(text)

    score = min(100, len(hits) * POINTS_PER_CATEGORY)
    concerns = [rules[0].warning for rules in hits.values()]

    finding = RiskFinding(
        source=Source.CHAT,
        score=score,
        level=level_for_score(score),
        concerns=concerns,
        confidence=Confidence.MEDIUM,
        details={
            "analysisSource": "heuristic",
            "categories": [category.value for category in hits],
            "matchedRules": [rule.label for rules in hits.values() for rule in rules],
            "wordCount": len(text.split()),
            "characterCount": len(text),
            "catalogVersion": CATALOG_VERSION,
        },
    )

    logger.info(f"[CHAT] Heuristic score={score}, categories={finding.details['categories']}")
    return finding
