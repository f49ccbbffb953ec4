"""
Risk Aggregator
================
Merges the per-source findings (chat, image, social) into one bounded
overall score and level.

The overall score is the unweighted mean of the present finding
scores, rounded half up. With no findings at all the aggregate is
score 0 / LOW, and AggregateRisk.has_evidence is False so callers can
tell "nothing supplied" apart from a genuine low-risk verdict.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from lovescan.schemas import AggregateRisk, RiskFinding, RiskLevel

logger = logging.getLogger(__name__)

HIGH_THRESHOLD = 70
MEDIUM_THRESHOLD = 40


def level_for_score(score: int) -> RiskLevel:
    """Map a 0-100 score to its level: >=70 HIGH, 40-69 MEDIUM, else LOW."""
    if score >= HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if score >= MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp_score(value) -> int:
    return max(0, min(100, round_half_up(value)))


def aggregate(findings: Iterable[RiskFinding]) -> AggregateRisk:
    """
    Combine findings into an AggregateRisk.

    Args:
        findings: Zero or more findings, at most one per source

    Returns:
        A freshly built AggregateRisk; never mutates an earlier one
    """
    present = [f for f in findings if f is not None]

    if not present:
        logger.info("[AGGREGATE] No findings supplied: no evidence verdict")
        return AggregateRisk(overall_score=0, overall_level=RiskLevel.LOW, per_source_findings=[])

    total = sum(Decimal(f.score) for f in present)
    overall = clamp_score(total / len(present))
    level = level_for_score(overall)

    logger.info(f"[AGGREGATE] sources={[f.source.value for f in present]}, "
                f"score={overall}, level={level.value}")

    return AggregateRisk(overall_score=overall, overall_level=level, per_source_findings=present)
