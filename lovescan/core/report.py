"""
Report Assembler
=================
Packages the aggregate risk, the extracted entity and references to the
submitted evidence into the ReportPayload handed to the reporting
collaborator. Pure combination: absent fields pass through as None or
empty, nothing here can fail.
"""

from datetime import datetime, timezone
from typing import Iterable, Sequence

from lovescan.core.patterns import CATALOG_VERSION
from lovescan.schemas import (
    AggregateRisk,
    EvidenceRef,
    ExtractedEntity,
    ReportMetadata,
    ReportPayload,
    RiskLevel,
    Source,
)

# report scan_type tokens, joined with "+" in this order
SCAN_TYPES = (
    (Source.CHAT, "chat_analysis"),
    (Source.SOCIAL, "social_media"),
    (Source.IMAGE, "reverse_image"),
)

RECOMMENDATIONS = {
    RiskLevel.HIGH: "HIGH RISK: Avoid sending money or personal information. Consider ending contact.",
    RiskLevel.MEDIUM: "Proceed with caution. Verify identity through video calls.",
    RiskLevel.LOW: "Continue normal conversation but remain vigilant.",
}
NO_EVIDENCE_RECOMMENDATION = (
    "No evidence was analyzed. Upload a chat log, profile screenshots or a profile photo to run a scan."
)

# (minimum score, label), highest first
RISK_LABELS = (
    (80, "Very High Risk"),
    (60, "High Risk"),
    (40, "Medium Risk"),
    (20, "Low Risk"),
    (0, "Very Low Risk"),
)


def risk_label(score: int, has_evidence: bool = True) -> str:
    if not has_evidence:
        return "No Evidence"
    for minimum, label in RISK_LABELS:
        if score >= minimum:
            return label
    return RISK_LABELS[-1][1]


def recommendation_for(level: RiskLevel, has_evidence: bool = True) -> str:
    if not has_evidence:
        return NO_EVIDENCE_RECOMMENDATION
    return RECOMMENDATIONS[level]


def scan_type_for(aggregate: AggregateRisk) -> str:
    present = {finding.source for finding in aggregate.per_source_findings}
    return "+".join(token for source, token in SCAN_TYPES if source in present)


def assemble(aggregate: AggregateRisk, entity: ExtractedEntity,
             evidence_refs: Sequence[EvidenceRef], generated_at: str | None = None,
             failed_sources: Iterable[Source] = ()) -> ReportPayload:
    """
    Build the report payload for one scan.

    Args:
        aggregate: Combined risk for the scan
        entity: Name and handles extracted from the evidence
        evidence_refs: What the user submitted, for the report record
        generated_at: ISO timestamp; defaults to now (UTC)
        failed_sources: Sources whose analysis failed or timed out

    Returns:
        ReportPayload ready for the reporting collaborator
    """
    has_evidence = aggregate.has_evidence
    image_url = next((ref.url for ref in evidence_refs if ref.kind == "image_matches" and ref.url), None)

    return ReportPayload(
        reported_name=entity.candidate_name,
        reported_social_media=entity.primary_handles(),
        reported_image_url=image_url,
        scan_type=scan_type_for(aggregate),
        risk_score=aggregate.overall_score,
        risk_level=aggregate.overall_level,
        risk_label=risk_label(aggregate.overall_score, has_evidence),
        has_evidence=has_evidence,
        verdict=aggregate.verdict,
        recommendation=recommendation_for(aggregate.overall_level, has_evidence),
        findings=list(aggregate.per_source_findings),
        social_handles={platform: list(handles) for platform, handles in entity.social_handles.items()},
        evidence_refs=list(evidence_refs),
        metadata=ReportMetadata(
            catalog_version=CATALOG_VERSION,
            generated_at=generated_at or datetime.now(timezone.utc).isoformat(),
            failed_sources=[source.value for source in failed_sources],
        ),
    )
