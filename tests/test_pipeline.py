"""
Tests for scan orchestration (pipeline.run_scan): fan-out over the
analyzers, failure and timeout handling, and report assembly.
"""

from __future__ import annotations

import threading
from unittest.mock import patch

from lovescan.core.pipeline import run_scan
from lovescan.llm.chat_analyst import analyze_chat
from lovescan.schemas import (
    ChatText,
    ImageMatch,
    ImageMatchSet,
    Platform,
    RiskLevel,
    ScreenshotOCRText,
    SocialProfileURL,
    Source,
)

PROFILE_OCR = "Instagram\n14.5M followers\n120 following\nVerified ✓"


def _scam_matches() -> ImageMatchSet:
    return ImageMatchSet(
        matches=[ImageMatch(domain="romance-scam-alerts.org", score=95)],
        image_url="https://cdn.example/photo.jpg",
    )


def test_full_scan_with_every_source(romance_chat):
    evidence = [
        ChatText(text=f"{romance_chat}\nmy name is David"),
        ScreenshotOCRText(text=PROFILE_OCR),
        _scam_matches(),
        SocialProfileURL(url="https://instagram.com/david_m"),
    ]

    result = run_scan(evidence, generated_at="2024-06-01T00:00:00+00:00")

    by_source = {f.source: f for f in result.aggregate.per_source_findings}
    assert set(by_source) == {Source.CHAT, Source.SOCIAL, Source.IMAGE}
    assert by_source[Source.CHAT].score == 75
    assert by_source[Source.SOCIAL].score == 85
    assert by_source[Source.IMAGE].score == 85

    # (75 + 85 + 85) / 3 = 81.67
    assert result.aggregate.overall_score == 82
    assert result.aggregate.overall_level == RiskLevel.HIGH
    assert result.failed_sources == []

    assert result.entity.candidate_name == "David"
    assert result.entity.social_handles["instagram"] == ["david_m"]

    report = result.report
    assert report.scan_type == "chat_analysis+social_media+reverse_image"
    assert report.reported_image_url == "https://cdn.example/photo.jpg"
    assert report.reported_social_media == {"instagram": "david_m"}
    assert [ref.kind for ref in report.evidence_refs] == ["chat", "screenshot", "image_matches", "profile_url"]
    assert report.metadata.generated_at == "2024-06-01T00:00:00+00:00"


def test_no_evidence_is_explicit():
    result = run_scan([])
    assert result.aggregate.has_evidence is False
    assert result.report.verdict == "no evidence provided"
    assert result.report.risk_label == "No Evidence"
    assert result.failed_sources == []
    assert result.entity.candidate_name is None


def test_whitespace_chat_counts_as_no_evidence():
    result = run_scan([ChatText(text="   \n ")])
    assert result.aggregate.per_source_findings == []
    assert result.report.verdict == "no evidence provided"


def test_failing_chat_analyzer_falls_back_to_keywords(romance_chat):
    def broken(text):
        raise RuntimeError("model exploded")

    result = run_scan([ChatText(text=romance_chat)], chat_analyzer=broken)

    finding = result.aggregate.per_source_findings[0]
    assert finding.source == Source.CHAT
    assert finding.score == 75
    assert finding.details["analysisSource"] == "heuristic"
    assert result.failed_sources == []


def test_slow_llm_falls_back_to_keywords(romance_chat):
    release = threading.Event()

    def slow_llm(messages, **kwargs):
        release.wait(5)
        return None

    with patch("lovescan.llm.chat_analyst.call_openrouter", side_effect=slow_llm):
        try:
            result = run_scan([ChatText(text=romance_chat)], chat_analyzer=analyze_chat, timeout=0.3)
        finally:
            release.set()

    assert [f.source for f in result.aggregate.per_source_findings] == [Source.CHAT]
    assert result.aggregate.overall_score == 75
    assert result.aggregate.overall_level == RiskLevel.HIGH
    assert result.failed_sources == []


def test_failing_image_analyzer_is_absent_not_zero(romance_chat):
    with patch("lovescan.core.image_analyzer.analyze", side_effect=RuntimeError("boom")):
        result = run_scan([ChatText(text=romance_chat), _scam_matches()])

    assert result.failed_sources == [Source.IMAGE]
    assert [f.source for f in result.aggregate.per_source_findings] == [Source.CHAT]
    # the chat score alone, not pulled down by a zero for the image
    assert result.aggregate.overall_score == 75
    assert result.report.metadata.failed_sources == ["Image"]


def test_only_failed_source_gives_no_evidence_verdict():
    with patch("lovescan.core.image_analyzer.analyze", side_effect=ValueError("bad")):
        result = run_scan([_scam_matches()])

    assert result.failed_sources == [Source.IMAGE]
    assert result.report.verdict == "no evidence provided"


def test_hung_social_analyzer_times_out_and_is_absent():
    release = threading.Event()

    def hung(*args, **kwargs):
        release.wait(5)
        return None

    evidence = [ScreenshotOCRText(text="2,000 followers"), _scam_matches()]
    with patch("lovescan.core.social_scorer.score", side_effect=hung):
        try:
            result = run_scan(evidence, timeout=0.5)
        finally:
            release.set()

    assert result.failed_sources == [Source.SOCIAL]
    assert result.aggregate.overall_score == 85
    assert result.aggregate.overall_level == RiskLevel.HIGH


def test_custom_chat_analyzer_is_used(romance_chat):
    seen = []

    def recording(text):
        seen.append(text)
        return None

    result = run_scan([ChatText(text="first"), ChatText(text="second")], chat_analyzer=recording)
    assert seen == ["first\nsecond"]
    # analyzer returned no finding: chat is absent, not failed
    assert result.failed_sources == []
    assert result.aggregate.has_evidence is False


def test_name_pattern_tier_outranks_source_order():
    evidence = [
        ScreenshotOCRText(text="Good vibes only"),
        ChatText(text="hello, my name is Brian"),
    ]
    assert run_scan(evidence).entity.candidate_name == "Brian"


def test_social_source_wins_within_same_pattern_tier():
    evidence = [
        ChatText(text="my name is Brian"),
        ScreenshotOCRText(text="my name is Andrew"),
    ]
    assert run_scan(evidence).entity.candidate_name == "Andrew"


def test_unreadable_screenshot_still_counts_as_social_evidence():
    result = run_scan([ScreenshotOCRText(text="a blurry picture of a beach")])
    finding = result.aggregate.per_source_findings[0]
    assert finding.source == Source.SOCIAL
    assert finding.score == 40
    assert result.aggregate.overall_level == RiskLevel.MEDIUM


def test_user_platform_fills_unknown_platform():
    evidence = [
        ScreenshotOCRText(text="2,000 followers"),
        SocialProfileURL(url="https://example.org/me", platform=Platform.TIKTOK),
    ]
    finding = run_scan(evidence).aggregate.per_source_findings[0]
    assert finding.details["platform"] == "TikTok"
    assert finding.level == RiskLevel.LOW


def test_profile_url_alone_gives_url_finding():
    result = run_scan([SocialProfileURL(url="facebook.com/david.miller19845")])
    finding = result.aggregate.per_source_findings[0]
    assert finding.source == Source.SOCIAL
    assert finding.level == RiskLevel.HIGH
    assert result.entity.social_handles == {"facebook": ["david.miller19845"]}
