"""
Tests for screenshot OCR metric extraction (metrics_extractor.extract),
number normalization and multi-screenshot merging.
"""

from __future__ import annotations

import pytest

from lovescan.core.metrics_extractor import detect_platform, extract, merge_metrics, parse_count
from lovescan.schemas import ExtractedMetrics, Platform

INSTAGRAM_PROFILE = """
cristiano ✓
Instagram
3,512 posts   14.5M followers   580 following
Athlete
"""


@pytest.mark.parametrize("text", [
    "14.5M followers",
    "14.5 M followers",
    "14,500,000 followers",
    "14.5m Followers",
])
def test_follower_count_is_format_invariant(text):
    assert extract(text).follower_count == 14_500_000


def test_extraction_is_idempotent():
    assert extract(INSTAGRAM_PROFILE) == extract(INSTAGRAM_PROFILE)


def test_full_instagram_profile():
    metrics = extract(INSTAGRAM_PROFILE)
    assert metrics.follower_count == 14_500_000
    assert metrics.following_count == 580
    assert metrics.post_count == 3_512
    assert metrics.is_verified is True
    assert metrics.platform == Platform.INSTAGRAM


def test_text_without_numbers_leaves_every_count_unset():
    metrics = extract("Jessica Miller\nLiving my best life\nFollow")
    assert metrics.follower_count is None
    assert metrics.following_count is None
    assert metrics.post_count is None
    assert metrics.likes_count is None
    assert metrics.comments_count is None


def test_detected_zero_is_kept_as_zero():
    metrics = extract("0 posts 12 followers 0 following")
    assert metrics.post_count == 0
    assert metrics.following_count == 0
    assert metrics.follower_count == 12


def test_label_before_number_layout():
    metrics = extract("Followers: 2.1K\nFollowing: 7,400")
    assert metrics.follower_count == 2_100
    assert metrics.following_count == 7_400


def test_post_screenshot_likes_and_comments():
    metrics = extract("Liked by anna_b and 1,204 others\nView all 87 comments")
    assert metrics.likes_count == 1_204
    assert metrics.comments_count == 87
    assert metrics.follower_count is None


def test_likes_with_suffix():
    assert extract("3.4K likes").likes_count == 3_400


@pytest.mark.parametrize("number,suffix,expected", [
    ("14.5", "M", 14_500_000),
    ("14,532", None, 14_532),
    ("2.1", "k", 2_100),
    ("1.25", "B", 1_250_000_000),
    ("1.0005", "K", 1_001),   # half rounds up
    ("not-a-number", None, None),
])
def test_parse_count(number, suffix, expected):
    assert parse_count(number, suffix) == expected


@pytest.mark.parametrize("text", [
    "Jane Doe ✔",
    "Verified account",
    "this profile is verified",
    "shows a blue checkmark next to the name",
])
def test_verification_from_text(text):
    assert extract(text).is_verified is True


def test_unverified_is_not_verified():
    assert extract("Unverified profile").is_verified is False


def test_verification_from_vision_labels():
    assert extract("no glyphs here", labels=["Blue Checkmark"]).is_verified is True
    assert extract("no glyphs here", labels=["Verified badge"]).is_verified is True
    assert extract("no glyphs here", labels=["Smile", "Portrait"]).is_verified is False


@pytest.mark.parametrize("text", ["Business account", "Professional dashboard", "Digital creator"])
def test_business_accounts(text):
    assert extract(text).is_business is True


@pytest.mark.parametrize("text,platform", [
    ("Open in Instagram", Platform.INSTAGRAM),
    ("facebook.com/john", Platform.FACEBOOK),
    ("Twitter for iPhone", Platform.TWITTER),
    ("LinkedIn profile", Platform.LINKEDIN),
    ("TikTok video", Platform.TIKTOK),
    ("some random app", Platform.UNKNOWN),
    ("instagram and facebook", Platform.INSTAGRAM),
])
def test_platform_detection(text, platform):
    assert detect_platform(text) == platform


def test_merge_prefers_first_detected_value():
    profile = extract("12.3K followers 400 following Instagram")
    post = extract("Liked by tom and 95 others 800 followers")
    merged = merge_metrics(profile, post)
    assert merged.follower_count == 12_300
    assert merged.following_count == 400
    assert merged.likes_count == 95
    assert merged.platform == Platform.INSTAGRAM


def test_merge_fills_gaps_and_ors_flags():
    first = ExtractedMetrics(follower_count=None, is_verified=False)
    second = ExtractedMetrics(follower_count=50, is_verified=True, platform=Platform.TIKTOK)
    merged = merge_metrics(first, second)
    assert merged.follower_count == 50
    assert merged.is_verified is True
    assert merged.platform == Platform.TIKTOK


def test_merge_of_nothing_is_none():
    assert merge_metrics() is None
    assert merge_metrics(None) is None


def test_never_raises_on_garbage():
    metrics = extract("@@@ ### 1,2,3,, followers??? \x00\x01 ✓✓")
    assert isinstance(metrics, ExtractedMetrics)
