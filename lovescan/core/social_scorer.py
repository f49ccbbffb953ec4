"""
Social Profile Risk Scorer
===========================
Turns extracted profile metrics (or their absence) into a Social
RiskFinding using one ordered decision table. The first matching row
wins; weak signals are never added together, since OCR numbers are
unreliable and would compound false positives.

Rows, top to bottom:
    verified and > 1M followers          HIGH   celebrity/influencer
    > 1M followers                       HIGH   impersonation
    > 100K followers                     HIGH   high-profile account
    > 10K followers and verified         MEDIUM verified, contacting directly
    < 100 followers and > 1K following   HIGH   fake-account ratio
    unverified and < 1K followers        MEDIUM manual check
    otherwise                            LOW    normal range

When no follower count could be read, a supplied screenshot yields a
low-confidence MEDIUM "unreadable" finding, and a bare profile URL is
judged on its username alone. Engagement indicators are reported in
the finding details and do not change the outcome.
"""

import re
import logging
from urllib.parse import parse_qs, urlparse

from lovescan.core.metrics_extractor import detect_platform
from lovescan.schemas import Confidence, ExtractedMetrics, Platform, RiskFinding, RiskLevel, Source

logger = logging.getLogger(__name__)

CELEBRITY_FOLLOWERS = 1_000_000
HIGH_PROFILE_FOLLOWERS = 100_000
NOTABLE_FOLLOWERS = 10_000
FAKE_MAX_FOLLOWERS = 100
FAKE_MIN_FOLLOWING = 1_000
LOW_FOLLOWERS = 1_000
LOW_ENGAGEMENT_RATE = 1.0  # percent

DIGIT_HEAVY_USERNAME = re.compile(r"\d{3,}")

# host aliases that do not contain the platform name
HOST_ALIASES = {
    "x.com": Platform.TWITTER,
    "fb.com": Platform.FACEBOOK,
    "instagr.am": Platform.INSTAGRAM,
}


# ---------- PROFILE URL ----------

def parse_profile_url(url: str) -> tuple[Platform, str | None]:
    """
    Split a profile URL into (platform, username).

    Accepts URLs with or without a scheme. The username is the last
    non-empty path segment without a leading "@", or the "id" query
    parameter for facebook.com/profile.php links.
    """
    if not url or not url.strip():
        return Platform.UNKNOWN, None

    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"

    parsed = urlparse(candidate)
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]

    platform = HOST_ALIASES.get(host) or detect_platform(host)

    segments = [s for s in parsed.path.split("/") if s]
    username = None
    if segments and segments[-1].lower() == "profile.php":
        username = (parse_qs(parsed.query).get("id") or [None])[0]
    elif segments:
        username = segments[-1].lstrip("@") or None

    return platform, username


# ---------- ENGAGEMENT ----------

def engagement_rate(metrics: ExtractedMetrics) -> float | None:
    """Likes as a percentage of followers, or None if either is unknown."""
    if not metrics.follower_count or metrics.likes_count is None:
        return None
    return round(metrics.likes_count / metrics.follower_count * 100, 2)


def _indicators(metrics: ExtractedMetrics) -> dict:
    rate = engagement_rate(metrics)
    followers = metrics.follower_count
    following = metrics.following_count
    return {
        "engagementRate": rate,
        "lowEngagement": bool(
            followers is not None and followers > NOTABLE_FOLLOWERS
            and rate is not None and rate < LOW_ENGAGEMENT_RATE
        ),
        "fakeLooking": bool(
            followers is not None and following is not None
            and followers < FAKE_MAX_FOLLOWERS and following > FAKE_MIN_FOLLOWING
        ),
        "unverified": not metrics.is_verified,
    }


# ---------- DECISION TABLE ----------

def _decide(metrics: ExtractedMetrics) -> tuple[RiskLevel, int, str]:
    followers = metrics.follower_count
    following = metrics.following_count
    verified = metrics.is_verified

    if verified and followers > CELEBRITY_FOLLOWERS:
        return (RiskLevel.HIGH, 85,
                "Celebrity/influencer account - public figures do not privately romance strangers.")
    if followers > CELEBRITY_FOLLOWERS:
        return (RiskLevel.HIGH, 90,
                "Extremely high follower count, almost certainly impersonation.")
    if followers > HIGH_PROFILE_FOLLOWERS:
        return (RiskLevel.HIGH, 80,
                "High-profile account, suspicious for personal contact.")
    if followers > NOTABLE_FOLLOWERS and verified:
        return (RiskLevel.MEDIUM, 65,
                "Verified but high-following account contacting user directly.")
    if followers < FAKE_MAX_FOLLOWERS and following is not None and following > FAKE_MIN_FOLLOWING:
        return (RiskLevel.HIGH, 80,
                "Suspicious follower/following ratio typical of fake accounts.")
    if not verified and followers < LOW_FOLLOWERS:
        return (RiskLevel.MEDIUM, 60,
                "Low followers, unverified - manual check recommended.")
    return RiskLevel.LOW, 35, "Profile metrics within normal range."


def _url_only(profile_url: str) -> RiskFinding:
    platform, username = parse_profile_url(profile_url)

    if username and DIGIT_HEAVY_USERNAME.search(username):
        level, score = RiskLevel.HIGH, 80
        concern = "Username contains many numbers - common for throwaway fake accounts."
    else:
        level, score = RiskLevel.MEDIUM, 50
        concern = "Limited profile information provided - upload profile screenshots for a full check."

    return RiskFinding(
        source=Source.SOCIAL,
        score=score,
        level=level,
        concerns=[concern],
        confidence=Confidence.LOW,
        details={"platform": platform.value, "username": username, "basis": "profile_url"},
    )


def score(metrics: ExtractedMetrics | None, has_screenshot: bool,
          profile_url: str | None = None) -> RiskFinding | None:
    """
    Score a social profile.

    Args:
        metrics: Merged metrics from the profile screenshots, if any
        has_screenshot: Whether at least one screenshot was supplied
        profile_url: Optional profile link submitted with the scan

    Returns:
        Social RiskFinding, or None when there is no social evidence
    """
    readable = metrics is not None and metrics.follower_count is not None

    if not readable:
        if has_screenshot:
            logger.info("[SOCIAL] Screenshot supplied but no follower count readable")
            return RiskFinding(
                source=Source.SOCIAL,
                score=40,
                level=RiskLevel.MEDIUM,
                concerns=["Screenshot provided but metrics unreadable."],
                confidence=Confidence.LOW,
                details={
                    "platform": (metrics.platform if metrics else Platform.UNKNOWN).value,
                    "basis": "unreadable_screenshot",
                },
            )
        if profile_url and profile_url.strip():
            return _url_only(profile_url)
        return None

    level, value, concern = _decide(metrics)

    platform = metrics.platform
    if platform == Platform.UNKNOWN and profile_url:
        platform = parse_profile_url(profile_url)[0]

    details = {
        "platform": platform.value,
        "basis": "metrics",
        "followerCount": metrics.follower_count,
        "followingCount": metrics.following_count,
        "isVerified": metrics.is_verified,
        "isBusiness": metrics.is_business,
    }
    details.update(_indicators(metrics))

    logger.info(f"[SOCIAL] followers={metrics.follower_count}, verified={metrics.is_verified} "
                f"-> {level.value}")

    return RiskFinding(
        source=Source.SOCIAL,
        score=value,
        level=level,
        concerns=[concern],
        confidence=Confidence.MEDIUM,
        details=details,
    )
