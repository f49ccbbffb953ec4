"""
Entity Extractor
=================
Regex heuristics that pull a candidate person name and social handles
out of the text evidence for a report.

Name patterns, highest priority first:
- self-introductions: "my name is X", "my name's X", "I'm X", "I am X",
  "call me X", "this is X"
- chat-transcript speaker labels: "X:" at line start, "[date, time] X:",
  "X [time]:"
- sign-offs at the start of a line: "hi, X here", "X here"

The highest-priority pattern that matches anywhere wins, taking its
first non-stopword capture. Texts are searched in the order given
(the pipeline passes social, then chat, then image text), so an
earlier source beats a later one for the same pattern tier. Only when
no pattern matches in any text does extraction fall back to the first
capitalized word that is not a common word.

Ambiguity is not resolved: pattern order is the sole tie-break, so
identical input always gives the same candidate.
"""

import re
import logging
from typing import Iterable, Sequence

from lovescan.core.social_scorer import parse_profile_url
from lovescan.schemas import ExtractedEntity, Platform

logger = logging.getLogger(__name__)


# ==============================
# NAME PATTERNS
# ==============================

_NAME = r"([A-Za-z][A-Za-z'\-]*)"

NAME_PATTERNS = [
    re.compile(rf"\bmy name is\s+{_NAME}", re.IGNORECASE),
    re.compile(rf"\bmy name['’]s\s+{_NAME}", re.IGNORECASE),
    re.compile(rf"\bi['’]m\s+{_NAME}", re.IGNORECASE),
    re.compile(rf"\bi am\s+{_NAME}", re.IGNORECASE),
    re.compile(rf"\bcall me\s+{_NAME}", re.IGNORECASE),
    re.compile(rf"\bthis is\s+{_NAME}", re.IGNORECASE),
    # "John: hello" at the start of a line
    re.compile(rf"^[ \t]*{_NAME}[ \t]*:[ \t]", re.MULTILINE),
    # WhatsApp export: "[12/03/24, 10:15] John: hello"
    re.compile(rf"^[ \t]*\[[^\]\n]*\][ \t]*{_NAME}[ \t]*:", re.MULTILINE),
    # "John [10:15]: hello"
    re.compile(rf"^[ \t]*{_NAME}[ \t]+\[[^\]\n]*\][ \t]*:", re.MULTILINE),
    re.compile(rf"{_NAME}[ \t]+\[[^\]\n]*\][ \t]*:"),
    # sign-offs only count at the start of a line: "hi, John here" / "John here"
    re.compile(rf"^[ \t]*(?:hi|hello|hey),?[ \t]+{_NAME}[ \t]+here\b", re.IGNORECASE | re.MULTILINE),
    re.compile(rf"^[ \t]*{_NAME}[ \t]+here\b", re.IGNORECASE | re.MULTILINE),
]

CAPITALIZED_WORD = re.compile(r"\b[A-Z][a-z]{2,}\b")

NAME_STOPWORDS = {
    # greetings and question words
    "hi", "hey", "hello", "good", "how", "what", "when", "where", "why", "who",
    "ok", "okay", "yes", "no", "yeah", "thanks", "thank", "please", "dear",
    # pronouns, articles and fillers
    "i", "me", "you", "we", "they", "he", "she", "it", "my", "your", "the", "a", "an",
    "so", "not", "just", "here", "there", "really", "very", "still", "also", "always",
    "this", "that", "now", "back", "in", "at", "on", "from", "to", "with", "for", "and",
    "i'm", "im", "i'd", "i'll", "it's", "you're", "we're", "is", "am", "are", "was", "be",
    "come", "get", "stay", "over", "out", "right", "been",
    # states that follow "i'm" / "i am"
    "fine", "sorry", "glad", "happy", "sure", "well", "sad", "busy", "tired", "sick",
    "ill", "alone", "single", "married", "lonely", "new", "free", "ready", "afraid",
    "going", "doing", "looking", "working", "waiting", "coming", "trying", "sending",
    "stuck", "deployed", "serious", "honest", "interested", "feeling",
    # endearments
    "love", "baby", "babe", "honey", "darling", "sweetheart", "sweetie", "dearest",
    # transcript labels that are not people
    "user", "scammer", "note", "re", "subject", "date", "time", "sent", "received",
    # time words
    "today", "tomorrow", "yesterday", "morning", "evening", "night", "tonight",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    # platform names
    "instagram", "facebook", "twitter", "tiktok", "whatsapp", "linkedin", "telegram",
}


def _accept_name(candidate: str) -> str | None:
    cleaned = candidate.strip("'-’")
    if len(cleaned) <= 1 or cleaned.lower() in NAME_STOPWORDS:
        return None
    return cleaned[0].upper() + cleaned[1:]


def _name_by_pattern(texts: Sequence[str]) -> str | None:
    for pattern in NAME_PATTERNS:
        for text in texts:
            for match in pattern.finditer(text):
                name = _accept_name(match.group(1))
                if name:
                    return name
    return None


def _name_by_capitalization(texts: Sequence[str]) -> str | None:
    for text in texts:
        for match in CAPITALIZED_WORD.finditer(text):
            name = _accept_name(match.group(0))
            if name:
                return name
    return None


def extract_name(text: str) -> str | None:
    """Best candidate name in a single text, or None."""
    texts = [text] if text else []
    return _name_by_pattern(texts) or _name_by_capitalization(texts)


# ==============================
# HANDLE PATTERNS
# ==============================

_HANDLE = r"([A-Za-z0-9_][A-Za-z0-9_.]{0,29})"
# keyword mentions stay on one line so OCR counts below a platform name are not read as handles
_FILLER = r"(?:[ \t]*(?:is|id|handle|account|username|name|page)\b)*[ \t:\-]*"

# per platform: profile URL forms first, then "platform: handle" mentions
HANDLE_PATTERNS = [
    ("instagram", [
        re.compile(rf"instagr(?:am\.com|\.am)/@?{_HANDLE}", re.IGNORECASE),
        re.compile(rf"\b(?:instagram|insta|ig)\b{_FILLER}@?{_HANDLE}", re.IGNORECASE),
    ]),
    ("facebook", [
        re.compile(r"(?:facebook|fb)\.com/profile\.php\?id=(\d+)", re.IGNORECASE),
        re.compile(rf"(?:facebook|fb)\.com/(?!profile\.php){_HANDLE}", re.IGNORECASE),
        re.compile(rf"\b(?:facebook|fb)\b{_FILLER}@?{_HANDLE}", re.IGNORECASE),
    ]),
    ("twitter", [
        re.compile(r"(?<!\w)(?:twitter|x)\.com/@?([A-Za-z0-9_]{1,15})", re.IGNORECASE),
        re.compile(rf"\btwitter\b{_FILLER}@?{_HANDLE}", re.IGNORECASE),
    ]),
    ("tiktok", [
        re.compile(rf"tiktok\.com/@{_HANDLE}", re.IGNORECASE),
        re.compile(rf"\btiktok\b{_FILLER}@?{_HANDLE}", re.IGNORECASE),
    ]),
    ("whatsapp", [
        re.compile(
            r"\b(?:whatsapp|whats app)\b(?:[ \t]*(?:is|number|no\.?|me|on|at)\b)*[ \t:\-]*(\+?\d[\d \-]{5,}\d)",
            re.IGNORECASE,
        ),
    ]),
]

GENERIC_HANDLE = re.compile(r"(?<![\w.@])@([A-Za-z0-9_][A-Za-z0-9_.]{1,29})")

# "14.5m", "2,300": follower counts, not handles
COUNT_LIKE = re.compile(r"\d{1,3}(?:[.,]\d+)*[kmb]?")

HANDLE_STOPWORDS = {
    "is", "me", "my", "the", "and", "or", "too", "at", "on", "com", "www", "http", "https",
    "account", "page", "profile", "handle", "username", "name", "id", "no", "number",
}

PLATFORM_KEYS = {
    Platform.INSTAGRAM: "instagram",
    Platform.FACEBOOK: "facebook",
    Platform.TWITTER: "twitter",
    Platform.LINKEDIN: "linkedin",
    Platform.TIKTOK: "tiktok",
    Platform.UNKNOWN: "other",
}


def _clean_handle(platform: str, raw: str) -> str | None:
    if platform == "whatsapp":
        digits = re.sub(r"[ \-]", "", raw)
        return digits if len(digits.lstrip("+")) >= 7 else None
    handle = raw.rstrip(".").lower()
    if len(handle) < 2 or handle in HANDLE_STOPWORDS or COUNT_LIKE.fullmatch(handle):
        return None
    return handle


def _add_handle(handles: dict[str, list[str]], platform: str, handle: str | None):
    if not handle:
        return
    bucket = handles.setdefault(platform, [])
    if handle not in bucket:
        bucket.append(handle)


def extract_handles(text: str, handles: dict[str, list[str]] | None = None) -> dict[str, list[str]]:
    """
    Collect every distinct handle in the text, keyed by platform.

    Bare "@name" mentions not already attributed to a platform go
    under "other".
    """
    handles = {} if handles is None else handles
    if not text:
        return handles

    for platform, patterns in HANDLE_PATTERNS:
        for pattern in patterns:
            for match in pattern.finditer(text):
                _add_handle(handles, platform, _clean_handle(platform, match.group(1)))

    known = {h for bucket in handles.values() for h in bucket}
    for match in GENERIC_HANDLE.finditer(text):
        handle = _clean_handle("other", match.group(1))
        if handle and handle not in known:
            _add_handle(handles, "other", handle)

    return handles


# ==============================
# PUBLIC API
# ==============================

def extract(texts: Iterable[str], profile_urls: Iterable[str] = ()) -> ExtractedEntity:
    """
    Extract a candidate name and social handles.

    Args:
        texts: Text evidence in source-priority order (social, chat, image)
        profile_urls: Submitted profile links; their usernames are
                      recorded as handles for the inferred platform

    Returns:
        ExtractedEntity with at most one candidate name
    """
    texts = [t for t in texts if isinstance(t, str) and t.strip()]
    handles: dict[str, list[str]] = {}

    for url in profile_urls:
        platform, username = parse_profile_url(url)
        if username:
            _add_handle(handles, PLATFORM_KEYS[platform], _clean_handle("other", username))

    for text in texts:
        extract_handles(text, handles)

    name = _name_by_pattern(texts) or _name_by_capitalization(texts)

    counts = {platform: len(bucket) for platform, bucket in handles.items()}
    logger.info(f"[ENTITY] name={name!r}, handles={counts}")
    return ExtractedEntity(candidate_name=name, social_handles=handles)
