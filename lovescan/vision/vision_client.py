"""
Vision Client Module
=====================
Adapter for the Google Cloud Vision images:annotate endpoint. It turns
raw uploads into the opaque inputs the scan pipeline consumes:

- profile / post screenshots -> OCR text + content labels
  (TEXT_DETECTION, LABEL_DETECTION, LOGO_DETECTION)
- profile photos             -> reverse-image ImageMatch list
  (WEB_DETECTION, LABEL_DETECTION)

Any upstream failure (missing key, HTTP error, timeout, error payload)
is logged and returned as None, which callers treat as absent evidence.
"""

import logging

import requests

from lovescan.config import GOOGLE_VISION_API_KEY
from lovescan.core.image_analyzer import domain_from_url
from lovescan.schemas import ImageMatch, ScreenshotOCRText, ScreenshotRole

logger = logging.getLogger(__name__)

VISION_API_URL = "https://vision.googleapis.com/v1/images:annotate"

SCREENSHOT_FEATURES = [
    {"type": "TEXT_DETECTION", "maxResults": 1},
    {"type": "LABEL_DETECTION", "maxResults": 10},
    {"type": "LOGO_DETECTION", "maxResults": 5},
]
REVERSE_IMAGE_FEATURES = [
    {"type": "WEB_DETECTION", "maxResults": 20},
    {"type": "LABEL_DETECTION", "maxResults": 10},
]

MAX_MATCHES = 10

# (webDetection key, base score, decrement per position)
MATCH_SOURCES = (
    ("fullMatchingImages", 98.0, 0.5),
    ("pagesWithMatchingImages", 95.0, 2.0),
    ("visuallySimilarImages", 85.0, 1.5),
)


def annotate_image(image_b64: str, features: list[dict], timeout: int = 30) -> dict | None:
    """
    Run one annotate request and return the first response object.

    Returns None when unconfigured or when the call fails.
    """
    if not GOOGLE_VISION_API_KEY:
        logger.info("[VISION] GOOGLE_VISION_API_KEY not configured: skipping annotate")
        return None
    if not image_b64:
        return None

    body = {"requests": [{"image": {"content": image_b64}, "features": features}]}

    try:
        response = requests.post(
            VISION_API_URL,
            params={"key": GOOGLE_VISION_API_KEY},
            json=body,
            timeout=timeout,
        )
        response.raise_for_status()
        responses = response.json().get("responses") or []

    except requests.exceptions.Timeout:
        logger.warning(f"[VISION] Annotate timeout ({timeout}s)")
        return None
    except requests.exceptions.RequestException as e:
        logger.error(f"[VISION] Annotate request failed: {e}")
        return None
    except ValueError as e:
        logger.error(f"[VISION] Annotate returned invalid JSON: {e}")
        return None

    if not responses:
        logger.warning("[VISION] Annotate returned no responses")
        return None

    first = responses[0]
    if first.get("error"):
        logger.error(f"[VISION] Annotate error: {first['error'].get('message', first['error'])}")
        return None

    return first


# ---------- RESPONSE PARSING ----------

def parse_text_annotation(annotation: dict) -> tuple[str, list[str]]:
    """OCR text and content labels (labels + logos) from an annotate response."""
    annotation = annotation or {}

    text = (annotation.get("fullTextAnnotation") or {}).get("text", "")
    if not text:
        text_annotations = annotation.get("textAnnotations") or []
        text = text_annotations[0].get("description", "") if text_annotations else ""

    labels = [
        item.get("description", "")
        for key in ("labelAnnotations", "logoAnnotations")
        for item in annotation.get(key) or []
        if item.get("description")
    ]
    return text, labels


def parse_web_detection(annotation: dict) -> list[ImageMatch]:
    """
    Reverse-image matches from the webDetection section.

    Scores are positional: earlier results in each list are closer
    matches. Duplicate URLs are dropped; at most MAX_MATCHES are kept.
    """
    annotation = annotation or {}
    web = annotation.get("webDetection") or {}

    image_labels = [
        item.get("description", "")
        for item in annotation.get("labelAnnotations") or []
        if item.get("description")
    ]
    image_labels += [
        item.get("label", "") for item in web.get("bestGuessLabels") or [] if item.get("label")
    ]

    matches = []
    seen = set()
    for key, base, step in MATCH_SOURCES:
        for position, item in enumerate(web.get(key) or []):
            url = item.get("url", "")
            domain = domain_from_url(url)
            if not domain or url in seen:
                continue
            seen.add(url)

            labels = list(image_labels)
            if item.get("pageTitle"):
                labels.append(item["pageTitle"])

            matches.append(ImageMatch(
                domain=domain,
                score=max(0.0, base - step * position),
                source_url=url,
                labels=labels,
            ))

    return matches[:MAX_MATCHES]


# ---------- HIGH-LEVEL HELPERS ----------

def screenshot_to_evidence(image_b64: str, role: ScreenshotRole = ScreenshotRole.PROFILE) -> ScreenshotOCRText | None:
    """OCR a screenshot into evidence, or None if the vision call failed."""
    annotation = annotate_image(image_b64, SCREENSHOT_FEATURES)
    if annotation is None:
        return None
    text, labels = parse_text_annotation(annotation)
    logger.info(f"[VISION] Screenshot OCR: {len(text)} chars, {len(labels)} labels")
    return ScreenshotOCRText(text=text, role=role, labels=labels)


def reverse_image_search(image_b64: str) -> list[ImageMatch] | None:
    """Reverse-image matches for a photo, or None if the vision call failed."""
    annotation = annotate_image(image_b64, REVERSE_IMAGE_FEATURES)
    if annotation is None:
        return None
    matches = parse_web_detection(annotation)
    logger.info(f"[VISION] Reverse image search: {len(matches)} matches")
    return matches
