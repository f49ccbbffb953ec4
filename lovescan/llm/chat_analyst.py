"""
Chat Analyst
=============
Produces the Chat finding for a scan using a two-tier approach:

1. **LLM verdict** (primary, when configured): sends the chat log to the
   OpenRouter model, which returns structured JSON with riskLevel,
   riskScore, primaryConcerns, detailedAnalysis, recommendation and
   confidence.

2. **Keyword classifier** (deterministic fallback): if the LLM is not
   configured, fails, times out or returns unparseable output, the
   pattern-catalog classifier produces the finding instead.

The level of an LLM finding is always derived from its score with the
same thresholds as every other finding, so sources stay comparable.
"""

import json
import re
import logging

from lovescan.config import ANALYZER_TIMEOUT_SECONDS
from lovescan.core.aggregator import clamp_score, level_for_score
from lovescan.core.text_classifier import classify, find_category_hits
from lovescan.llm.llm_client import call_openrouter
from lovescan.schemas import Confidence, RiskFinding, RiskLevel, Source

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """
You are an expert in romance scam detection.

Analyze the chat conversation for these romance scam red flags:

1. Financial requests: money, gifts, wire transfers, gift cards, cryptocurrency
2. Emotional manipulation: excessive romantic language, quick professions of love
3. Avoidance patterns: refusing video calls, dodging specific questions
4. Common scammer profiles: military personnel, engineers or doctors overseas, widowers
5. Grammar and language patterns: non-native phrasing, generic romantic phrases
6. Timeline: how quickly the relationship is progressing
7. Emergency scenarios: sudden emergencies that require financial help

Return ONLY valid JSON in this format:

{
  "riskLevel": "LOW" or "MEDIUM" or "HIGH",
  "riskScore": integer between 0 and 100,
  "primaryConcerns": ["concern1", "concern2"],
  "detailedAnalysis": {
    "financialRequests": "...",
    "emotionalManipulation": "...",
    "avoidancePatterns": "...",
    "profileConsistency": "...",
    "languagePatterns": "...",
    "timelineRedFlags": "..."
  },
  "recommendation": "specific advice for the user",
  "confidence": "HIGH" or "MEDIUM" or "LOW"
}

Do not add explanations outside the JSON.
"""

MAX_CONCERNS = 8

# the LLM reply has to arrive inside the scan join timeout
LLM_TIMEOUT_SECONDS = ANALYZER_TIMEOUT_SECONDS * 0.8

# stand-in score when the model gives a level but no usable number
LEVEL_FALLBACK_SCORES = {
    RiskLevel.HIGH: 85,
    RiskLevel.MEDIUM: 55,
    RiskLevel.LOW: 20,
}


def _extract_json(text: str) -> dict | None:
    """
    Robustly extract JSON from LLM response, handling cases where
    the model wraps JSON in markdown code blocks or explanatory text.
    """
    if not text:
        return None

    try:
        parsed = json.loads(text)
        return parsed if isinstance(parsed, dict) else None
    except (json.JSONDecodeError, TypeError):
        pass

    code_match = re.search(r'```(?:json)?\s*(\{.*?\})\s*```', text, re.DOTALL)
    if code_match:
        try:
            return json.loads(code_match.group(1))
        except json.JSONDecodeError:
            pass

    # Outermost braces, for replies with prose around the object
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        try:
            parsed = json.loads(text[start:end + 1])
            return parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            pass

    return None


def _parse_enum(value, enum_cls):
    if not isinstance(value, str):
        return None
    token = value.strip().split()[0].upper() if value.strip() else ""
    try:
        return enum_cls(token)
    except ValueError:
        return None


def parse_llm_verdict(raw: str | None) -> RiskFinding | None:
    """
    Convert the model's reply into a Chat RiskFinding.

    Returns None if the reply has no JSON object, or the object carries
    neither a numeric riskScore nor a recognizable riskLevel.
    """
    data = _extract_json(raw or "")
    if not data:
        return None

    score = None
    raw_score = data.get("riskScore")
    if isinstance(raw_score, (int, float)) and not isinstance(raw_score, bool):
        score = clamp_score(raw_score)
    elif isinstance(raw_score, str) and re.fullmatch(r"\s*\d+(?:\.\d+)?\s*", raw_score):
        score = clamp_score(raw_score.strip())

    stated_level = _parse_enum(data.get("riskLevel"), RiskLevel)
    if score is None:
        if stated_level is None:
            return None
        score = LEVEL_FALLBACK_SCORES[stated_level]

    concerns = [str(c).strip() for c in data.get("primaryConcerns") or [] if str(c).strip()]
    confidence = _parse_enum(data.get("confidence"), Confidence) or Confidence.MEDIUM

    details = {"analysisSource": "llm"}
    if isinstance(data.get("detailedAnalysis"), dict):
        details["detailedAnalysis"] = data["detailedAnalysis"]
    if data.get("recommendation"):
        details["recommendation"] = str(data["recommendation"])
    if stated_level is not None:
        details["statedLevel"] = stated_level.value

    return RiskFinding(
        source=Source.CHAT,
        score=score,
        level=level_for_score(score),
        concerns=concerns[:MAX_CONCERNS],
        confidence=confidence,
        details=details,
    )


def analyze_chat(text: str, use_llm: bool = True) -> RiskFinding | None:
    """
    Analyze a chat log, preferring the LLM verdict.

    Always returns a deterministic result when the LLM is unavailable.

    Args:
        text: Full chat log to analyze
        use_llm: Set False to skip the LLM and use the classifier only

    Returns:
        Chat RiskFinding, or None for empty text
    """
    if not text or not text.strip():
        return None

    if use_llm:
        try:
            messages = [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": text},
            ]
            finding = parse_llm_verdict(call_openrouter(messages, timeout=LLM_TIMEOUT_SECONDS))
            if finding:
                heuristic = [category.value for category in find_category_hits(text)]
                finding = finding.model_copy(
                    update={"details": {**finding.details, "heuristicCategories": heuristic}}
                )
                logger.info(f"[CHAT] LLM verdict score={finding.score}, level={finding.level.value}")
                return finding

            logger.warning("[CHAT] LLM verdict unavailable or unparseable: using keyword classifier")

        except Exception as e:
            logger.error(f"[CHAT] LLM analysis error: {e}")

    return classify(text)
