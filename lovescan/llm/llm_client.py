"""
OpenRouter Client
==================
Single-call client for the OpenRouter chat-completions endpoint, used
for the structured romance-scam verdict on pasted chat logs.

call_openrouter() returns the reply text, or None when the key is
missing or the call yields nothing usable. None tells the caller to
use the deterministic keyword classifier instead.
"""

import logging

import requests

from lovescan.config import OPENROUTER_API_KEY, OPENROUTER_MODEL

logger = logging.getLogger(__name__)

OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"

# a reply containing one of these and no JSON object is a refusal
REFUSAL_PHRASES = (
    "cannot assist", "can't assist", "cannot help", "cannot provide",
    "against policy", "i'm unable", "as an ai", "as a language model",
)


def _is_refusal(content: str) -> bool:
    lowered = content.lower()
    return "{" not in content and any(phrase in lowered for phrase in REFUSAL_PHRASES)


def call_openrouter(messages: list[dict[str, str]], temperature: float = 0.3,
                    max_tokens: int = 2000, timeout: float = 8) -> str | None:
    """
    Ask the configured OpenRouter model for a completion.

    Args:
        messages: Chat messages, each with 'role' and 'content'
        temperature: Sampling temperature; low for a stable verdict
        max_tokens: Upper bound on reply length
        timeout: Request timeout in seconds

    Returns:
        Reply text, or None when unconfigured, rate limited, failed,
        refused or empty
    """
    if not OPENROUTER_API_KEY:
        logger.info("[LLM] OPENROUTER_API_KEY not configured: skipping call")
        return None

    try:
        response = requests.post(
            OPENROUTER_API_URL,
            headers={
                "Authorization": f"Bearer {OPENROUTER_API_KEY}",
                "Content-Type": "application/json",
                "X-Title": "LoveScan",
            },
            json={
                "model": OPENROUTER_MODEL,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
            timeout=timeout,
        )
    except requests.exceptions.Timeout:
        logger.warning(f"[LLM] {OPENROUTER_MODEL} timed out after {timeout}s")
        return None
    except requests.exceptions.RequestException as e:
        logger.error(f"[LLM] Request failed: {e}")
        return None

    if response.status_code == 429 or response.status_code >= 500:
        logger.warning(f"[LLM] OpenRouter unavailable (status {response.status_code}, "
                       f"retry-after={response.headers.get('retry-after', '?')})")
        return None

    try:
        response.raise_for_status()
        content = (response.json()["choices"][0]["message"]["content"] or "").strip()
    except requests.exceptions.HTTPError as e:
        logger.error(f"[LLM] OpenRouter rejected the request: {e}")
        return None
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.error(f"[LLM] Malformed completion body: {e}")
        return None

    if not content or _is_refusal(content):
        logger.warning("[LLM] Empty reply or refusal: no verdict")
        return None

    logger.info(f"[LLM] {OPENROUTER_MODEL} replied with {len(content)} chars")
    return content
