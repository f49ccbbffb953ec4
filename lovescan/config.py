"""
Configuration Module
=====================
Loads environment variables from .env file for:
- API_KEY: Shared secret for the X-API-Key header (empty disables the check)
- OPENROUTER_API_KEY: Key for the OpenRouter chat-completions API (optional)
- OPENROUTER_MODEL: Model used for the structured chat verdict
- GOOGLE_VISION_API_KEY: Key for Google Cloud Vision (optional)
- REPORT_WEBHOOK_URL: Endpoint that receives assembled reports (optional)
- ANALYZER_TIMEOUT_SECONDS: Join timeout for the parallel analyzers
- LOG_LEVEL: Root logging level

Every external collaborator is optional. When its key is missing the
matching source is simply treated as absent evidence, so the service
still starts and the deterministic heuristics keep working.

Raises RuntimeError at startup if a numeric setting is malformed.
"""

import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

API_KEY: str = os.getenv("API_KEY", "")
OPENROUTER_API_KEY: str = os.getenv("OPENROUTER_API_KEY", "")
OPENROUTER_MODEL: str = os.getenv("OPENROUTER_MODEL", "anthropic/claude-3-sonnet")
GOOGLE_VISION_API_KEY: str = os.getenv("GOOGLE_VISION_API_KEY", "")
REPORT_WEBHOOK_URL: str = os.getenv("REPORT_WEBHOOK_URL", "")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

try:
    ANALYZER_TIMEOUT_SECONDS: float = float(os.getenv("ANALYZER_TIMEOUT_SECONDS", "10"))
except ValueError:
    raise RuntimeError("ANALYZER_TIMEOUT_SECONDS must be a number: check .env file")

if ANALYZER_TIMEOUT_SECONDS <= 0:
    raise RuntimeError("ANALYZER_TIMEOUT_SECONDS must be positive: check .env file")

if not OPENROUTER_API_KEY:
    logger.warning("OPENROUTER_API_KEY not set: chat analysis uses keyword heuristics only")

if not GOOGLE_VISION_API_KEY:
    logger.warning("GOOGLE_VISION_API_KEY not set: raw image uploads cannot be annotated")
