"""
API Security Module
====================
Handles API key verification for incoming requests.

When API_KEY is configured, every scan endpoint requires a matching
X-API-Key header and answers 401 otherwise. With no API_KEY set the
check is disabled (local development).
"""

import logging

from fastapi import Header, HTTPException

from lovescan.config import API_KEY

logger = logging.getLogger(__name__)


def verify_api_key(x_api_key: str = Header(default="")) -> str:
    """
    Validate the X-API-Key header against the configured API key.

    Args:
        x_api_key: API key from X-API-Key header

    Returns:
        The API key string if valid

    Raises:
        HTTPException: 401 when the key is missing or wrong
    """
    if API_KEY and x_api_key != API_KEY:
        logger.warning("Rejected request with invalid or missing X-API-Key")
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
    return x_api_key
