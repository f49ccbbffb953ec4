"""
Report Delivery Module
=======================
Forwards assembled scan reports to the reporting collaborator (the
service that stores reports, tracks their status and shows history).

Delivery is optional: with no REPORT_WEBHOOK_URL configured, reports
are only returned to the API caller. Implements a short retry loop;
delivery runs off the request path, so retries never delay a scan.
"""

import time
import logging

import requests

from lovescan.config import REPORT_WEBHOOK_URL
from lovescan.schemas import ReportPayload

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 0.5


def submit_report(payload: ReportPayload, url: str | None = None) -> bool:
    """
    POST a report to the reporting webhook.

    Args:
        payload: Assembled report
        url: Override for REPORT_WEBHOOK_URL

    Returns:
        True if the webhook accepted the report, False otherwise
    """
    target = url or REPORT_WEBHOOK_URL
    if not target:
        logger.info("[REPORT] No webhook configured: report not forwarded")
        return False

    body = payload.model_dump(mode="json", by_alias=True)

    logger.info(f"[REPORT] Sending scanType={payload.scan_type or 'none'}, "
                f"score={payload.risk_score}, level={payload.risk_level.value}")

    for attempt in range(MAX_RETRIES):
        try:
            response = requests.post(
                target,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=5,
            )

            logger.info(f"[REPORT] Response status: {response.status_code}")
            response.raise_for_status()

            logger.info("[REPORT SUCCESS] Report delivered")
            return True

        except requests.exceptions.Timeout:
            logger.warning(f"[REPORT TIMEOUT] Attempt {attempt + 1}/{MAX_RETRIES}")
        except requests.exceptions.ConnectionError:
            logger.warning(f"[REPORT CONN ERROR] Attempt {attempt + 1}/{MAX_RETRIES}")
        except requests.exceptions.HTTPError as e:
            logger.warning(f"[REPORT HTTP ERROR] {e}: attempt {attempt + 1}/{MAX_RETRIES}")
        except requests.exceptions.RequestException as e:
            logger.error(f"[REPORT ERROR] {e}: attempt {attempt + 1}/{MAX_RETRIES}")

        if attempt < MAX_RETRIES - 1:
            time.sleep(RETRY_DELAY_SECONDS)

    logger.error("[REPORT FAILED] All retries exhausted")
    return False
