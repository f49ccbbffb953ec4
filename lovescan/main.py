"""
LoveScan Risk API: Main Application
=====================================
FastAPI service that turns untrusted romance-scam evidence (pasted chat
logs, profile/post screenshots, reverse-image matches, profile links)
into one explainable risk verdict plus the identity fields for a report.

Endpoints:
    GET  /                           Health check
    GET  /health                     Health check (alias)
    POST /api/scan                   Full scan: all evidence, one report
    POST /api/chat/analyze           Chat log only
    POST /api/social-media/analyze   Profile screenshots and/or link only
    POST /api/image/analyze          Reverse-image matches only

Architecture:
    1. Raw uploads are resolved through the vision collaborator
       (failures drop that item, they never fail the scan)
    2. Chat, social and image analyzers run in parallel
    3. Entity extraction runs alongside over all text evidence
    4. Findings are aggregated and assembled into a report
    5. The report is forwarded to the reporting webhook on a background thread
"""

import logging
import threading
import traceback
from datetime import datetime, timezone
from functools import partial

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from lovescan.config import LOG_LEVEL, REPORT_WEBHOOK_URL
from lovescan.core import image_analyzer, metrics_extractor, social_scorer
from lovescan.core.aggregator import aggregate
from lovescan.core.patterns import CATALOG_VERSION
from lovescan.core.pipeline import run_scan
from lovescan.llm.chat_analyst import analyze_chat
from lovescan.reporting.report_client import submit_report
from lovescan.schemas import (
    ChatAnalyzeRequest,
    ChatAnalyzeResponse,
    ImageAnalyzeRequest,
    ImageAnalyzeResponse,
    ImageMatchSet,
    ReportPayload,
    RiskFinding,
    ScanRequest,
    ScanResponse,
    ScreenshotInput,
    ScreenshotOCRText,
    SocialAnalyzeRequest,
    SocialAnalyzeResponse,
)
from lovescan.security import verify_api_key
from lovescan.vision.vision_client import reverse_image_search, screenshot_to_evidence

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="LoveScan Risk API",
    description="Evidence-to-verdict risk scoring for suspected romance-scam contacts",
    version="1.0.0"
)


# ---------- GLOBAL EXCEPTION HANDLER ----------

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unexpected errors and return a JSON body instead of a bare 500."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}")
    logger.error(traceback.format_exc())
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal error while analyzing evidence",
            "timestamp": _now(),
        }
    )


# ---------- HEALTH CHECK ----------

@app.get("/")
@app.get("/health")
def health_check():
    """Health check endpoint for deployment pings."""
    return {"status": "ok", "service": "LoveScan Risk API", "catalogVersion": CATALOG_VERSION}


# ---------- HELPERS ----------

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _verdict(finding: RiskFinding | None) -> str:
    return aggregate([finding] if finding else []).verdict


def _annotate_screenshots(screenshots: list[ScreenshotInput]) -> list[ScreenshotOCRText]:
    """
    OCR the screenshots that arrived as raw images.

    A failed vision call drops the screenshot (absent evidence) rather
    than counting it as an unreadable one.
    """
    resolved = []
    for shot in screenshots:
        if shot.ocr_text or not shot.image_base64:
            continue
        evidence = screenshot_to_evidence(shot.image_base64, shot.role)
        if evidence is None:
            logger.warning("[VISION] Screenshot annotation failed: dropping item")
            continue
        labels = list(evidence.labels) + list(shot.labels)
        resolved.append(ScreenshotOCRText(text=evidence.text, role=shot.role, labels=labels))
    return resolved


def _forward_report(report: ReportPayload) -> bool:
    """Queue report delivery on a background thread; False if no webhook is set."""
    if not REPORT_WEBHOOK_URL:
        return False

    def _send_bg():
        try:
            submit_report(report, REPORT_WEBHOOK_URL)
        except Exception as e:
            logger.error(f"[REPORT BG ERROR] {e}")

    t = threading.Thread(target=_send_bg, daemon=True)
    t.start()
    return True


# ---------- FULL SCAN ----------

@app.post("/api/scan", response_model=ScanResponse)
def scan_endpoint(data: ScanRequest, api_key: str = Depends(verify_api_key)):
    """
    Run a complete scan over every piece of submitted evidence.

    Steps:
        1. Build evidence items from the request
        2. Resolve raw screenshots / photos through the vision collaborator
        3. Fan out to the analyzers and aggregate
        4. Forward the assembled report when a webhook is configured

    Returns:
        ScanResponse wrapping the ReportPayload
    """
    evidence = data.to_evidence()
    evidence.extend(_annotate_screenshots(data.screenshots))

    if data.image_base64 and not data.image_matches:
        matches = reverse_image_search(data.image_base64)
        if matches is None:
            logger.warning("[SCAN] Reverse image search failed: image source absent")
        else:
            evidence.append(ImageMatchSet(matches=matches, image_url=data.image_url))

    result = run_scan(evidence, chat_analyzer=partial(analyze_chat, use_llm=data.use_llm))
    queued = _forward_report(result.report)

    return ScanResponse(report=result.report, report_queued=queued, timestamp=_now())


# ---------- SINGLE-SOURCE ENDPOINTS ----------

@app.post("/api/chat/analyze", response_model=ChatAnalyzeResponse)
def chat_analyze_endpoint(data: ChatAnalyzeRequest, api_key: str = Depends(verify_api_key)):
    """Analyze a pasted chat log (LLM verdict with keyword fallback)."""
    finding = analyze_chat(data.chat_text, use_llm=data.use_llm)
    return ChatAnalyzeResponse(
        verdict=_verdict(finding),
        finding=finding,
        analysis_source=finding.details.get("analysisSource") if finding else None,
        timestamp=_now(),
    )


@app.post("/api/social-media/analyze", response_model=SocialAnalyzeResponse)
def social_analyze_endpoint(data: SocialAnalyzeRequest, api_key: str = Depends(verify_api_key)):
    """Score a social profile from its screenshots and/or profile link."""
    shots = [
        ScreenshotOCRText(text=shot.ocr_text, role=shot.role, labels=shot.labels)
        for shot in data.screenshots
        if shot.ocr_text or not shot.image_base64
    ]
    shots.extend(_annotate_screenshots(data.screenshots))

    metrics = metrics_extractor.merge_metrics(
        *(metrics_extractor.extract(shot.text, shot.labels) for shot in shots)
    )
    finding = social_scorer.score(metrics, has_screenshot=bool(shots), profile_url=data.profile_url)

    return SocialAnalyzeResponse(
        verdict=_verdict(finding),
        metrics=metrics,
        finding=finding,
        timestamp=_now(),
    )


@app.post("/api/image/analyze", response_model=ImageAnalyzeResponse)
def image_analyze_endpoint(data: ImageAnalyzeRequest, api_key: str = Depends(verify_api_key)):
    """Score reverse-image matches, searching first if only a photo was sent."""
    matches = list(data.matches)
    if not matches and data.image_base64:
        matches = reverse_image_search(data.image_base64) or []

    finding = image_analyzer.analyze(matches)

    return ImageAnalyzeResponse(
        verdict=_verdict(finding),
        matches=matches,
        finding=finding,
        timestamp=_now(),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
