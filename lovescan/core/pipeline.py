"""
Scan Pipeline
==============
Fan-out/fan-in orchestration of one scan session:

    evidence ──┬─> chat analyzer (LLM verdict or heuristic classifier)
               ├─> metric extractor -> social scorer
               ├─> image match analyzer
               └─> entity extractor
                         │
            join (timeout) -> aggregator -> report assembler

Analyzers run concurrently on a thread pool with no shared state. The
join waits for all of them or until the timeout. A chat analyzer that
raised or timed out is replaced by the keyword classifier, so chat
evidence always yields a finding. Any other source whose task raised
or timed out is treated as having no evidence (absent, not zero risk)
and is listed in ScanResult.failed_sources. Nothing here retries;
network retries belong to the collaborator clients.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, Sequence

from lovescan.config import ANALYZER_TIMEOUT_SECONDS
from lovescan.core import aggregator, entity_extractor, image_analyzer
from lovescan.core import metrics_extractor, social_scorer, text_classifier
from lovescan.core.report import assemble
from lovescan.schemas import (
    ChatText,
    EvidenceItem,
    EvidenceRef,
    ExtractedEntity,
    ImageMatchSet,
    Platform,
    RiskFinding,
    ScanResult,
    ScreenshotOCRText,
    SocialProfileURL,
    Source,
)

logger = logging.getLogger(__name__)

ENTITY_TASK = "entity"

ChatAnalyzer = Callable[[str], RiskFinding | None]


# ---------- EVIDENCE ROUTING ----------

def _split(evidence: Sequence[EvidenceItem]):
    chats = [item for item in evidence if isinstance(item, ChatText) and item.text.strip()]
    shots = [item for item in evidence if isinstance(item, ScreenshotOCRText)]
    match_sets = [item for item in evidence if isinstance(item, ImageMatchSet) and item.matches]
    urls = [item for item in evidence if isinstance(item, SocialProfileURL) and item.url.strip()]
    return chats, shots, match_sets, urls


def evidence_refs_for(evidence: Sequence[EvidenceItem]) -> list[EvidenceRef]:
    """Describe the submitted evidence for the report record."""
    refs = []
    for item in evidence:
        if isinstance(item, ChatText):
            refs.append(EvidenceRef(kind="chat", description=f"Chat text ({len(item.text)} chars)"))
        elif isinstance(item, ScreenshotOCRText):
            refs.append(EvidenceRef(kind="screenshot",
                                    description=f"{item.role.value.title()} screenshot OCR text"))
        elif isinstance(item, ImageMatchSet):
            refs.append(EvidenceRef(kind="image_matches",
                                    description=f"{len(item.matches)} reverse image matches",
                                    url=item.image_url))
        elif isinstance(item, SocialProfileURL):
            refs.append(EvidenceRef(kind="profile_url", description="Social profile link", url=item.url))
    return refs


# ---------- SOURCE TASKS ----------

def _chat_text(chats: list[ChatText]) -> str:
    return "\n".join(item.text for item in chats)


def _chat_task(chats: list[ChatText], chat_analyzer: ChatAnalyzer) -> RiskFinding | None:
    return chat_analyzer(_chat_text(chats))


def _social_task(shots: list[ScreenshotOCRText], urls: list[SocialProfileURL]) -> RiskFinding | None:
    metrics = metrics_extractor.merge_metrics(
        *(metrics_extractor.extract(shot.text, shot.labels) for shot in shots)
    )
    profile_url = urls[0].url if urls else None
    # a platform named by the user only fills in an unknown one
    if metrics and metrics.platform == Platform.UNKNOWN and urls and urls[0].platform:
        metrics = metrics.model_copy(update={"platform": urls[0].platform})
    return social_scorer.score(metrics, has_screenshot=bool(shots), profile_url=profile_url)


def _image_task(match_sets: list[ImageMatchSet]) -> RiskFinding | None:
    return image_analyzer.analyze([match for item in match_sets for match in item.matches])


def _entity_task(shots, chats, match_sets, urls) -> ExtractedEntity:
    # source priority for the candidate name: social > chat > image
    image_text = "\n".join(
        " ".join(match.labels) for item in match_sets for match in item.matches if match.labels
    )
    texts = [
        "\n".join(shot.text for shot in shots),
        "\n".join(item.text for item in chats),
        image_text,
    ]
    return entity_extractor.extract(texts, profile_urls=[item.url for item in urls])


# ---------- ORCHESTRATION ----------

def run_scan(evidence: Sequence[EvidenceItem],
             chat_analyzer: ChatAnalyzer = text_classifier.classify,
             timeout: float | None = None,
             generated_at: str | None = None) -> ScanResult:
    """
    Run every analyzer with evidence in parallel and assemble the report.

    Args:
        evidence: All evidence items submitted for the scan
        chat_analyzer: Produces the chat finding; the LLM-backed analyst
                       in production, the keyword classifier by default
        timeout: Join timeout in seconds (ANALYZER_TIMEOUT_SECONDS if None)
        generated_at: Optional report timestamp override

    Returns:
        ScanResult with aggregate, entity, report and failed sources
    """
    timeout = ANALYZER_TIMEOUT_SECONDS if timeout is None else timeout
    chats, shots, match_sets, urls = _split(evidence)

    logger.info(f"[SCAN] chat={len(chats)}, screenshots={len(shots)}, "
                f"imageSets={len(match_sets)}, profileUrls={len(urls)}")

    executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="lovescan-analyzer")
    futures = {}
    try:
        if chats:
            futures[Source.CHAT] = executor.submit(_chat_task, chats, chat_analyzer)
        if shots or urls:
            futures[Source.SOCIAL] = executor.submit(_social_task, shots, urls)
        if match_sets:
            futures[Source.IMAGE] = executor.submit(_image_task, match_sets)
        futures[ENTITY_TASK] = executor.submit(_entity_task, shots, chats, match_sets, urls)

        done, _ = wait(list(futures.values()), timeout=timeout)
    finally:
        # never block on a hung analyzer
        executor.shutdown(wait=False, cancel_futures=True)

    findings: list[RiskFinding] = []
    failed: list[Source] = []
    entity = ExtractedEntity()

    for key, future in futures.items():
        completed = False
        if future not in done:
            logger.warning(f"[SCAN] {_task_name(key)} analyzer timed out after {timeout}s")
        else:
            try:
                result = future.result()
                completed = True
            except Exception as e:
                logger.error(f"[SCAN] {_task_name(key)} analyzer failed: {e}")

        if not completed:
            if key == ENTITY_TASK:
                continue
            if key != Source.CHAT:
                failed.append(key)
                continue
            # the keyword classifier stands in for a failed or slow chat analyzer
            logger.info("[SCAN] Chat: falling back to keyword classifier")
            result = text_classifier.classify(_chat_text(chats))

        if key == ENTITY_TASK:
            entity = result
        elif result is not None:
            findings.append(result)

    aggregate = aggregator.aggregate(findings)
    report = assemble(aggregate, entity, evidence_refs_for(evidence),
                      generated_at=generated_at, failed_sources=failed)

    logger.info(f"[SCAN] verdict={aggregate.verdict!r}, score={aggregate.overall_score}, "
                f"failed={[s.value for s in failed]}")

    return ScanResult(aggregate=aggregate, entity=entity, report=report, failed_sources=failed)


def _task_name(key) -> str:
    return key.value if isinstance(key, Source) else key
