"""
Pydantic Schema Definitions
============================
Defines the records that flow through the scan pipeline and the
request/response models for the LoveScan API.

Evidence:   ChatText, ScreenshotOCRText, ImageMatchSet, SocialProfileURL
            (tagged union on the "kind" field, immutable once created).
Findings:   ExtractedMetrics, RiskFinding, AggregateRisk, ExtractedEntity.
Reporting:  EvidenceRef, ReportMetadata, ReportPayload, ScanResult.
API:        ScanRequest/ScanResponse plus the per-analyzer endpoints.

Python attributes are snake_case; JSON uses camelCase aliases so the
mobile client keeps its existing field names. Both spellings are
accepted on input.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model emitting camelCase JSON and accepting either spelling."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==============================
# ENUMERATIONS
# ==============================

class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Confidence(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Source(str, Enum):
    CHAT = "Chat"
    IMAGE = "Image"
    SOCIAL = "Social"


class Category(str, Enum):
    URGENCY = "Urgency"
    FINANCIAL = "Financial"
    EMOTIONAL_APPEAL = "EmotionalAppeal"
    GUILT_TRIP = "GuiltTrip"
    GRAMMAR_ANOMALY = "GrammarAnomaly"


class Platform(str, Enum):
    INSTAGRAM = "Instagram"
    FACEBOOK = "Facebook"
    TWITTER = "Twitter"
    LINKEDIN = "LinkedIn"
    TIKTOK = "TikTok"
    UNKNOWN = "Unknown"


class ScreenshotRole(str, Enum):
    PROFILE = "profile"
    POST = "post"


# ==============================
# EVIDENCE ITEMS
# ==============================

class ImageMatch(CamelModel):
    """One reverse-image-search hit for the uploaded profile photo."""
    model_config = ConfigDict(frozen=True)

    domain: str = Field(description="Hostname the matching image was found on")
    score: float = Field(default=0.0, description="Similarity score, 0-100")
    source_url: Optional[str] = Field(default=None, description="Page or image URL of the match")
    labels: List[str] = Field(default_factory=list, description="Content labels reported for the match")


class ChatText(CamelModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["chat"] = "chat"
    text: str


class ScreenshotOCRText(CamelModel):
    """OCR text from a chat or social-media screenshot."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["screenshot"] = "screenshot"
    text: str
    role: ScreenshotRole = ScreenshotRole.PROFILE
    labels: List[str] = Field(default_factory=list, description="Vision labels for the screenshot")


class ImageMatchSet(CamelModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["image_matches"] = "image_matches"
    matches: List[ImageMatch] = Field(default_factory=list)
    image_url: Optional[str] = None


class SocialProfileURL(CamelModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["profile_url"] = "profile_url"
    url: str
    platform: Optional[Platform] = None


EvidenceItem = Annotated[
    Union[ChatText, ScreenshotOCRText, ImageMatchSet, SocialProfileURL],
    Field(discriminator="kind"),
]


# ==============================
# ANALYZER OUTPUTS
# ==============================

class ExtractedMetrics(CamelModel):
    """
    Social-profile metrics parsed from OCR text.

    A count of None means "not detected in the text", which is
    different from a detected value of 0.
    """
    follower_count: Optional[int] = None
    following_count: Optional[int] = None
    post_count: Optional[int] = None
    likes_count: Optional[int] = None
    comments_count: Optional[int] = None
    is_verified: bool = False
    is_business: bool = False
    platform: Platform = Platform.UNKNOWN


class RiskFinding(CamelModel):
    """Structured risk output of one analyzer for one evidence source."""
    model_config = ConfigDict(frozen=True)

    source: Source
    score: int = Field(ge=0, le=100)
    level: RiskLevel
    concerns: List[str] = Field(default_factory=list)
    confidence: Confidence
    details: Dict[str, Any] = Field(default_factory=dict, description="Analyzer-specific breakdown")


NO_EVIDENCE_VERDICT = "no evidence provided"


class AggregateRisk(CamelModel):
    overall_score: int = Field(ge=0, le=100)
    overall_level: RiskLevel
    per_source_findings: List[RiskFinding] = Field(default_factory=list)

    @property
    def has_evidence(self) -> bool:
        return bool(self.per_source_findings)

    @property
    def verdict(self) -> str:
        """Caller-visible verdict; never reads "low risk" when nothing was supplied."""
        if not self.has_evidence:
            return NO_EVIDENCE_VERDICT
        return f"{self.overall_level.value.lower()} risk"


class ExtractedEntity(CamelModel):
    """
    Identity fields pulled from text evidence.

    social_handles keeps every distinct handle per platform key
    (instagram, facebook, twitter, tiktok, whatsapp, other) in
    first-seen order.
    """
    candidate_name: Optional[str] = None
    social_handles: Dict[str, List[str]] = Field(default_factory=dict)

    def primary_handles(self) -> Dict[str, str]:
        return {platform: handles[0] for platform, handles in self.social_handles.items() if handles}


# ==============================
# REPORT
# ==============================

class EvidenceRef(CamelModel):
    kind: str = Field(description="chat, screenshot, image_matches or profile_url")
    description: str
    url: Optional[str] = None


class ReportMetadata(CamelModel):
    catalog_version: str
    generated_at: str
    failed_sources: List[str] = Field(default_factory=list)


class ReportPayload(CamelModel):
    """Structure handed to the external reporting subsystem."""
    reported_name: Optional[str] = None
    reported_social_media: Dict[str, str] = Field(default_factory=dict)
    reported_image_url: Optional[str] = None
    scan_type: str = ""
    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    risk_label: str
    has_evidence: bool
    verdict: str
    recommendation: str
    findings: List[RiskFinding] = Field(default_factory=list)
    social_handles: Dict[str, List[str]] = Field(default_factory=dict)
    evidence_refs: List[EvidenceRef] = Field(default_factory=list)
    metadata: ReportMetadata


class ScanResult(CamelModel):
    aggregate: AggregateRisk
    entity: ExtractedEntity
    report: ReportPayload
    failed_sources: List[Source] = Field(default_factory=list)


# ==============================
# API MODELS
# ==============================

class ScreenshotInput(CamelModel):
    """Either OCR text already extracted by the client, or the raw image to annotate."""
    ocr_text: str = Field(default="", description="Text already extracted from the screenshot")
    image_base64: Optional[str] = Field(default=None, description="Raw screenshot for the vision collaborator")
    role: ScreenshotRole = ScreenshotRole.PROFILE
    labels: List[str] = Field(default_factory=list)


class ScanRequest(CamelModel):
    """
    Full scan submission. Every field is optional; an empty request
    yields the explicit "no evidence provided" verdict.
    """
    chat_texts: List[str] = Field(default_factory=list, description="Pasted chat logs")
    screenshots: List[ScreenshotInput] = Field(default_factory=list)
    image_matches: List[ImageMatch] = Field(default_factory=list, description="Reverse-image-search hits")
    image_url: Optional[str] = Field(default=None, description="Where the scanned photo is hosted")
    image_base64: Optional[str] = Field(default=None, description="Raw photo for reverse image search")
    profile_url: Optional[str] = None
    platform: Optional[Platform] = None
    use_llm: bool = Field(default=True, description="Ask the LLM for the chat verdict when configured")

    def to_evidence(self) -> List[EvidenceItem]:
        evidence: List[EvidenceItem] = [ChatText(text=text) for text in self.chat_texts]
        evidence.extend(
            ScreenshotOCRText(text=shot.ocr_text, role=shot.role, labels=shot.labels)
            for shot in self.screenshots
            if shot.ocr_text or not shot.image_base64
        )
        if self.image_matches:
            evidence.append(ImageMatchSet(matches=self.image_matches, image_url=self.image_url))
        if self.profile_url:
            evidence.append(SocialProfileURL(url=self.profile_url, platform=self.platform))
        return evidence


class ScanResponse(CamelModel):
    success: bool = True
    report: ReportPayload
    report_queued: bool = False
    timestamp: str


class ChatAnalyzeRequest(CamelModel):
    chat_text: str = ""
    use_llm: bool = True


class ChatAnalyzeResponse(CamelModel):
    success: bool = True
    verdict: str
    finding: Optional[RiskFinding] = None
    analysis_source: Optional[Literal["llm", "heuristic"]] = None
    timestamp: str


class SocialAnalyzeRequest(CamelModel):
    profile_url: Optional[str] = None
    platform: Optional[Platform] = None
    screenshots: List[ScreenshotInput] = Field(default_factory=list)


class SocialAnalyzeResponse(CamelModel):
    success: bool = True
    verdict: str
    metrics: Optional[ExtractedMetrics] = None
    finding: Optional[RiskFinding] = None
    timestamp: str


class ImageAnalyzeRequest(CamelModel):
    matches: List[ImageMatch] = Field(default_factory=list)
    image_base64: Optional[str] = Field(default=None, description="Raw photo for the vision collaborator")


class ImageAnalyzeResponse(CamelModel):
    success: bool = True
    verdict: str
    matches: List[ImageMatch] = Field(default_factory=list)
    finding: Optional[RiskFinding] = None
    timestamp: str
