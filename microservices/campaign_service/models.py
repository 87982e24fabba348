"""
Campaign Service Data Models

Canonical data structures for the campaign marketplace service.

The persisted campaign record keeps the field names and nesting of the
existing wire format: snake_case at the top level, camelCase inside
``requirements`` (``contentGuidelines``, ``payoutRate``, ``minViewsForPayout``,
``totalBudget``) with ``budget_allocation`` as the one snake_case exception.
Always dump with ``by_alias=True`` when writing to the store or the wire.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# ENUMS
# =============================================================================

class CampaignStatus(str, Enum):
    """Campaign lifecycle status"""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PAUSED = "paused"


class ContentTrack(str, Enum):
    """One of the two content categories a campaign can fund"""
    ORIGINAL = "original"
    REPURPOSED = "repurposed"


class ContentType(str, Enum):
    """Which content tracks a campaign funds"""
    ORIGINAL = "original"
    REPURPOSED = "repurposed"
    BOTH = "both"

    @property
    def tracks(self) -> List[ContentTrack]:
        """Tracks that are active for this content type"""
        if self is ContentType.BOTH:
            return [ContentTrack.ORIGINAL, ContentTrack.REPURPOSED]
        return [ContentTrack(self.value)]

    def includes(self, track: ContentTrack) -> bool:
        return track in self.tracks


class ApplicationStatus(str, Enum):
    """Creator join record status"""
    ACTIVE = "active"
    APPROVED = "approved"
    REJECTED = "rejected"


class SubmissionStatus(str, Enum):
    """Content submission moderation status"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    LIVE = "live"


class Platform(str, Enum):
    """Social platforms a creator can post through"""
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"
    YOUTUBE = "youtube"
    TWITTER = "twitter"


class CallerRole(str, Enum):
    """Role of the authenticated caller"""
    BRAND = "brand"
    CREATOR = "creator"
    ADMIN = "admin"


# =============================================================================
# BUSINESS CONSTANTS
# =============================================================================

MIN_CAMPAIGN_BUDGET = Decimal("1000")
MIN_CAMPAIGN_DURATION_DAYS = 30
VIEWS_PER_RATE_UNIT = Decimal("1000000")

# Payout rates are the brand's cost per 1,000,000 delivered views
MIN_PAYOUT_RATES: Dict[ContentTrack, Decimal] = {
    ContentTrack.ORIGINAL: Decimal("500"),
    ContentTrack.REPURPOSED: Decimal("250"),
}
DEFAULT_PAYOUT_RATES: Dict[ContentTrack, Decimal] = dict(MIN_PAYOUT_RATES)

DEFAULT_BUDGET_ALLOCATION = {"original": 70, "repurposed": 30}
DEFAULT_HASHTAG = "#ad"
DEFAULT_MIN_VIEWS_FOR_PAYOUT = "1000"


# =============================================================================
# BASE MODELS
# =============================================================================

class BaseContract(BaseModel):
    """Base model for all contracts"""

    model_config = {
        "from_attributes": True,
        "populate_by_name": True,
    }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_text(value: Any) -> Any:
    """Legacy rows store some numeric-looking fields as numbers"""
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return str(value)
    return value


def normalize_platform(value: Any) -> Any:
    """Known platforms match case-insensitively and are kept by their enum value"""
    if not isinstance(value, str):
        return value
    name = value.strip()
    try:
        return Platform(name.lower()).value
    except ValueError:
        return name


def _platform_list(values: Any) -> Any:
    if isinstance(values, (list, tuple)):
        return [normalize_platform(v) for v in values]
    return values


# =============================================================================
# CAMPAIGN COMPONENTS
# =============================================================================

class CampaignBrief(BaseContract):
    """Per-track free-text brief"""
    original: Optional[str] = None
    repurposed: Optional[str] = None


class PayoutRate(BaseContract):
    """Per-track cost per 1,000,000 views, kept as entered"""
    original: str = "500"
    repurposed: str = "250"

    @field_validator("original", "repurposed", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _as_text(v) if v is not None else v

    def for_track(self, track: ContentTrack) -> str:
        return getattr(self, track.value)


class Hashtags(BaseContract):
    """Per-track disclosure hashtag"""
    original: str = ""
    repurposed: str = ""

    def for_track(self, track: ContentTrack) -> str:
        return getattr(self, track.value)


class BudgetAllocation(BaseContract):
    """Percentage split of the budget between the two tracks"""
    original: int = Field(default=70, ge=0, le=100)
    repurposed: int = Field(default=30, ge=0, le=100)

    @model_validator(mode="after")
    def validate_sum(self):
        if self.original + self.repurposed != 100:
            raise ValueError(
                f"Budget allocation must sum to 100 (got {self.original} + {self.repurposed})"
            )
        return self

    @classmethod
    def from_original(cls, original_percentage: int) -> "BudgetAllocation":
        """Build the pair from a single slider value"""
        return cls(original=original_percentage, repurposed=100 - original_percentage)

    def for_track(self, track: ContentTrack) -> int:
        return getattr(self, track.value)


class CampaignRequirements(BaseContract):
    """Campaign requirements block, serialized with its legacy camelCase keys"""
    platforms: List[str] = Field(default_factory=list)
    content_guidelines: List[str] = Field(default_factory=list, alias="contentGuidelines")
    payout_rate: PayoutRate = Field(default_factory=PayoutRate, alias="payoutRate")
    hashtags: Hashtags = Field(default_factory=Hashtags)
    budget_allocation: BudgetAllocation = Field(default_factory=BudgetAllocation)
    min_views_for_payout: str = Field(DEFAULT_MIN_VIEWS_FOR_PAYOUT, alias="minViewsForPayout")
    total_budget: str = Field("0", alias="totalBudget")

    @field_validator("min_views_for_payout", "total_budget", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _as_text(v)

    @field_validator("platforms", mode="before")
    @classmethod
    def normalize_platforms(cls, v):
        return _platform_list(v)


class CampaignMetrics(BaseContract):
    """Counters updated by joins and submissions, never by the allocation engine"""
    views: int = 0
    engagement: int = 0
    creators_joined: int = 0
    posts_submitted: int = 0
    posts_approved: int = 0


class RejectionReason(BaseContract):
    """Structured admin feedback stored when a campaign is rejected"""
    reasons: List[str]
    recommendations: List[str] = Field(default_factory=list)

    @field_validator("reasons", "recommendations", mode="before")
    @classmethod
    def drop_blank(cls, v):
        if isinstance(v, str):
            v = [v]
        return [item.strip() for item in (v or []) if isinstance(item, str) and item.strip()]

    @field_validator("reasons")
    @classmethod
    def require_reason(cls, v):
        if not v:
            raise ValueError("At least one rejection reason is required")
        return v


# =============================================================================
# PERSISTED ENTITIES
# =============================================================================

class Campaign(BaseContract):
    """Persisted campaign record"""
    id: str
    brand_id: str
    title: str
    status: CampaignStatus = CampaignStatus.DRAFT
    content_type: ContentType = ContentType.ORIGINAL
    budget: float = Field(default=0, ge=0)
    spent: float = Field(default=0, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    brief: CampaignBrief = Field(default_factory=CampaignBrief)
    requirements: CampaignRequirements = Field(default_factory=CampaignRequirements)
    total_view_target: int = 0
    original_view_target: int = 0
    repurposed_view_target: int = 0
    metrics: CampaignMetrics = Field(default_factory=CampaignMetrics)
    rejection_reason: Optional[RejectionReason] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def to_record(self) -> Dict[str, Any]:
        """Wire/storage representation"""
        return self.model_dump(mode="json", by_alias=True)


class CampaignApplication(BaseContract):
    """A creator's join record for a campaign"""
    id: str
    campaign_id: str
    creator_id: str
    status: ApplicationStatus = ApplicationStatus.ACTIVE
    platforms: List[str] = Field(..., min_length=1)
    earned: float = 0
    engagement: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("platforms", mode="before")
    @classmethod
    def normalize_platforms(cls, v):
        return _platform_list(v)


class ContentSubmission(BaseContract):
    """Posted content claimed against a campaign"""
    id: str
    campaign_id: str
    creator_id: str
    platform: str
    content_type: ContentTrack
    post_url: str
    status: SubmissionStatus = SubmissionStatus.PENDING
    views: int = 0
    engagement: int = 0
    earned: float = 0
    rejection_feedback: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# =============================================================================
# CALLER CONTEXT
# =============================================================================

class CallerContext(BaseContract):
    """Authenticated caller passed explicitly into every lifecycle call"""
    user_id: str = Field(..., min_length=1)
    role: CallerRole
    brand_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == CallerRole.ADMIN


# =============================================================================
# REQUEST / RESPONSE MODELS
# =============================================================================

class CampaignCreateRequest(BaseContract):
    """Campaign creation request built by the wizard"""
    title: str = Field(..., min_length=1, max_length=255)
    brief: CampaignBrief = Field(default_factory=CampaignBrief)
    content_type: ContentType = ContentType.ORIGINAL
    budget: float = Field(..., ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    platforms: List[str] = Field(default_factory=list)
    requirements: CampaignRequirements = Field(default_factory=CampaignRequirements)

    @field_validator("platforms", mode="before")
    @classmethod
    def normalize_platforms(cls, v):
        return _platform_list(v)


class RequirementsPatch(BaseContract):
    """Partial requirements update; nested blocks merge key-wise"""
    platforms: Optional[List[str]] = None
    content_guidelines: Optional[List[str]] = Field(None, alias="contentGuidelines")
    payout_rate: Optional[Dict[str, Any]] = Field(None, alias="payoutRate")
    hashtags: Optional[Dict[str, Any]] = None
    budget_allocation: Optional[Dict[str, Any]] = None
    min_views_for_payout: Optional[str] = Field(None, alias="minViewsForPayout")
    total_budget: Optional[str] = Field(None, alias="totalBudget")

    @field_validator("min_views_for_payout", "total_budget", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _as_text(v)

    @field_validator("platforms", mode="before")
    @classmethod
    def normalize_platforms(cls, v):
        return _platform_list(v)


class CampaignUpdateRequest(BaseContract):
    """Partial campaign update; None fields are left untouched"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    brief: Optional[Dict[str, Optional[str]]] = None
    content_type: Optional[ContentType] = None
    budget: Optional[float] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    platforms: Optional[List[str]] = None
    requirements: Optional[RequirementsPatch] = None
    status: Optional[CampaignStatus] = None

    @field_validator("platforms", mode="before")
    @classmethod
    def normalize_platforms(cls, v):
        return _platform_list(v)


class RejectRequest(BaseContract):
    """Admin rejection payload"""
    reasons: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    reason: Optional[str] = Field(None, description="Single freeform reason")


class JoinCampaignRequest(BaseContract):
    """Creator join payload"""
    platforms: List[str] = Field(default_factory=list)

    @field_validator("platforms", mode="before")
    @classmethod
    def normalize_platforms(cls, v):
        return _platform_list(v)


class ContentSubmissionRequest(BaseContract):
    """Creator content submission payload"""
    # Filled from the URL path by the HTTP API
    campaign_id: Optional[str] = None
    platform: str = Field(..., min_length=1)
    content_type: ContentTrack
    post_url: str = Field(..., min_length=1, max_length=2048)

    @field_validator("platform", mode="before")
    @classmethod
    def normalize_platform_name(cls, v):
        return normalize_platform(v)


class SubmissionReviewRequest(BaseContract):
    """Admin moderation decision for a submission"""
    approved: bool
    feedback: Optional[str] = Field(None, max_length=2000)


class ViewCalculationRequest(BaseContract):
    """Inputs shared by the estimation and target endpoints"""
    budget: str
    rate_original: str = Field("500", alias="rateOriginal")
    rate_repurposed: str = Field("250", alias="rateRepurposed")
    content_type: ContentType = Field(ContentType.ORIGINAL, alias="contentType")
    allocation: BudgetAllocation = Field(default_factory=BudgetAllocation)

    @field_validator("budget", "rate_original", "rate_repurposed", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _as_text(v)


class CampaignResponse(BaseContract):
    """Single campaign response"""
    campaign: Campaign
    message: Optional[str] = None


class CampaignListResponse(BaseContract):
    """Campaign list response"""
    campaigns: List[Campaign]
    total: int


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    port: int
    version: str
    dependencies: Dict[str, str] = Field(default_factory=dict)


__all__ = [
    # Enums
    "CampaignStatus",
    "ContentTrack",
    "ContentType",
    "ApplicationStatus",
    "SubmissionStatus",
    "Platform",
    "CallerRole",
    # Constants
    "MIN_CAMPAIGN_BUDGET",
    "MIN_CAMPAIGN_DURATION_DAYS",
    "VIEWS_PER_RATE_UNIT",
    "MIN_PAYOUT_RATES",
    "DEFAULT_PAYOUT_RATES",
    "DEFAULT_BUDGET_ALLOCATION",
    "DEFAULT_HASHTAG",
    "DEFAULT_MIN_VIEWS_FOR_PAYOUT",
    "normalize_platform",
    # Components
    "CampaignBrief",
    "PayoutRate",
    "Hashtags",
    "BudgetAllocation",
    "CampaignRequirements",
    "CampaignMetrics",
    "RejectionReason",
    # Entities
    "Campaign",
    "CampaignApplication",
    "ContentSubmission",
    "CallerContext",
    # Requests / Responses
    "CampaignCreateRequest",
    "RequirementsPatch",
    "CampaignUpdateRequest",
    "RejectRequest",
    "JoinCampaignRequest",
    "ContentSubmissionRequest",
    "SubmissionReviewRequest",
    "ViewCalculationRequest",
    "CampaignResponse",
    "CampaignListResponse",
    "HealthResponse",
]
