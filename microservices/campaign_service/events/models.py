"""
Campaign Event Data Models

Event type definitions and data structures for campaign service events.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Event Type Definitions
# =============================================================================


class CampaignEventType(str, Enum):
    """
    Events published by campaign_service.

    These are the authoritative event types for this service.
    Other services should reference these when subscribing.
    """
    # Campaign lifecycle events
    CREATED = "campaign.created"
    SUBMITTED = "campaign.submitted"
    APPROVED = "campaign.approved"
    REJECTED = "campaign.rejected"
    ACTIVATED = "campaign.activated"
    PAUSED = "campaign.paused"
    RESUMED = "campaign.resumed"
    COMPLETED = "campaign.completed"
    CANCELLED = "campaign.cancelled"

    # Creator participation events
    CREATOR_JOINED = "campaign.creator_joined"
    CONTENT_SUBMITTED = "campaign.content_submitted"
    SUBMISSION_REVIEWED = "campaign.submission_reviewed"


class CampaignStreamConfig:
    """Stream configuration for campaign_service"""
    STREAM_NAME = "campaign-stream"
    SUBJECTS = ["campaign.>"]
    MAX_MESSAGES = 100000


# =============================================================================
# Event Envelope
# =============================================================================


class CampaignEvent(BaseModel):
    """Envelope published on the bus; the subject is the event type"""
    event_type: CampaignEventType
    source: str = "campaign_service"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Event Data Models - Published Events
# =============================================================================


class CampaignCreatedEventData(BaseModel):
    """campaign.created event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    brand_id: str = Field(..., description="Owning brand")
    title: str = Field(..., description="Campaign title")
    content_type: str = Field(..., description="original, repurposed or both")
    budget: float = Field(..., description="Campaign budget")
    created_by: str = Field(..., description="User who created the campaign")


class CampaignStatusChangedEventData(BaseModel):
    """Data for every lifecycle transition event"""
    campaign_id: str = Field(..., description="Campaign ID")
    brand_id: str = Field(..., description="Owning brand")
    previous_status: str = Field(..., description="Status before the transition")
    status: str = Field(..., description="Status after the transition")
    changed_by: str = Field(..., description="User who triggered the transition")


class CampaignRejectedEventData(CampaignStatusChangedEventData):
    """campaign.rejected event data"""
    reasons: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class CreatorJoinedEventData(BaseModel):
    """campaign.creator_joined event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    creator_id: str = Field(..., description="Joining creator")
    application_id: str = Field(..., description="Join record ID")
    platforms: List[str] = Field(..., description="Platforms the creator will post on")
    creators_joined: int = Field(..., description="Creator count after the join")


class ContentSubmittedEventData(BaseModel):
    """campaign.content_submitted event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    creator_id: str = Field(..., description="Submitting creator")
    submission_id: str = Field(..., description="Submission ID")
    platform: str = Field(..., description="Platform of the post")
    content_type: str = Field(..., description="original or repurposed")
    post_url: str = Field(..., description="Link to the post")


class SubmissionReviewedEventData(BaseModel):
    """campaign.submission_reviewed event data"""
    campaign_id: str = Field(..., description="Campaign ID")
    submission_id: str = Field(..., description="Submission ID")
    creator_id: str = Field(..., description="Submitting creator")
    status: str = Field(..., description="approved or rejected")
    reviewed_by: str = Field(..., description="Admin who reviewed the post")
    feedback: Optional[str] = Field(None, description="Feedback for the creator")


__all__ = [
    "CampaignEventType",
    "CampaignStreamConfig",
    "CampaignEvent",
    "CampaignCreatedEventData",
    "CampaignStatusChangedEventData",
    "CampaignRejectedEventData",
    "CreatorJoinedEventData",
    "ContentSubmittedEventData",
    "SubmissionReviewedEventData",
]
