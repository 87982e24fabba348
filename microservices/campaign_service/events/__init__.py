"""
Campaign Service Events

Event models and publisher for campaign service.
"""

from .models import (
    CampaignEventType,
    CampaignStreamConfig,
    CampaignEvent,
    CampaignCreatedEventData,
    CampaignStatusChangedEventData,
    CampaignRejectedEventData,
    CreatorJoinedEventData,
    ContentSubmittedEventData,
    SubmissionReviewedEventData,
)
from .publishers import CampaignEventPublisher

__all__ = [
    # Event Types
    "CampaignEventType",
    "CampaignStreamConfig",
    "CampaignEvent",
    # Event Data Models
    "CampaignCreatedEventData",
    "CampaignStatusChangedEventData",
    "CampaignRejectedEventData",
    "CreatorJoinedEventData",
    "ContentSubmittedEventData",
    "SubmissionReviewedEventData",
    # Publisher
    "CampaignEventPublisher",
]
