"""
Campaign Event Publishers

Publishes campaign events through the configured event bus (NATS in
production). Publishing never raises: a failed publish is logged and
reported as False so the lifecycle transition that triggered it stands.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models import Campaign, CampaignApplication, CampaignStatus, ContentSubmission, RejectionReason
from .models import (
    CampaignCreatedEventData,
    CampaignEvent,
    CampaignEventType,
    CampaignRejectedEventData,
    CampaignStatusChangedEventData,
    ContentSubmittedEventData,
    CreatorJoinedEventData,
    SubmissionReviewedEventData,
)

logger = logging.getLogger(__name__)

# Transition target -> event published for it
STATUS_EVENTS = {
    CampaignStatus.PENDING_APPROVAL: CampaignEventType.SUBMITTED,
    CampaignStatus.APPROVED: CampaignEventType.APPROVED,
    CampaignStatus.REJECTED: CampaignEventType.REJECTED,
    CampaignStatus.ACTIVE: CampaignEventType.ACTIVATED,
    CampaignStatus.PAUSED: CampaignEventType.PAUSED,
    CampaignStatus.COMPLETED: CampaignEventType.COMPLETED,
    CampaignStatus.CANCELLED: CampaignEventType.CANCELLED,
}


class CampaignEventPublisher:
    """Publisher for campaign service events"""

    def __init__(self, event_bus=None):
        self.event_bus = event_bus
        self.source = "campaign_service"

    async def publish(
        self,
        event_type: CampaignEventType,
        data: Dict[str, Any],
    ) -> bool:
        """
        Publish an event to the bus.

        Args:
            event_type: The event type enum
            data: Event data payload

        Returns:
            True if published successfully, False otherwise
        """
        if not self.event_bus:
            logger.debug(f"Event bus not configured, skipping publish: {event_type.value}")
            return False

        try:
            event = CampaignEvent(event_type=event_type, source=self.source, data=data)
            published = await self.event_bus.publish_event(event)
            logger.debug(f"Published event: {event_type.value}")
            return bool(published)

        except Exception as e:
            logger.error(f"Failed to publish event {event_type.value}: {e}")
            return False

    # ====================
    # Campaign Lifecycle Events
    # ====================

    async def publish_campaign_created(self, campaign: Campaign, created_by: str) -> bool:
        """Publish campaign.created event"""
        data = CampaignCreatedEventData(
            campaign_id=campaign.id,
            brand_id=campaign.brand_id,
            title=campaign.title,
            content_type=campaign.content_type.value,
            budget=campaign.budget,
            created_by=created_by,
        )
        return await self.publish(CampaignEventType.CREATED, data.model_dump(mode="json"))

    async def publish_status_changed(
        self,
        campaign: Campaign,
        previous_status: CampaignStatus,
        changed_by: str,
        rejection_reason: Optional[RejectionReason] = None,
    ) -> bool:
        """Publish the event matching the campaign's new status"""
        event_type = STATUS_EVENTS.get(campaign.status)
        if event_type is None:
            return False

        # Resuming lands on active but is not an activation
        if previous_status == CampaignStatus.PAUSED and campaign.status == CampaignStatus.ACTIVE:
            event_type = CampaignEventType.RESUMED

        fields = dict(
            campaign_id=campaign.id,
            brand_id=campaign.brand_id,
            previous_status=CampaignStatus(previous_status).value,
            status=campaign.status.value,
            changed_by=changed_by,
        )
        if rejection_reason is not None:
            data = CampaignRejectedEventData(
                **fields,
                reasons=rejection_reason.reasons,
                recommendations=rejection_reason.recommendations,
            )
        else:
            data = CampaignStatusChangedEventData(**fields)
        return await self.publish(event_type, data.model_dump(mode="json"))

    # ====================
    # Creator Events
    # ====================

    async def publish_creator_joined(
        self, application: CampaignApplication, creators_joined: int
    ) -> bool:
        """Publish campaign.creator_joined event"""
        data = CreatorJoinedEventData(
            campaign_id=application.campaign_id,
            creator_id=application.creator_id,
            application_id=application.id,
            platforms=list(application.platforms),
            creators_joined=creators_joined,
        )
        return await self.publish(CampaignEventType.CREATOR_JOINED, data.model_dump(mode="json"))

    async def publish_content_submitted(self, submission: ContentSubmission) -> bool:
        """Publish campaign.content_submitted event"""
        data = ContentSubmittedEventData(
            campaign_id=submission.campaign_id,
            creator_id=submission.creator_id,
            submission_id=submission.id,
            platform=submission.platform,
            content_type=submission.content_type.value,
            post_url=submission.post_url,
        )
        return await self.publish(CampaignEventType.CONTENT_SUBMITTED, data.model_dump(mode="json"))

    async def publish_submission_reviewed(
        self, submission: ContentSubmission, reviewed_by: str
    ) -> bool:
        """Publish campaign.submission_reviewed event"""
        data = SubmissionReviewedEventData(
            campaign_id=submission.campaign_id,
            submission_id=submission.id,
            creator_id=submission.creator_id,
            status=submission.status.value,
            reviewed_by=reviewed_by,
            feedback=submission.rejection_feedback,
        )
        return await self.publish(CampaignEventType.SUBMISSION_REVIEWED, data.model_dump(mode="json"))


__all__ = ["CampaignEventPublisher", "STATUS_EVENTS"]
