"""
Component Tests for Content Submissions

Creators submit posts against campaigns they joined; admins moderate them
and campaign metrics are rebuilt from the results.
"""

import pytest

from microservices.campaign_service.events.models import CampaignEventType
from microservices.campaign_service.protocols import (
    SUBMISSIONS_TABLE,
    CampaignNotFoundError,
    CampaignValidationError,
    InvalidCampaignStateError,
    PermissionDeniedError,
)
from tests.contracts.campaign.data_contract import (
    ContentTrack,
    ContentType,
    SubmissionStatus,
)


@pytest.fixture
def joined_campaign(campaign_service, creator_ctx, launch_campaign):
    """Active campaign the creator joined on TikTok"""

    async def _joined(content_type: ContentType = ContentType.ORIGINAL):
        campaign = await launch_campaign(content_type=content_type)
        await campaign_service.join_campaign(creator_ctx, campaign.id, ["tiktok"])
        return campaign

    return _joined


class TestSubmitContent:

    @pytest.mark.asyncio
    async def test_submit_after_join(
        self, campaign_service, creator_ctx, joined_campaign, factory, mock_event_bus
    ):
        campaign = await joined_campaign()

        submission = await campaign_service.submit_content(
            creator_ctx, factory.make_submission_request(campaign.id)
        )

        assert submission.status == SubmissionStatus.PENDING
        assert submission.creator_id == creator_ctx.user_id
        assert submission.content_type == ContentTrack.ORIGINAL
        assert len(mock_event_bus.get_events_by_type(CampaignEventType.CONTENT_SUBMITTED)) == 1

        # Metrics move only on review
        refreshed = await campaign_service.get_campaign(campaign.id)
        assert refreshed.metrics.posts_submitted == 0

    @pytest.mark.asyncio
    async def test_must_join_first(self, campaign_service, creator_ctx, launch_campaign, factory):
        campaign = await launch_campaign()
        with pytest.raises(PermissionDeniedError):
            await campaign_service.submit_content(creator_ctx, factory.make_submission_request(campaign.id))

    @pytest.mark.asyncio
    async def test_track_must_be_funded(self, campaign_service, creator_ctx, joined_campaign, factory):
        campaign = await joined_campaign(ContentType.ORIGINAL)
        request = factory.make_submission_request(campaign.id, content_type=ContentTrack.REPURPOSED)

        with pytest.raises(CampaignValidationError) as exc_info:
            await campaign_service.submit_content(creator_ctx, request)
        assert exc_info.value.field == "content_type"

    @pytest.mark.asyncio
    async def test_both_campaign_accepts_either_track(
        self, campaign_service, creator_ctx, joined_campaign, factory
    ):
        campaign = await joined_campaign(ContentType.BOTH)
        submission = await campaign_service.submit_content(
            creator_ctx,
            factory.make_submission_request(campaign.id, content_type=ContentTrack.REPURPOSED),
        )
        assert submission.content_type == ContentTrack.REPURPOSED

    @pytest.mark.asyncio
    async def test_platform_must_match_join(self, campaign_service, creator_ctx, joined_campaign, factory):
        campaign = await joined_campaign()
        request = factory.make_submission_request(
            campaign.id, platform="instagram", post_url="https://instagram.com/p/abc"
        )
        with pytest.raises(CampaignValidationError) as exc_info:
            await campaign_service.submit_content(creator_ctx, request)
        assert exc_info.value.field == "platform"

    @pytest.mark.asyncio
    async def test_platform_matches_in_any_case(self, campaign_service, creator_ctx, joined_campaign, factory):
        campaign = await joined_campaign()
        submission = await campaign_service.submit_content(
            creator_ctx, factory.make_submission_request(campaign.id, platform="TikTok")
        )
        assert submission.platform == "tiktok"

    @pytest.mark.asyncio
    async def test_paused_campaign_refuses_content(
        self, campaign_service, brand_ctx, creator_ctx, joined_campaign, factory
    ):
        campaign = await joined_campaign()
        await campaign_service.pause_campaign(brand_ctx, campaign.id)

        with pytest.raises(InvalidCampaignStateError):
            await campaign_service.submit_content(creator_ctx, factory.make_submission_request(campaign.id))


class TestReviewSubmission:

    @pytest.mark.asyncio
    async def test_approval_updates_metrics(
        self, campaign_service, creator_ctx, admin_ctx, joined_campaign, factory, mock_store, mock_event_bus
    ):
        # Given: two submissions, one of which has collected views
        campaign = await joined_campaign()
        first = await campaign_service.submit_content(creator_ctx, factory.make_submission_request(campaign.id))
        await campaign_service.submit_content(
            creator_ctx,
            factory.make_submission_request(campaign.id, post_url="https://www.tiktok.com/@creator/video/456"),
        )
        mock_store.tables[SUBMISSIONS_TABLE][first.id].update({"views": 1500, "engagement": 90})

        # When: the admin approves the first
        reviewed = await campaign_service.review_submission(admin_ctx, first.id, approved=True)

        # Then: metrics count only approved content
        assert reviewed.status == SubmissionStatus.APPROVED
        metrics = (await campaign_service.get_campaign(campaign.id)).metrics
        assert metrics.posts_submitted == 2
        assert metrics.posts_approved == 1
        assert metrics.views == 1500
        assert metrics.engagement == 90
        assert metrics.creators_joined == 1

        event = mock_event_bus.get_events_by_type(CampaignEventType.SUBMISSION_REVIEWED)[0]
        assert event.data["status"] == "approved"

    @pytest.mark.asyncio
    async def test_rejection_needs_feedback(
        self, campaign_service, creator_ctx, admin_ctx, joined_campaign, factory
    ):
        campaign = await joined_campaign()
        submission = await campaign_service.submit_content(
            creator_ctx, factory.make_submission_request(campaign.id)
        )

        with pytest.raises(CampaignValidationError):
            await campaign_service.review_submission(admin_ctx, submission.id, approved=False, feedback=" ")

        rejected = await campaign_service.review_submission(
            admin_ctx, submission.id, approved=False, feedback="Missing #ad disclosure"
        )
        assert rejected.status == SubmissionStatus.REJECTED
        assert rejected.rejection_feedback == "Missing #ad disclosure"

        metrics = (await campaign_service.get_campaign(campaign.id)).metrics
        assert metrics.posts_submitted == 1
        assert metrics.posts_approved == 0

    @pytest.mark.asyncio
    async def test_review_only_once(self, campaign_service, creator_ctx, admin_ctx, joined_campaign, factory):
        campaign = await joined_campaign()
        submission = await campaign_service.submit_content(
            creator_ctx, factory.make_submission_request(campaign.id)
        )
        await campaign_service.review_submission(admin_ctx, submission.id, approved=True)

        with pytest.raises(InvalidCampaignStateError):
            await campaign_service.review_submission(admin_ctx, submission.id, approved=True)

    @pytest.mark.asyncio
    async def test_only_admins_review(self, campaign_service, creator_ctx, brand_ctx, joined_campaign, factory):
        campaign = await joined_campaign()
        submission = await campaign_service.submit_content(
            creator_ctx, factory.make_submission_request(campaign.id)
        )
        with pytest.raises(PermissionDeniedError):
            await campaign_service.review_submission(brand_ctx, submission.id, approved=True)

    @pytest.mark.asyncio
    async def test_unknown_submission(self, campaign_service, admin_ctx):
        with pytest.raises(CampaignNotFoundError):
            await campaign_service.review_submission(admin_ctx, "missing", approved=True)


class TestSubmissionReads:

    @pytest.mark.asyncio
    async def test_owner_brand_sees_pending(
        self, campaign_service, creator_ctx, brand_ctx, other_brand_ctx, joined_campaign, factory
    ):
        campaign = await joined_campaign()
        submission = await campaign_service.submit_content(
            creator_ctx, factory.make_submission_request(campaign.id)
        )

        pending = await campaign_service.list_pending_submissions(brand_ctx, campaign_id=campaign.id)
        assert [s.id for s in pending] == [submission.id]

        with pytest.raises(PermissionDeniedError):
            await campaign_service.list_pending_submissions(other_brand_ctx, campaign_id=campaign.id)
        with pytest.raises(PermissionDeniedError):
            await campaign_service.list_pending_submissions(brand_ctx)

    @pytest.mark.asyncio
    async def test_creator_sees_own_submissions(
        self, campaign_service, creator_ctx, joined_campaign, factory
    ):
        campaign = await joined_campaign()
        await campaign_service.submit_content(creator_ctx, factory.make_submission_request(campaign.id))

        mine = await campaign_service.list_creator_submissions(creator_ctx, campaign_id=campaign.id)
        others = await campaign_service.list_creator_submissions(factory.make_creator_ctx())

        assert len(mine) == 1
        assert others == []
