"""
Component Tests for Creator Joins

Joining is idempotent per (campaign, creator) and keeps creators_joined in
step with the join records.
"""

from unittest.mock import AsyncMock

import pytest

from microservices.campaign_service.events.models import CampaignEventType
from microservices.campaign_service.protocols import (
    APPLICATIONS_TABLE,
    CampaignNotFoundError,
    CampaignValidationError,
    ConstraintViolationError,
    InvalidCampaignStateError,
    PermissionDeniedError,
)
from tests.contracts.campaign.data_contract import ApplicationStatus


class TestJoinCampaign:

    @pytest.mark.asyncio
    async def test_join_active_campaign(
        self, campaign_service, creator_ctx, launch_campaign, mock_event_bus
    ):
        # Given: an active campaign
        campaign = await launch_campaign()

        # When: a creator joins on TikTok
        application = await campaign_service.join_campaign(creator_ctx, campaign.id, ["tiktok"])

        # Then: a join record exists and the count is 1
        assert application.campaign_id == campaign.id
        assert application.creator_id == creator_ctx.user_id
        assert application.status == ApplicationStatus.ACTIVE
        assert application.platforms == ["tiktok"]

        refreshed = await campaign_service.get_campaign(campaign.id)
        assert refreshed.metrics.creators_joined == 1

        events = mock_event_bus.get_events_by_type(CampaignEventType.CREATOR_JOINED)
        assert len(events) == 1
        assert events[0].data["creators_joined"] == 1

    @pytest.mark.asyncio
    async def test_joining_twice_is_idempotent(
        self, campaign_service, creator_ctx, launch_campaign, mock_store, mock_event_bus
    ):
        campaign = await launch_campaign()

        first = await campaign_service.join_campaign(creator_ctx, campaign.id, ["TikTok"])
        second = await campaign_service.join_campaign(creator_ctx, campaign.id, ["tiktok", "instagram"])

        assert second.id == first.id
        assert first.platforms == ["tiktok"]
        assert len(mock_store.rows(APPLICATIONS_TABLE)) == 1
        assert (await campaign_service.get_campaign(campaign.id)).metrics.creators_joined == 1
        assert len(mock_event_bus.get_events_by_type(CampaignEventType.CREATOR_JOINED)) == 1

    @pytest.mark.asyncio
    async def test_existing_member_can_rejoin_after_pause(
        self, campaign_service, creator_ctx, brand_ctx, launch_campaign
    ):
        campaign = await launch_campaign()
        first = await campaign_service.join_campaign(creator_ctx, campaign.id, ["tiktok"])
        await campaign_service.pause_campaign(brand_ctx, campaign.id)

        again = await campaign_service.join_campaign(creator_ctx, campaign.id, ["tiktok"])

        assert again.id == first.id

    @pytest.mark.asyncio
    async def test_count_tracks_distinct_creators(self, campaign_service, launch_campaign, factory):
        campaign = await launch_campaign()
        for _ in range(3):
            await campaign_service.join_campaign(factory.make_creator_ctx(), campaign.id, ["instagram"])

        assert (await campaign_service.get_campaign(campaign.id)).metrics.creators_joined == 3

    @pytest.mark.asyncio
    async def test_concurrent_join_resolves_to_existing(
        self, campaign_service, creator_ctx, launch_campaign, mock_store
    ):
        # Given: another request inserts the same pair between our check and our write
        campaign = await launch_campaign()

        async def racing_upsert(record):
            await mock_store.insert(APPLICATIONS_TABLE, record)
            raise ConstraintViolationError("duplicate key", code="23505", constraint="uq_campaign_creator")

        mock_store.upsert_application = AsyncMock(side_effect=racing_upsert)

        # When: the write hits the unique constraint
        application = await campaign_service.join_campaign(creator_ctx, campaign.id, ["tiktok"])

        # Then: the existing record is returned
        assert application.creator_id == creator_ctx.user_id
        assert len(mock_store.rows(APPLICATIONS_TABLE)) == 1


class TestJoinRules:

    @pytest.mark.asyncio
    async def test_draft_campaign_not_joinable(self, campaign_service, brand_ctx, creator_ctx, factory):
        campaign = await campaign_service.create_campaign(brand_ctx, factory.make_create_request())
        with pytest.raises(InvalidCampaignStateError):
            await campaign_service.join_campaign(creator_ctx, campaign.id, ["tiktok"])

    @pytest.mark.asyncio
    async def test_unknown_campaign(self, campaign_service, creator_ctx):
        with pytest.raises(CampaignNotFoundError):
            await campaign_service.join_campaign(creator_ctx, "missing", ["tiktok"])

    @pytest.mark.asyncio
    async def test_platform_must_be_offered(self, campaign_service, creator_ctx, launch_campaign):
        campaign = await launch_campaign()
        with pytest.raises(CampaignValidationError) as exc_info:
            await campaign_service.join_campaign(creator_ctx, campaign.id, ["youtube"])
        assert exc_info.value.field == "platforms"

    @pytest.mark.asyncio
    async def test_platform_names_ignore_case(self, campaign_service, creator_ctx, launch_campaign, mock_store):
        campaign = await launch_campaign()

        application = await campaign_service.join_campaign(
            creator_ctx, campaign.id, ["TikTok", " INSTAGRAM "]
        )

        assert application.platforms == ["tiktok", "instagram"]
        assert mock_store.rows(APPLICATIONS_TABLE)[0]["platforms"] == ["tiktok", "instagram"]

    @pytest.mark.asyncio
    async def test_unoffered_platform_in_any_case(self, campaign_service, creator_ctx, launch_campaign):
        campaign = await launch_campaign()
        with pytest.raises(CampaignValidationError) as exc_info:
            await campaign_service.join_campaign(creator_ctx, campaign.id, ["YouTube"])
        assert "youtube" in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("platforms", [[], ["", "  "]])
    async def test_platform_required(self, campaign_service, creator_ctx, launch_campaign, platforms):
        campaign = await launch_campaign()
        with pytest.raises(CampaignValidationError):
            await campaign_service.join_campaign(creator_ctx, campaign.id, platforms)

    @pytest.mark.asyncio
    async def test_brand_cannot_join(self, campaign_service, brand_ctx, launch_campaign):
        campaign = await launch_campaign()
        with pytest.raises(PermissionDeniedError):
            await campaign_service.join_campaign(brand_ctx, campaign.id, ["tiktok"])


class TestCreatorReads:

    @pytest.mark.asyncio
    async def test_available_excludes_joined(self, campaign_service, creator_ctx, launch_campaign):
        joined = await launch_campaign()
        open_campaign = await launch_campaign()
        await campaign_service.join_campaign(creator_ctx, joined.id, ["tiktok"])

        available = await campaign_service.list_available_campaigns(creator_ctx)
        applications = await campaign_service.list_creator_applications(creator_ctx)

        assert [c.id for c in available] == [open_campaign.id]
        assert [a.campaign_id for a in applications] == [joined.id]

    @pytest.mark.asyncio
    async def test_available_excludes_inactive(
        self, campaign_service, brand_ctx, creator_ctx, launch_campaign, factory
    ):
        await campaign_service.create_campaign(brand_ctx, factory.make_create_request())
        paused = await launch_campaign()
        await campaign_service.pause_campaign(brand_ctx, paused.id)

        assert await campaign_service.list_available_campaigns(creator_ctx) == []
