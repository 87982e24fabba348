"""
Unit Tests for the Campaign Creation Form

Step completeness, navigation, field edits and the persistence request.
"""

from datetime import date, timedelta

import pytest

from microservices.campaign_service.campaign_form import (
    STEP_ORDER,
    CampaignDraft,
    CampaignForm,
    FormStep,
)
from microservices.campaign_service.models import ContentType
from microservices.campaign_service.protocols import CampaignValidationError
from microservices.campaign_service.validation import START_IN_PAST_MESSAGE

TODAY = date(2026, 11, 2)


def fill_details(form: CampaignForm, content_type: str = "original") -> None:
    form.update_field("title", "Summer Launch")
    form.update_field("platforms.tiktok", True)
    form.update_field("contentType", content_type)


def fill_guidelines(form: CampaignForm) -> None:
    for track in form.draft.tracks:
        form.update_field(f"brief.{track.value}", f"Brief for {track.value}")
        form.update_field(f"guidelines.{track.value}", [f"Guideline for {track.value}", ""])
        form.update_field(f"hashtags.{track.value}", "#SummerAd")


def complete_form(form: CampaignForm, content_type: str = "original") -> CampaignForm:
    fill_details(form, content_type)
    fill_guidelines(form)
    form.update_field("budget", "10000")
    form.update_field("paymentMethod", "card_visa_4242")
    form.update_field("termsAccepted", True)
    return form


@pytest.fixture
def form() -> CampaignForm:
    return CampaignForm(today=TODAY)


class TestInitialDraft:

    def test_defaults(self, form):
        draft = form.draft
        assert draft.start_date == "2026-11-02"
        assert draft.end_date == "2026-12-02"
        assert draft.budget == "1000"
        assert draft.content_type == ContentType.ORIGINAL
        assert draft.budget_allocation.original == 70
        assert draft.payout_rate.original == "500"
        assert draft.payout_rate.repurposed == "250"

    def test_starts_on_details(self, form):
        assert form.current_step == FormStep.DETAILS
        assert form.visited == {FormStep.DETAILS}

    def test_draft_accepts_camel_case(self):
        draft = CampaignDraft.model_validate({"contentType": "both", "termsAccepted": True})
        assert draft.content_type == ContentType.BOTH
        assert draft.terms_accepted is True


class TestStepRules:

    def test_details_incomplete(self, form):
        errors = form.validate_step(FormStep.DETAILS)
        assert set(errors) == {"title", "platforms"}

    def test_details_complete(self, form):
        fill_details(form)
        assert form.is_step_complete(FormStep.DETAILS)

    def test_guidelines_keyed_per_active_track(self, form):
        fill_details(form, "both")
        errors = form.validate_step(FormStep.CONTENT_GUIDELINES)
        assert {"brief.original", "brief.repurposed", "guidelines.original",
                "guidelines.repurposed", "hashtags.original", "hashtags.repurposed"} <= set(errors)

    def test_bad_hashtag_blocks_guidelines(self, form):
        fill_details(form)
        fill_guidelines(form)
        form.draft = form.draft.model_copy(
            update={"hashtags": form.draft.hashtags.model_copy(update={"original": "#summer"})}
        )
        errors = form.validate_step(FormStep.CONTENT_GUIDELINES)
        assert errors == {"hashtags.original": "Hashtag must include 'ad' to disclose the sponsorship"}

    def test_creator_preview_always_complete(self, form):
        assert form.is_step_complete(FormStep.CREATOR_PREVIEW)

    def test_budget_below_minimum(self, form):
        form.update_field("budget", "500")
        assert set(form.validate_step(FormStep.BUDGET)) == {"budget"}

    def test_rate_below_minimum_for_active_track(self, form):
        form.update_field("payoutRate.original", "100")
        assert set(form.validate_step(FormStep.BUDGET)) == {"payoutRate.original"}

    def test_payment_and_terms(self, form):
        assert form.validate_step(FormStep.PAYMENT_SUMMARY) == {"paymentMethod": "Select a payment method"}
        assert "termsAccepted" in form.validate_step(FormStep.FINAL_REVIEW)

    def test_complete_form_has_no_errors(self, form):
        complete_form(form, "both")
        assert form.validate_all() == {}


class TestNavigation:

    def test_next_blocked_until_complete(self, form):
        with pytest.raises(CampaignValidationError) as exc_info:
            form.next()
        assert "title" in exc_info.value.field_errors
        assert form.current_step == FormStep.DETAILS

    def test_walk_through_every_step(self, form):
        complete_form(form)
        for expected in STEP_ORDER[1:]:
            assert form.next() == expected
        # Last step stays put
        assert form.next() == FormStep.FINAL_REVIEW
        assert form.visited == set(STEP_ORDER)

    def test_back_is_free(self, form):
        fill_details(form)
        form.next()
        assert form.back() == FormStep.DETAILS
        assert form.back() == FormStep.DETAILS

    def test_go_to_visited_step(self, form):
        complete_form(form)
        form.next()
        form.next()
        assert form.go_to(FormStep.DETAILS) == FormStep.DETAILS
        assert form.go_to(FormStep.CREATOR_PREVIEW) == FormStep.CREATOR_PREVIEW

    def test_go_to_unvisited_step_rejected(self, form):
        with pytest.raises(CampaignValidationError):
            form.go_to(FormStep.BUDGET)


class TestFieldEdits:

    def test_hashtag_is_normalized(self, form):
        form.update_field("hashtags.original", " summer ad ")
        assert form.draft.hashtags.original == "#summerad"

    def test_slider_keeps_allocation_at_100(self, form):
        form.update_field("budgetAllocation.original", 60)
        assert (form.draft.budget_allocation.original, form.draft.budget_allocation.repurposed) == (60, 40)

        form.update_field("budget_allocation.repurposed", 25)
        assert (form.draft.budget_allocation.original, form.draft.budget_allocation.repurposed) == (75, 25)

    def test_slider_out_of_range(self, form):
        with pytest.raises(CampaignValidationError):
            form.set_budget_allocation(120)

    @pytest.mark.parametrize("value", ["abc", None, ""])
    def test_non_numeric_slider_value(self, form, value):
        with pytest.raises(CampaignValidationError) as exc_info:
            form.update_field("budgetAllocation.original", value)
        assert exc_info.value.field == "budgetAllocation.original"
        assert form.draft.budget_allocation.original == 70

    def test_past_start_date_sets_date_error(self, form):
        form.update_field("startDate", (TODAY - timedelta(days=1)).isoformat())
        assert form.date_errors["startDate"] == START_IN_PAST_MESSAGE

    def test_fixing_dates_clears_date_errors(self, form):
        form.update_field("endDate", (TODAY + timedelta(days=5)).isoformat())
        assert "endDate" in form.date_errors
        form.update_field("endDate", (TODAY + timedelta(days=45)).isoformat())
        assert form.date_errors == {}

    def test_unknown_field(self, form):
        with pytest.raises(CampaignValidationError) as exc_info:
            form.update_field("brief.sponsored", "x")
        assert exc_info.value.field == "brief.sponsored"

    def test_invalid_value(self, form):
        with pytest.raises(CampaignValidationError):
            form.update_field("contentType", "livestream")


class TestDerivedValues:

    def test_live_estimate_follows_the_draft(self, form):
        fill_details(form, "both")
        form.update_field("budget", "10000")
        estimate = form.live_estimate()
        assert estimate.original_views == 14_000_000
        assert estimate.repurposed_views == 12_000_000
        assert estimate.total_views == 26_000_000

    def test_live_estimate_with_empty_rate(self, form):
        form.update_field("budget", "5000")
        form.update_field("payoutRate.original", "")
        assert form.live_estimate().total_views == 0
        assert form.view_targets().total == 10_000_000

    def test_request_only_carries_active_tracks(self, form):
        complete_form(form, "original")
        form.update_field("brief.repurposed", "left over from a previous choice")
        form.update_field("guidelines.repurposed", ["stale"])

        request = form.to_campaign_request()

        assert request.brief.original == "Brief for original"
        assert request.brief.repurposed is None
        assert request.requirements.content_guidelines == ["Guideline for original"]
        assert request.requirements.platforms == ["tiktok"]
        assert request.requirements.min_views_for_payout == "1000"
        assert request.requirements.total_budget == "10000"
        assert request.budget == 10000
        assert form.view_targets().model_dump() == {
            "total": 20_000_000, "original": 20_000_000, "repurposed": 0,
        }

    def test_request_flattens_both_tracks(self, form):
        complete_form(form, "both")
        request = form.to_campaign_request()
        assert request.requirements.content_guidelines == [
            "Guideline for original",
            "Guideline for repurposed",
        ]
        assert request.requirements.budget_allocation.original == 70
        assert form.view_targets().total == 26_000_000


class TestEditMode:

    def test_rebuilds_from_campaign(self, factory):
        campaign = factory.make_campaign(
            content_type="both",
            budget=7500,
            requirements=factory.make_requirements(
                ContentType.BOTH,
                contentGuidelines=["one", "two", "three"],
                hashtags={"original": "", "repurposed": "#RepostAd"},
                payoutRate={"original": "800", "repurposed": ""},
                budget_allocation={"original": 40, "repurposed": 60},
            ).model_dump(mode="json", by_alias=True),
        )

        form = CampaignForm.from_campaign(campaign, today=TODAY)
        draft = form.draft

        assert form.campaign_id == campaign.id
        assert draft.guidelines.original == ["one", "two"]
        assert draft.guidelines.repurposed == ["three"]
        assert draft.hashtags.original == "#ad"
        assert draft.hashtags.repurposed == "#RepostAd"
        assert draft.payout_rate.original == "800"
        assert draft.payout_rate.repurposed == "250"
        assert draft.budget_allocation.original == 40
        assert draft.budget == "7500"
        assert draft.platforms.selected() == ["tiktok", "instagram"]
        assert form.visited == set(STEP_ORDER)

    def test_single_track_keeps_all_guidelines(self, factory):
        campaign = factory.make_campaign()
        form = CampaignForm.from_campaign(campaign, today=TODAY)
        assert form.draft.guidelines.original == [
            "Show the product in the first 3 seconds",
            "Tag the brand",
        ]
        assert form.draft.guidelines.repurposed == [""]
