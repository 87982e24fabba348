"""
Unit Tests for Legacy Campaign Records

Rejection reasons in historical shapes and rows missing newer blocks.
"""

import json
import logging

import pytest

from microservices.campaign_service.legacy import (
    UNSPECIFIED_REASON,
    backfill_campaign_record,
    normalize_rejection_reason,
)
from microservices.campaign_service.models import Campaign, CampaignStatus, RejectionReason


class TestNormalizeRejectionReason:

    @pytest.mark.parametrize("value", [None, "", "   ", {}, {"reasons": []}])
    def test_nothing_to_normalize(self, value):
        assert normalize_rejection_reason(value) is None

    def test_plain_text(self):
        reason = normalize_rejection_reason("Brief is too vague")
        assert reason.reasons == ["Brief is too vague"]
        assert reason.recommendations == []

    def test_json_encoded_dict(self):
        raw = json.dumps({"reasons": ["Budget too low"], "recommendations": "Raise the budget"})
        reason = normalize_rejection_reason(raw)
        assert reason.reasons == ["Budget too low"]
        assert reason.recommendations == ["Raise the budget"]

    def test_json_encoded_list(self):
        reason = normalize_rejection_reason(json.dumps(["One", "Two"]))
        assert reason.reasons == ["One", "Two"]

    def test_single_reason_key(self):
        reason = normalize_rejection_reason({"reason": "Hashtag missing"})
        assert reason.reasons == ["Hashtag missing"]

    def test_recommendations_only(self):
        reason = normalize_rejection_reason({"recommendations": ["Add more detail"]})
        assert reason.reasons == [UNSPECIFIED_REASON]
        assert reason.recommendations == ["Add more detail"]

    def test_list_of_reasons(self):
        reason = normalize_rejection_reason(["One", "", "Two"])
        assert reason.reasons == ["One", "Two"]

    def test_structured_passes_through(self):
        original = RejectionReason(reasons=["Off brand"])
        assert normalize_rejection_reason(original) is original


class TestBackfillCampaignRecord:

    def test_legacy_row_is_brought_current(self, factory, caplog):
        # Given: a row without budget_allocation, with view_estimates and a
        # rejection reason hidden in metrics
        legacy = factory.make_legacy_record()

        # When: reading it
        with caplog.at_level(logging.WARNING):
            row = backfill_campaign_record(legacy)

        # Then: it has the current shape and validates
        assert row["requirements"]["budget_allocation"] == {"original": 70, "repurposed": 30}
        assert "view_estimates" not in row["requirements"]
        assert "rejection_reason" not in row["metrics"]
        assert row["rejection_reason"] == {
            "reasons": ["Brief is too vague"],
            "recommendations": [],
        }
        campaign = Campaign.model_validate(row)
        assert campaign.status == CampaignStatus.REJECTED
        assert campaign.rejection_reason.reasons == ["Brief is too vague"]

        # And: the shims are logged
        assert "budget_allocation" in caplog.text
        assert "metrics.rejection_reason" in caplog.text

    def test_input_is_not_mutated(self, factory):
        legacy = factory.make_legacy_record()
        backfill_campaign_record(legacy)
        assert "budget_allocation" not in legacy["requirements"]
        assert "rejection_reason" in legacy["metrics"]

    def test_top_level_reason_wins_over_metrics(self, factory):
        legacy = factory.make_legacy_record(
            rejection_reason={"reasons": ["Top level"], "recommendations": []}
        )
        row = backfill_campaign_record(legacy)
        assert row["rejection_reason"]["reasons"] == ["Top level"]

    def test_text_reason_is_structured(self, factory):
        record = factory.make_campaign_record(rejection_reason="Needs a clearer brief")
        row = backfill_campaign_record(record)
        assert row["rejection_reason"] == {
            "reasons": ["Needs a clearer brief"],
            "recommendations": [],
        }

    def test_current_row_is_untouched(self, factory, caplog):
        record = factory.make_campaign_record()
        with caplog.at_level(logging.WARNING):
            row = backfill_campaign_record(record)
        assert row == record
        assert caplog.text == ""
