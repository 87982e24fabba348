"""
Campaign Service Business Logic

Implements the campaign lifecycle: brand drafts and submissions, admin
approval, creator joins, content submissions and metric recomputation.
Every operation receives the caller explicitly as a CallerContext.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from .events import CampaignEventPublisher
from .legacy import backfill_campaign_record, normalize_rejection_reason
from .models import (
    MIN_CAMPAIGN_BUDGET,
    MIN_CAMPAIGN_DURATION_DAYS,
    ApplicationStatus,
    CallerContext,
    CallerRole,
    Campaign,
    CampaignApplication,
    CampaignBrief,
    CampaignCreateRequest,
    CampaignMetrics,
    CampaignRequirements,
    CampaignStatus,
    CampaignUpdateRequest,
    ContentSubmission,
    ContentSubmissionRequest,
    ContentType,
    RejectionReason,
    SubmissionStatus,
    normalize_platform,
)
from .protocols import (
    APPLICATIONS_TABLE,
    CAMPAIGNS_TABLE,
    SUBMISSIONS_TABLE,
    CampaignNotFoundError,
    CampaignStoreProtocol,
    CampaignValidationError,
    ConstraintViolationError,
    EventBusProtocol,
    InvalidCampaignStateError,
    PermissionDeniedError,
)
from .validation import (
    FieldErrors,
    non_blank,
    validate_budget_and_rates,
    validate_dates,
    validate_hashtag,
)
from .view_estimation import calculate_view_targets

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _view_target_fields(
    budget: Any, content_type: ContentType, requirements: CampaignRequirements
) -> Dict[str, int]:
    targets = calculate_view_targets(
        budget,
        requirements.payout_rate.original,
        requirements.payout_rate.repurposed,
        content_type,
        requirements.budget_allocation,
    )
    return {
        "total_view_target": targets.total,
        "original_view_target": targets.original,
        "repurposed_view_target": targets.repurposed,
    }


class CampaignService:
    """Campaign service business logic layer"""

    # Valid state transitions
    VALID_TRANSITIONS = {
        CampaignStatus.DRAFT: [CampaignStatus.PENDING_APPROVAL, CampaignStatus.CANCELLED],
        CampaignStatus.PENDING_APPROVAL: [
            CampaignStatus.APPROVED,
            CampaignStatus.ACTIVE,
            CampaignStatus.REJECTED,
            CampaignStatus.CANCELLED,
        ],
        CampaignStatus.APPROVED: [CampaignStatus.ACTIVE, CampaignStatus.CANCELLED],
        CampaignStatus.REJECTED: [CampaignStatus.PENDING_APPROVAL, CampaignStatus.CANCELLED],
        CampaignStatus.ACTIVE: [CampaignStatus.PAUSED, CampaignStatus.COMPLETED, CampaignStatus.CANCELLED],
        CampaignStatus.PAUSED: [CampaignStatus.ACTIVE, CampaignStatus.COMPLETED, CampaignStatus.CANCELLED],
        CampaignStatus.COMPLETED: [],  # Terminal state
        CampaignStatus.CANCELLED: [],  # Terminal state
    }

    EDITABLE_STATUSES = (CampaignStatus.DRAFT, CampaignStatus.REJECTED)
    APPROVAL_STATUSES = (CampaignStatus.APPROVED, CampaignStatus.ACTIVE)
    JOINED_APPLICATION_STATUSES = (ApplicationStatus.ACTIVE, ApplicationStatus.APPROVED)
    COUNTED_SUBMISSION_STATUSES = (SubmissionStatus.APPROVED, SubmissionStatus.LIVE)

    def __init__(
        self,
        store: CampaignStoreProtocol,
        event_bus: Optional[EventBusProtocol] = None,
        approved_status: CampaignStatus = CampaignStatus.APPROVED,
        min_budget: Decimal = MIN_CAMPAIGN_BUDGET,
        min_duration_days: int = MIN_CAMPAIGN_DURATION_DAYS,
    ):
        approved_status = CampaignStatus(approved_status)
        if approved_status not in self.APPROVAL_STATUSES:
            raise ValueError(f"Approval must lead to approved or active, not {approved_status.value}")

        self.store = store
        self.event_bus = event_bus
        self.publisher = CampaignEventPublisher(event_bus)
        self.approved_status = approved_status
        self.min_budget = Decimal(min_budget)
        self.min_duration_days = min_duration_days

    # ====================
    # Campaign CRUD
    # ====================

    async def create_campaign(
        self,
        ctx: CallerContext,
        request: CampaignCreateRequest,
    ) -> Campaign:
        """
        Create a new campaign in draft status.

        View targets are always derived from the budget, payout rates and
        allocation, never taken from the caller.
        """
        self._require_role(ctx, CallerRole.BRAND, CallerRole.ADMIN)
        if not ctx.brand_id:
            raise PermissionDeniedError(
                f"User {ctx.user_id} has no brand profile to own the campaign"
            )

        requirements = request.requirements
        updates: Dict[str, Any] = {}
        if request.platforms:
            updates["platforms"] = list(request.platforms)
        if requirements.total_budget in ("", "0"):
            updates["total_budget"] = str(request.budget)
        if updates:
            requirements = requirements.model_copy(update=updates)

        now = _now_iso()
        record = {
            "brand_id": ctx.brand_id,
            "title": request.title.strip(),
            "status": CampaignStatus.DRAFT.value,
            "content_type": request.content_type.value,
            "budget": request.budget,
            "spent": 0,
            "start_date": request.start_date.isoformat() if request.start_date else None,
            "end_date": request.end_date.isoformat() if request.end_date else None,
            "brief": request.brief.model_dump(mode="json"),
            "requirements": requirements.model_dump(mode="json", by_alias=True),
            **_view_target_fields(request.budget, request.content_type, requirements),
            "metrics": CampaignMetrics().model_dump(),
            "rejection_reason": None,
            "created_at": now,
            "updated_at": now,
        }

        row = await self.store.insert(CAMPAIGNS_TABLE, record)
        campaign = self._to_campaign(row)

        await self.publisher.publish_campaign_created(campaign, ctx.user_id)

        logger.info(f"Campaign created: {campaign.id} for brand {campaign.brand_id}")
        return campaign

    async def get_campaign(
        self,
        campaign_id: str,
        brand_id: Optional[str] = None,
    ) -> Campaign:
        """Get campaign by ID, optionally scoped to a brand"""
        row = await self.store.select_by_id(CAMPAIGNS_TABLE, campaign_id)
        if not row or (brand_id and row.get("brand_id") != brand_id):
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        return self._to_campaign(row)

    async def update_campaign(
        self,
        ctx: CallerContext,
        campaign_id: str,
        patch: CampaignUpdateRequest,
    ) -> Campaign:
        """
        Update campaign fields.

        Content can only change while the campaign is a draft or was
        rejected, and updated_at moves on every call. A status in the patch
        is applied through the matching lifecycle operation after the content
        changes.
        """
        campaign = await self.get_campaign(campaign_id)
        self._require_owner(ctx, campaign)

        updates = self._build_content_updates(campaign, patch)
        if updates and campaign.status not in self.EDITABLE_STATUSES:
            raise InvalidCampaignStateError(
                f"Campaign {campaign_id} cannot be edited while {campaign.status.value}",
                current_status=campaign.status,
            )

        updates["updated_at"] = _now_iso()
        row = await self.store.update(CAMPAIGNS_TABLE, campaign_id, updates)
        if row is None:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        campaign = self._to_campaign(row)
        logger.info(f"Campaign updated: {campaign_id} ({', '.join(sorted(updates))})")

        if patch.status is not None and patch.status != campaign.status:
            campaign = await self._apply_status_patch(ctx, campaign, patch.status)

        return campaign

    async def delete_campaign(self, ctx: CallerContext, campaign_id: str) -> bool:
        """Delete a campaign that never left draft"""
        campaign = await self.get_campaign(campaign_id)
        self._require_owner(ctx, campaign)

        if campaign.status != CampaignStatus.DRAFT:
            raise InvalidCampaignStateError(
                f"Only draft campaigns can be deleted, campaign {campaign_id} is {campaign.status.value}",
                current_status=campaign.status,
            )

        deleted = await self.store.delete(CAMPAIGNS_TABLE, campaign_id)
        if deleted:
            logger.info(f"Campaign deleted: {campaign_id}")
        return deleted

    # ====================
    # Lifecycle Transitions
    # ====================

    async def submit_for_approval(self, ctx: CallerContext, campaign_id: str) -> Campaign:
        """Send a draft or rejected campaign to the admin queue"""
        campaign = await self.get_campaign(campaign_id)
        self._require_owner(ctx, campaign)

        if campaign.status not in self.EDITABLE_STATUSES:
            raise InvalidCampaignStateError(
                f"Campaign {campaign_id} cannot be submitted while {campaign.status.value}",
                current_status=campaign.status,
                requested_status=CampaignStatus.PENDING_APPROVAL,
            )

        errors = self._validate_for_submission(campaign)
        if errors:
            raise CampaignValidationError(
                f"Campaign {campaign_id} is not ready for review", field_errors=errors
            )

        return await self._transition(ctx, campaign, CampaignStatus.PENDING_APPROVAL)

    async def approve_campaign(self, ctx: CallerContext, campaign_id: str) -> Campaign:
        """Approve a pending campaign; the resulting status is configurable"""
        self._require_role(ctx, CallerRole.ADMIN)
        campaign = await self.get_campaign(campaign_id)

        now = _now_iso()
        return await self._transition(
            ctx,
            campaign,
            self.approved_status,
            allowed_from=[CampaignStatus.PENDING_APPROVAL],
            approved_by=ctx.user_id,
            approved_at=now,
        )

    async def reject_campaign(
        self,
        ctx: CallerContext,
        campaign_id: str,
        reason: Union[RejectionReason, Dict[str, Any], str, None],
    ) -> Campaign:
        """Reject a pending campaign with structured feedback"""
        self._require_role(ctx, CallerRole.ADMIN)

        try:
            rejection = normalize_rejection_reason(reason)
        except ValidationError:
            rejection = None
        if rejection is None:
            raise CampaignValidationError("A rejection reason is required", field="reasons")

        campaign = await self.get_campaign(campaign_id)
        return await self._transition(
            ctx,
            campaign,
            CampaignStatus.REJECTED,
            allowed_from=[CampaignStatus.PENDING_APPROVAL],
            rejection_reason=rejection.model_dump(),
            rejected_by=ctx.user_id,
            rejected_at=_now_iso(),
        )

    async def activate_campaign(self, ctx: CallerContext, campaign_id: str) -> Campaign:
        """Open an approved campaign to creators"""
        self._require_role(ctx, CallerRole.ADMIN)
        campaign = await self.get_campaign(campaign_id)
        return await self._transition(
            ctx, campaign, CampaignStatus.ACTIVE, allowed_from=[CampaignStatus.APPROVED]
        )

    async def pause_campaign(self, ctx: CallerContext, campaign_id: str) -> Campaign:
        """Stop accepting creators and content for now"""
        campaign = await self.get_campaign(campaign_id)
        self._require_owner(ctx, campaign)
        return await self._transition(
            ctx, campaign, CampaignStatus.PAUSED, allowed_from=[CampaignStatus.ACTIVE]
        )

    async def resume_campaign(self, ctx: CallerContext, campaign_id: str) -> Campaign:
        """Reopen a paused campaign"""
        campaign = await self.get_campaign(campaign_id)
        self._require_owner(ctx, campaign)
        return await self._transition(
            ctx, campaign, CampaignStatus.ACTIVE, allowed_from=[CampaignStatus.PAUSED]
        )

    async def complete_campaign(self, ctx: CallerContext, campaign_id: str) -> Campaign:
        """Close a running campaign"""
        campaign = await self.get_campaign(campaign_id)
        self._require_owner(ctx, campaign)
        return await self._transition(
            ctx,
            campaign,
            CampaignStatus.COMPLETED,
            allowed_from=[CampaignStatus.ACTIVE, CampaignStatus.PAUSED],
        )

    async def cancel_campaign(self, ctx: CallerContext, campaign_id: str) -> Campaign:
        """Cancel a campaign from any non-terminal status"""
        campaign = await self.get_campaign(campaign_id)
        self._require_owner(ctx, campaign)
        return await self._transition(ctx, campaign, CampaignStatus.CANCELLED)

    async def _apply_status_patch(
        self, ctx: CallerContext, campaign: Campaign, target: CampaignStatus
    ) -> Campaign:
        """Route a status patch to the lifecycle operation that owns it"""
        if target == CampaignStatus.PENDING_APPROVAL:
            return await self.submit_for_approval(ctx, campaign.id)
        if target in self.APPROVAL_STATUSES and campaign.status == CampaignStatus.PENDING_APPROVAL:
            if target != self.approved_status:
                raise InvalidCampaignStateError(
                    f"Approval leads to {self.approved_status.value}, not {target.value}",
                    current_status=campaign.status,
                    requested_status=target,
                )
            return await self.approve_campaign(ctx, campaign.id)
        if target == CampaignStatus.REJECTED:
            raise CampaignValidationError(
                "Rejecting a campaign requires a reason", field="rejection_reason"
            )
        if target == CampaignStatus.ACTIVE and campaign.status == CampaignStatus.PAUSED:
            return await self.resume_campaign(ctx, campaign.id)

        handlers = {
            CampaignStatus.ACTIVE: self.activate_campaign,
            CampaignStatus.PAUSED: self.pause_campaign,
            CampaignStatus.COMPLETED: self.complete_campaign,
            CampaignStatus.CANCELLED: self.cancel_campaign,
        }
        handler = handlers.get(target)
        if handler is None:
            raise InvalidCampaignStateError(
                f"Cannot move campaign {campaign.id} from {campaign.status.value} to {target.value}",
                current_status=campaign.status,
                requested_status=target,
            )
        return await handler(ctx, campaign.id)

    async def _transition(
        self,
        ctx: CallerContext,
        campaign: Campaign,
        target: CampaignStatus,
        allowed_from: Optional[List[CampaignStatus]] = None,
        **fields: Any,
    ) -> Campaign:
        """Persist a status change after checking it against the state machine"""
        current = campaign.status
        if (allowed_from is not None and current not in allowed_from) or not self._validate_state_transition(
            current, target
        ):
            raise InvalidCampaignStateError(
                f"Cannot move campaign {campaign.id} from {current.value} to {target.value}",
                current_status=current,
                requested_status=target,
            )

        patch = {"status": target.value, "updated_at": _now_iso(), **fields}
        row = await self.store.update(CAMPAIGNS_TABLE, campaign.id, patch)
        if row is None:
            raise CampaignNotFoundError(f"Campaign not found: {campaign.id}")
        updated = self._to_campaign(row)

        await self.publisher.publish_status_changed(
            updated,
            current,
            ctx.user_id,
            rejection_reason=updated.rejection_reason if target == CampaignStatus.REJECTED else None,
        )

        logger.info(f"Campaign {campaign.id} moved from {current.value} to {target.value} by {ctx.user_id}")
        return updated

    # ====================
    # Creator Participation
    # ====================

    async def join_campaign(
        self,
        ctx: CallerContext,
        campaign_id: str,
        platforms: List[str],
    ) -> CampaignApplication:
        """
        Join an active campaign.

        Idempotent per (campaign, creator): joining again returns the
        existing record and leaves the creator count alone.
        Platform names match case-insensitively.
        """
        self._require_role(ctx, CallerRole.CREATOR)

        platforms = [normalize_platform(p) for p in non_blank(platforms or [])]
        if not platforms:
            raise CampaignValidationError("Select at least one platform", field="platforms")

        campaign = await self.get_campaign(campaign_id)

        existing = await self._find_application(campaign_id, ctx.user_id)
        if existing:
            logger.debug(f"Creator {ctx.user_id} already joined campaign {campaign_id}")
            return existing

        if campaign.status != CampaignStatus.ACTIVE:
            raise InvalidCampaignStateError(
                f"Campaign {campaign_id} is not accepting creators while {campaign.status.value}",
                current_status=campaign.status,
            )

        offered = set(campaign.requirements.platforms)
        unsupported = [p for p in platforms if offered and p not in offered]
        if unsupported:
            raise CampaignValidationError(
                f"Campaign does not run on: {', '.join(unsupported)}", field="platforms"
            )

        now = _now_iso()
        record = {
            "campaign_id": campaign_id,
            "creator_id": ctx.user_id,
            "status": ApplicationStatus.ACTIVE.value,
            "platforms": platforms,
            "earned": 0,
            "engagement": 0,
            "created_at": now,
            "updated_at": now,
        }

        try:
            row, created = await self.store.upsert_application(record)
        except ConstraintViolationError:
            # Lost a race with a concurrent join for the same pair
            existing = await self._find_application(campaign_id, ctx.user_id)
            if existing is None:
                raise
            return existing

        application = CampaignApplication.model_validate(row)
        if not created:
            logger.debug(f"Concurrent join resolved to existing record {application.id}")
            return application

        creators_joined = await self._refresh_creator_count(campaign_id)
        await self.publisher.publish_creator_joined(application, creators_joined)

        logger.info(f"Creator {ctx.user_id} joined campaign {campaign_id}")
        return application

    async def submit_content(
        self,
        ctx: CallerContext,
        request: ContentSubmissionRequest,
    ) -> ContentSubmission:
        """Record a creator's post for moderation; metrics are untouched"""
        self._require_role(ctx, CallerRole.CREATOR)

        if not request.campaign_id:
            raise CampaignValidationError("Campaign is required", field="campaign_id")

        campaign = await self.get_campaign(request.campaign_id)
        if campaign.status != CampaignStatus.ACTIVE:
            raise InvalidCampaignStateError(
                f"Campaign {campaign.id} is not accepting content while {campaign.status.value}",
                current_status=campaign.status,
            )

        application = await self._find_application(campaign.id, ctx.user_id)
        if application is None:
            raise PermissionDeniedError(
                f"Creator {ctx.user_id} must join campaign {campaign.id} before submitting content"
            )

        if not campaign.content_type.includes(request.content_type):
            raise CampaignValidationError(
                f"Campaign does not fund {request.content_type.value} content",
                field="content_type",
            )
        if request.platform not in application.platforms:
            raise CampaignValidationError(
                f"Creator did not join on {request.platform}", field="platform"
            )

        now = _now_iso()
        record = {
            "campaign_id": campaign.id,
            "creator_id": ctx.user_id,
            "platform": request.platform,
            "content_type": request.content_type.value,
            "post_url": request.post_url.strip(),
            "status": SubmissionStatus.PENDING.value,
            "views": 0,
            "engagement": 0,
            "earned": 0,
            "rejection_feedback": None,
            "created_at": now,
            "updated_at": now,
        }
        row = await self.store.insert(SUBMISSIONS_TABLE, record)
        submission = ContentSubmission.model_validate(row)

        await self.publisher.publish_content_submitted(submission)

        logger.info(f"Content submitted: {submission.id} for campaign {campaign.id}")
        return submission

    async def review_submission(
        self,
        ctx: CallerContext,
        submission_id: str,
        approved: bool,
        feedback: Optional[str] = None,
    ) -> ContentSubmission:
        """Approve or reject a pending submission and refresh campaign metrics"""
        self._require_role(ctx, CallerRole.ADMIN)

        row = await self.store.select_by_id(SUBMISSIONS_TABLE, submission_id)
        if not row:
            raise CampaignNotFoundError(f"Submission not found: {submission_id}")
        submission = ContentSubmission.model_validate(row)

        target = SubmissionStatus.APPROVED if approved else SubmissionStatus.REJECTED
        if submission.status != SubmissionStatus.PENDING:
            raise InvalidCampaignStateError(
                f"Submission {submission_id} was already reviewed",
                current_status=submission.status,
                requested_status=target,
            )

        feedback = (feedback or "").strip() or None
        if not approved and not feedback:
            raise CampaignValidationError(
                "Feedback is required when rejecting a submission", field="feedback"
            )

        row = await self.store.update(
            SUBMISSIONS_TABLE,
            submission_id,
            {
                "status": target.value,
                "rejection_feedback": None if approved else feedback,
                "updated_at": _now_iso(),
            },
        )
        if row is None:
            raise CampaignNotFoundError(f"Submission not found: {submission_id}")
        reviewed = ContentSubmission.model_validate(row)

        await self.recompute_metrics(reviewed.campaign_id)
        await self.publisher.publish_submission_reviewed(reviewed, ctx.user_id)

        logger.info(f"Submission {submission_id} {target.value} by {ctx.user_id}")
        return reviewed

    # ====================
    # Metrics
    # ====================

    async def recompute_metrics(self, campaign_id: str) -> Campaign:
        """Rebuild campaign metrics from submissions and join records"""
        campaign = await self.get_campaign(campaign_id)

        rows = await self.store.select_where(SUBMISSIONS_TABLE, {"campaign_id": campaign_id})
        submissions = [ContentSubmission.model_validate(r) for r in rows]
        counted = [s for s in submissions if s.status in self.COUNTED_SUBMISSION_STATUSES]

        metrics = CampaignMetrics(
            views=sum(s.views for s in counted),
            engagement=sum(s.engagement for s in counted),
            creators_joined=await self._count_joined_creators(campaign_id),
            posts_submitted=len(submissions),
            posts_approved=len(counted),
        )
        if metrics == campaign.metrics:
            return campaign

        row = await self.store.update(CAMPAIGNS_TABLE, campaign_id, {"metrics": metrics.model_dump()})
        if row is None:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")

        logger.debug(f"Metrics recomputed for campaign {campaign_id}: {metrics.model_dump()}")
        return self._to_campaign(row)

    async def _count_joined_creators(self, campaign_id: str) -> int:
        return await self.store.count_where(
            APPLICATIONS_TABLE,
            {
                "campaign_id": campaign_id,
                "status": [s.value for s in self.JOINED_APPLICATION_STATUSES],
            },
        )

    async def _refresh_creator_count(self, campaign_id: str) -> int:
        """Store a fresh creator count, writing only when it changed"""
        count = await self._count_joined_creators(campaign_id)
        campaign = await self.get_campaign(campaign_id)

        if campaign.metrics.creators_joined != count:
            metrics = campaign.metrics.model_copy(update={"creators_joined": count})
            await self.store.update(CAMPAIGNS_TABLE, campaign_id, {"metrics": metrics.model_dump()})
        return count

    # ====================
    # Read Side
    # ====================

    async def list_brand_campaigns(
        self,
        ctx: CallerContext,
        status: Optional[CampaignStatus] = None,
    ) -> List[Campaign]:
        """Campaigns owned by the caller's brand, newest first"""
        self._require_role(ctx, CallerRole.BRAND, CallerRole.ADMIN)
        if not ctx.brand_id:
            raise PermissionDeniedError(f"User {ctx.user_id} has no brand profile")

        filters: Dict[str, Any] = {"brand_id": ctx.brand_id}
        if status is not None:
            filters["status"] = CampaignStatus(status).value
        rows = await self.store.select_where(CAMPAIGNS_TABLE, filters)
        return [self._to_campaign(r) for r in rows]

    async def list_available_campaigns(self, ctx: CallerContext) -> List[Campaign]:
        """Active campaigns the creator has not joined yet"""
        self._require_role(ctx, CallerRole.CREATOR)

        rows = await self.store.select_where(
            CAMPAIGNS_TABLE, {"status": CampaignStatus.ACTIVE.value}
        )
        joined = {a.campaign_id for a in await self.list_creator_applications(ctx)}
        return [self._to_campaign(r) for r in rows if r.get("id") not in joined]

    async def list_pending_campaigns(self, ctx: CallerContext) -> List[Campaign]:
        """Admin review queue, oldest first"""
        self._require_role(ctx, CallerRole.ADMIN)
        rows = await self.store.select_where(
            CAMPAIGNS_TABLE,
            {"status": CampaignStatus.PENDING_APPROVAL.value},
            descending=False,
        )
        return [self._to_campaign(r) for r in rows]

    async def list_campaigns(
        self,
        ctx: CallerContext,
        status: Optional[CampaignStatus] = None,
    ) -> List[Campaign]:
        """All campaigns, for admins"""
        self._require_role(ctx, CallerRole.ADMIN)
        filters = {"status": CampaignStatus(status).value} if status is not None else {}
        rows = await self.store.select_where(CAMPAIGNS_TABLE, filters)
        return [self._to_campaign(r) for r in rows]

    async def list_creator_applications(self, ctx: CallerContext) -> List[CampaignApplication]:
        """Campaigns the creator has joined"""
        self._require_role(ctx, CallerRole.CREATOR)
        rows = await self.store.select_where(APPLICATIONS_TABLE, {"creator_id": ctx.user_id})
        return [CampaignApplication.model_validate(r) for r in rows]

    async def list_creator_submissions(
        self,
        ctx: CallerContext,
        campaign_id: Optional[str] = None,
    ) -> List[ContentSubmission]:
        """Submissions made by the creator"""
        self._require_role(ctx, CallerRole.CREATOR)
        filters = {"creator_id": ctx.user_id}
        if campaign_id:
            filters["campaign_id"] = campaign_id
        rows = await self.store.select_where(SUBMISSIONS_TABLE, filters)
        return [ContentSubmission.model_validate(r) for r in rows]

    async def list_pending_submissions(
        self,
        ctx: CallerContext,
        campaign_id: Optional[str] = None,
    ) -> List[ContentSubmission]:
        """Submissions awaiting moderation, for admins or the owning brand"""
        if ctx.role == CallerRole.BRAND:
            if not campaign_id:
                raise PermissionDeniedError("Brands can only list submissions for their own campaign")
            self._require_owner(ctx, await self.get_campaign(campaign_id))
        else:
            self._require_role(ctx, CallerRole.ADMIN)

        filters = {"status": SubmissionStatus.PENDING.value}
        if campaign_id:
            filters["campaign_id"] = campaign_id
        rows = await self.store.select_where(SUBMISSIONS_TABLE, filters, descending=False)
        return [ContentSubmission.model_validate(r) for r in rows]

    async def _find_application(
        self, campaign_id: str, creator_id: str
    ) -> Optional[CampaignApplication]:
        rows = await self.store.select_where(
            APPLICATIONS_TABLE,
            {"campaign_id": campaign_id, "creator_id": creator_id},
            limit=1,
        )
        return CampaignApplication.model_validate(rows[0]) if rows else None

    # ====================
    # Validation Helpers
    # ====================

    def _build_content_updates(
        self, campaign: Campaign, patch: CampaignUpdateRequest
    ) -> Dict[str, Any]:
        """Translate a patch into store updates, merging nested blocks key-wise"""
        updates: Dict[str, Any] = {}

        if patch.title is not None:
            if not patch.title.strip():
                raise CampaignValidationError("Campaign title is required", field="title")
            updates["title"] = patch.title.strip()

        if patch.brief is not None:
            brief = campaign.brief.model_dump()
            brief.update(patch.brief)
            updates["brief"] = CampaignBrief.model_validate(brief).model_dump(mode="json")

        if patch.content_type is not None:
            updates["content_type"] = patch.content_type.value
        if patch.budget is not None:
            updates["budget"] = patch.budget
        if patch.start_date is not None:
            updates["start_date"] = patch.start_date.isoformat()
        if patch.end_date is not None:
            updates["end_date"] = patch.end_date.isoformat()

        requirements = campaign.requirements
        if patch.requirements is not None or patch.platforms is not None:
            merged = campaign.requirements.model_dump(mode="json", by_alias=True)
            if patch.requirements is not None:
                changes = patch.requirements.model_dump(by_alias=True, exclude_none=True)
                for key, value in changes.items():
                    if isinstance(value, dict) and isinstance(merged.get(key), dict):
                        merged[key] = {**merged[key], **value}
                    else:
                        merged[key] = value
            if patch.platforms is not None:
                merged["platforms"] = list(patch.platforms)
            try:
                requirements = CampaignRequirements.model_validate(merged)
            except ValidationError as e:
                error = e.errors()[0]
                field = ".".join(str(part) for part in error["loc"]) or "requirements"
                raise CampaignValidationError(f"Invalid requirements: {error['msg']}", field=field)
            updates["requirements"] = requirements.model_dump(mode="json", by_alias=True)

        # Targets always match the stored budget, rates and allocation
        if {"budget", "content_type", "requirements"} & set(updates):
            updates.update(
                _view_target_fields(
                    patch.budget if patch.budget is not None else campaign.budget,
                    patch.content_type or campaign.content_type,
                    requirements,
                )
            )

        return updates

    def _validate_for_submission(self, campaign: Campaign) -> FieldErrors:
        """Everything an admin needs before a campaign can be reviewed"""
        errors: FieldErrors = {}
        requirements = campaign.requirements

        if not campaign.title.strip():
            errors["title"] = "Campaign title is required"
        if not requirements.platforms:
            errors["platforms"] = "Select at least one platform"

        errors.update(
            validate_budget_and_rates(
                campaign.budget,
                {track: requirements.payout_rate.for_track(track) for track in campaign.content_type.tracks},
                campaign.content_type,
                min_budget=self.min_budget,
            )
        )

        if campaign.start_date is None:
            errors["startDate"] = "Start date is required"
        if campaign.end_date is None:
            errors["endDate"] = "End date is required"
        errors.update(
            validate_dates(
                campaign.start_date,
                campaign.end_date,
                check_past=False,
                min_days=self.min_duration_days,
            )
        )

        for track in campaign.content_type.tracks:
            if not (getattr(campaign.brief, track.value) or "").strip():
                errors[f"brief.{track.value}"] = f"Brief for {track.value} content is required"
            hashtag_error = validate_hashtag(requirements.hashtags.for_track(track))
            if hashtag_error:
                errors[f"hashtags.{track.value}"] = hashtag_error

        if not non_blank(requirements.content_guidelines):
            errors["contentGuidelines"] = "Add at least one guideline"

        return errors

    def _validate_state_transition(
        self,
        current: CampaignStatus,
        target: CampaignStatus,
    ) -> bool:
        """Validate state transition is allowed"""
        valid_targets = self.VALID_TRANSITIONS.get(current, [])
        return target in valid_targets

    def _require_role(self, ctx: CallerContext, *roles: CallerRole) -> None:
        if ctx.role not in roles:
            raise PermissionDeniedError(
                f"Role '{ctx.role.value}' is not allowed to perform this action"
            )

    def _require_owner(self, ctx: CallerContext, campaign: Campaign) -> None:
        """Admins act on any campaign; brands only on their own"""
        if ctx.is_admin:
            return
        if ctx.role != CallerRole.BRAND or not ctx.brand_id or ctx.brand_id != campaign.brand_id:
            raise PermissionDeniedError(
                f"User {ctx.user_id} does not own campaign {campaign.id}"
            )

    def _to_campaign(self, row: Dict[str, Any]) -> Campaign:
        return Campaign.model_validate(backfill_campaign_record(row))


__all__ = ["CampaignService"]
