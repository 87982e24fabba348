"""
Campaign Creation Form

Server-side model of the brand's multi-step campaign wizard: the draft being
accumulated, per-step completeness rules, navigation, and the two terminal
actions (save as draft, submit for review) which go through the lifecycle
service.
"""

import logging
import math
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, Field, ValidationError

from .models import (
    DEFAULT_HASHTAG,
    DEFAULT_MIN_VIEWS_FOR_PAYOUT,
    MIN_CAMPAIGN_DURATION_DAYS,
    BudgetAllocation,
    CallerContext,
    Campaign,
    CampaignBrief,
    CampaignCreateRequest,
    CampaignRequirements,
    CampaignUpdateRequest,
    ContentTrack,
    ContentType,
    Hashtags,
    PayoutRate,
    Platform,
)
from .protocols import CampaignValidationError
from .validation import (
    FieldErrors,
    normalize_hashtag,
    non_blank,
    parse_date,
    validate_budget_and_rates,
    validate_dates,
    validate_hashtag,
)
from .view_estimation import (
    ViewEstimates,
    ViewTargets,
    calculate_view_targets,
    estimate_views,
    parse_amount,
)

logger = logging.getLogger(__name__)

DEFAULT_BUDGET = "1000"


class FormStep(str, Enum):
    """Wizard steps, in order"""
    DETAILS = "details"
    CONTENT_GUIDELINES = "content_guidelines"
    CREATOR_PREVIEW = "creator_preview"
    BUDGET = "budget"
    PAYMENT_SUMMARY = "payment_summary"
    FINAL_REVIEW = "final_review"


STEP_ORDER: List[FormStep] = list(FormStep)


# ====================
# Draft Model
# ====================


class DraftModel(BaseModel):
    model_config = {"populate_by_name": True}


class DraftBrief(DraftModel):
    original: str = ""
    repurposed: str = ""


class PlatformSelection(DraftModel):
    tiktok: bool = False
    instagram: bool = False
    youtube: bool = False
    twitter: bool = False

    def selected(self) -> List[str]:
        return [p.value for p in Platform if getattr(self, p.value)]


class TrackGuidelines(DraftModel):
    original: List[str] = Field(default_factory=lambda: [""])
    repurposed: List[str] = Field(default_factory=lambda: [""])

    def for_track(self, track: ContentTrack) -> List[str]:
        return getattr(self, track.value)


class CampaignDraft(DraftModel):
    """Values accumulated by the wizard, kept as the brand entered them"""
    title: str = ""
    brief: DraftBrief = Field(default_factory=DraftBrief)
    goal: Optional[str] = None
    platforms: PlatformSelection = Field(default_factory=PlatformSelection)
    content_type: Optional[ContentType] = Field(ContentType.ORIGINAL, alias="contentType")
    budget_allocation: BudgetAllocation = Field(
        default_factory=BudgetAllocation, alias="budgetAllocation"
    )
    start_date: str = Field("", alias="startDate")
    end_date: str = Field("", alias="endDate")
    budget: str = DEFAULT_BUDGET
    payout_rate: PayoutRate = Field(default_factory=PayoutRate, alias="payoutRate")
    hashtags: Hashtags = Field(default_factory=Hashtags)
    guidelines: TrackGuidelines = Field(default_factory=TrackGuidelines)
    payment_method: str = Field("", alias="paymentMethod")
    terms_accepted: bool = Field(False, alias="termsAccepted")

    @classmethod
    def initial(cls, today: Optional[date] = None, payment_method: str = "") -> "CampaignDraft":
        """Fresh draft: runs from today for the minimum duration"""
        today = today or date.today()
        return cls(
            start_date=today.isoformat(),
            end_date=(today + timedelta(days=MIN_CAMPAIGN_DURATION_DAYS)).isoformat(),
            payment_method=payment_method,
        )

    @property
    def tracks(self) -> List[ContentTrack]:
        return self.content_type.tracks if self.content_type else []


def _resolve_field(model_cls: Type[BaseModel], segment: str) -> Tuple[str, Optional[Type[BaseModel]]]:
    """Map a path segment (field name or camelCase alias) to the field name"""
    for name, info in model_cls.model_fields.items():
        if segment in (name, info.alias):
            annotation = info.annotation
            nested = annotation if isinstance(annotation, type) and issubclass(annotation, BaseModel) else None
            return name, nested
    raise KeyError(segment)


def _format_amount(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# ====================
# Form State Machine
# ====================


class CampaignForm:
    """
    Multi-step campaign wizard.

    Navigation is linear with free back-navigation. Advancing requires the
    current step to be complete; jumping is only allowed to steps already
    visited.
    """

    def __init__(
        self,
        draft: Optional[CampaignDraft] = None,
        today: Optional[date] = None,
        campaign_id: Optional[str] = None,
    ):
        self.today = today or date.today()
        self.draft = draft or CampaignDraft.initial(self.today)
        self.campaign_id = campaign_id
        self.current_step = STEP_ORDER[0]
        self.visited = {self.current_step}
        self.date_errors: FieldErrors = {}

    # ====================
    # Edit Mode
    # ====================

    @classmethod
    def from_campaign(
        cls,
        campaign: Campaign,
        today: Optional[date] = None,
        payment_method: str = "",
    ) -> "CampaignForm":
        """
        Rebuild the wizard from a persisted campaign.

        Stored guidelines are a single flat list; for campaigns funding both
        tracks the first half (rounded up) is treated as the original
        track's guidelines.
        """
        today = today or date.today()
        requirements = campaign.requirements
        content_type = campaign.content_type
        flat = non_blank(requirements.content_guidelines)

        if content_type is ContentType.BOTH:
            half = math.ceil(len(flat) / 2)
            original, repurposed = flat[:half], flat[half:]
        elif content_type is ContentType.REPURPOSED:
            original, repurposed = [], flat
        else:
            original, repurposed = flat, []

        stored_platforms = set(requirements.platforms)
        platforms = PlatformSelection(
            **{p.value: p.value in stored_platforms for p in Platform}
        )

        start = campaign.start_date or today
        end = campaign.end_date or (start + timedelta(days=MIN_CAMPAIGN_DURATION_DAYS))

        draft = CampaignDraft(
            title=campaign.title,
            brief=DraftBrief(
                original=campaign.brief.original or "",
                repurposed=campaign.brief.repurposed or "",
            ),
            platforms=platforms,
            content_type=content_type,
            budget_allocation=requirements.budget_allocation,
            start_date=start.isoformat(),
            end_date=end.isoformat(),
            budget=_format_amount(campaign.budget) if campaign.budget else DEFAULT_BUDGET,
            payout_rate=PayoutRate(
                original=requirements.payout_rate.original or "500",
                repurposed=requirements.payout_rate.repurposed or "250",
            ),
            hashtags=Hashtags(
                original=requirements.hashtags.original or DEFAULT_HASHTAG,
                repurposed=requirements.hashtags.repurposed or DEFAULT_HASHTAG,
            ),
            guidelines=TrackGuidelines(
                original=original or [""],
                repurposed=repurposed or [""],
            ),
            payment_method=payment_method,
        )

        form = cls(draft=draft, today=today, campaign_id=campaign.id)
        form.visited = set(STEP_ORDER)
        return form

    # ====================
    # Step Rules
    # ====================

    def validate_step(self, step: FormStep) -> FieldErrors:
        """Field-keyed messages for everything blocking a step"""
        draft = self.draft
        errors: FieldErrors = {}

        if step is FormStep.DETAILS:
            if not draft.title.strip():
                errors["title"] = "Campaign title is required"
            if not draft.platforms.selected():
                errors["platforms"] = "Select at least one platform"
            if draft.content_type is None:
                errors["contentType"] = "Choose a content type"

        elif step is FormStep.CONTENT_GUIDELINES:
            if parse_date(draft.start_date) is None:
                errors["startDate"] = "Start date is required"
            if parse_date(draft.end_date) is None:
                errors["endDate"] = "End date is required"
            errors.update(validate_dates(draft.start_date, draft.end_date, today=self.today))

            for track in draft.tracks:
                if not getattr(draft.brief, track.value).strip():
                    errors[f"brief.{track.value}"] = f"Brief for {track.value} content is required"
                if not non_blank(draft.guidelines.for_track(track)):
                    errors[f"guidelines.{track.value}"] = "Add at least one guideline"
                hashtag_error = validate_hashtag(draft.hashtags.for_track(track))
                if hashtag_error:
                    errors[f"hashtags.{track.value}"] = hashtag_error

        elif step is FormStep.BUDGET:
            if draft.content_type is not None:
                errors.update(
                    validate_budget_and_rates(
                        draft.budget,
                        {
                            ContentTrack.ORIGINAL: draft.payout_rate.original,
                            ContentTrack.REPURPOSED: draft.payout_rate.repurposed,
                        },
                        draft.content_type,
                    )
                )

        elif step is FormStep.PAYMENT_SUMMARY:
            if not draft.payment_method:
                errors["paymentMethod"] = "Select a payment method"

        elif step is FormStep.FINAL_REVIEW:
            if not draft.terms_accepted:
                errors["termsAccepted"] = "You must accept the terms"

        return errors

    def is_step_complete(self, step: FormStep) -> bool:
        return not self.validate_step(step)

    def validate_all(self) -> FieldErrors:
        errors: FieldErrors = {}
        for step in STEP_ORDER:
            errors.update(self.validate_step(step))
        return errors

    # ====================
    # Navigation
    # ====================

    @property
    def step_index(self) -> int:
        return STEP_ORDER.index(self.current_step)

    def next(self) -> FormStep:
        """Advance one step; blocked while the current step is incomplete"""
        errors = self.validate_step(self.current_step)
        if errors:
            raise CampaignValidationError(
                f"Step '{self.current_step.value}' is incomplete", field_errors=errors
            )
        if self.step_index < len(STEP_ORDER) - 1:
            self.current_step = STEP_ORDER[self.step_index + 1]
            self.visited.add(self.current_step)
        return self.current_step

    def back(self) -> FormStep:
        if self.step_index > 0:
            self.current_step = STEP_ORDER[self.step_index - 1]
        return self.current_step

    def go_to(self, step: FormStep) -> FormStep:
        step = FormStep(step)
        if step in self.visited:
            self.current_step = step
            return step

        target_index = STEP_ORDER.index(step)
        if target_index == self.step_index + 1:
            return self.next()

        raise CampaignValidationError(
            f"Step '{step.value}' has not been reached yet", field="step"
        )

    # ====================
    # Editing
    # ====================

    def update_field(self, path: str, value: Any) -> CampaignDraft:
        """
        Apply an edit addressed by a dotted path such as ``hashtags.original``
        or ``startDate``. Field names and their camelCase aliases are both
        accepted.
        """
        segments = path.split(".")
        try:
            names = self._resolve_path(segments)
        except KeyError:
            raise CampaignValidationError(f"Unknown field '{path}'", field=path)

        if names[0] == "budget_allocation" and len(names) == 2:
            try:
                pct = int(value)
            except (TypeError, ValueError):
                raise CampaignValidationError(
                    f"Invalid value for '{path}': allocation must be a whole number", field=path
                )
            return self.set_budget_allocation(pct if names[1] == "original" else 100 - pct)

        if names[0] == "hashtags" and len(names) == 2:
            value = normalize_hashtag(value)

        data = self.draft.model_dump()
        target = data
        for name in names[:-1]:
            target = target[name]
        target[names[-1]] = value

        try:
            self.draft = CampaignDraft.model_validate(data)
        except ValidationError as e:
            raise CampaignValidationError(f"Invalid value for '{path}': {e.errors()[0]['msg']}", field=path)

        if names[0] in ("start_date", "end_date"):
            self.date_errors = validate_dates(
                self.draft.start_date, self.draft.end_date, today=self.today
            )
        return self.draft

    def _resolve_path(self, segments: List[str]) -> List[str]:
        names = []
        model_cls: Optional[Type[BaseModel]] = CampaignDraft
        for segment in segments:
            if model_cls is None:
                raise KeyError(segment)
            name, model_cls = _resolve_field(model_cls, segment)
            names.append(name)
        return names

    def set_budget_allocation(self, original_percentage: int) -> CampaignDraft:
        """Set the split from the slider; the repurposed share is the remainder"""
        try:
            allocation = BudgetAllocation.from_original(original_percentage)
        except ValidationError:
            raise CampaignValidationError(
                "Allocation must be between 0 and 100", field="budgetAllocation"
            )
        self.draft = self.draft.model_copy(update={"budget_allocation": allocation})
        return self.draft

    # ====================
    # Derived Values
    # ====================

    def live_estimate(self) -> ViewEstimates:
        draft = self.draft
        return estimate_views(
            draft.budget,
            draft.payout_rate.original,
            draft.payout_rate.repurposed,
            draft.content_type or ContentType.ORIGINAL,
            draft.budget_allocation,
        )

    def view_targets(self) -> ViewTargets:
        draft = self.draft
        return calculate_view_targets(
            draft.budget,
            draft.payout_rate.original,
            draft.payout_rate.repurposed,
            draft.content_type or ContentType.ORIGINAL,
            draft.budget_allocation,
        )

    def to_campaign_request(self) -> CampaignCreateRequest:
        """Build the persistence request from the current draft"""
        draft = self.draft
        content_type = draft.content_type or ContentType.ORIGINAL
        tracks = content_type.tracks

        guidelines: List[str] = []
        for track in tracks:
            guidelines.extend(g.strip() for g in non_blank(draft.guidelines.for_track(track)))

        brief = CampaignBrief(
            **{
                track.value: (getattr(draft.brief, track.value).strip() or None)
                if track in tracks else None
                for track in ContentTrack
            }
        )

        platforms = draft.platforms.selected()
        amount = parse_amount(draft.budget)

        return CampaignCreateRequest(
            title=draft.title.strip() or "Untitled campaign",
            brief=brief,
            content_type=content_type,
            budget=float(amount) if amount is not None and amount > 0 else 0,
            start_date=parse_date(draft.start_date),
            end_date=parse_date(draft.end_date),
            platforms=platforms,
            requirements=CampaignRequirements(
                platforms=platforms,
                content_guidelines=guidelines,
                payout_rate=draft.payout_rate,
                hashtags=draft.hashtags,
                budget_allocation=draft.budget_allocation,
                min_views_for_payout=DEFAULT_MIN_VIEWS_FOR_PAYOUT,
                total_budget=draft.budget,
            ),
        )

    # ====================
    # Terminal Actions
    # ====================

    async def save_as_draft(self, service, ctx: CallerContext) -> Campaign:
        """Persist the draft without requiring any step to be complete"""
        request = self.to_campaign_request()
        if self.campaign_id:
            patch = CampaignUpdateRequest.model_validate(request.model_dump())
            campaign = await service.update_campaign(ctx, self.campaign_id, patch)
        else:
            campaign = await service.create_campaign(ctx, request)
            self.campaign_id = campaign.id
        logger.info(f"Campaign draft saved: {campaign.id}")
        return campaign

    async def submit_for_review(self, service, ctx: CallerContext) -> Campaign:
        """Persist the draft and move it to pending approval"""
        errors = self.validate_all()
        if errors:
            raise CampaignValidationError(
                "Complete every step before submitting", field_errors=errors
            )
        campaign = await self.save_as_draft(service, ctx)
        return await service.submit_for_approval(ctx, campaign.id)


__all__ = [
    "FormStep",
    "STEP_ORDER",
    "CampaignDraft",
    "DraftBrief",
    "PlatformSelection",
    "TrackGuidelines",
    "CampaignForm",
]
