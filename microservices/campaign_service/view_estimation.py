"""
View Estimation

Budget-to-views arithmetic shared by the campaign wizard and the API.

Payout rates are the cost per 1,000,000 delivered views, so a track's views
are ``budget / rate * 1,000,000``. Two calculators exist on purpose:

- ``estimate_views`` is the live preview shown while the brand types. Bad
  input simply contributes nothing.
- ``calculate_view_targets`` produces the numbers persisted with the
  campaign. Missing rates fall back to the platform minimums and the total is
  always the sum of the rounded track targets.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, Field

from .models import (
    DEFAULT_PAYOUT_RATES,
    VIEWS_PER_RATE_UNIT,
    BudgetAllocation,
    ContentTrack,
    ContentType,
)

# Leading numeric prefix, mirroring how form inputs like "5000.50 USD" are read
_NUMBER_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

# Significant digits kept while computing views
_VIEW_PRECISION = 60

AmountInput = Union[str, int, float, Decimal, None]
AllocationInput = Union[BudgetAllocation, Mapping[str, Any], None]


class ViewEstimates(BaseModel):
    """Live preview of views a budget buys"""

    model_config = {"populate_by_name": True}

    original_views: int = Field(0, alias="originalViews")
    repurposed_views: int = Field(0, alias="repurposedViews")
    total_views: int = Field(0, alias="totalViews")


class ViewTargets(BaseModel):
    """View targets persisted with a campaign"""

    total: int = 0
    original: int = 0
    repurposed: int = 0


def parse_amount(value: AmountInput) -> Optional[Decimal]:
    """
    Parse a user-entered amount.

    Returns None when no number can be read. Only the leading numeric part
    of a string is used.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        try:
            parsed = Decimal(str(value))
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None

    match = _NUMBER_PREFIX.match(str(value))
    if not match:
        return None
    try:
        return Decimal(match.group(1))
    except InvalidOperation:
        return None


def round_views(value: Decimal) -> int:
    """Round to the nearest whole view, halves away from zero"""
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


def _allocation_percentages(allocation: AllocationInput) -> Dict[ContentTrack, Decimal]:
    if allocation is None:
        allocation = BudgetAllocation()
    elif not isinstance(allocation, BudgetAllocation):
        allocation = BudgetAllocation.model_validate(dict(allocation))
    return {
        ContentTrack.ORIGINAL: Decimal(allocation.original),
        ContentTrack.REPURPOSED: Decimal(allocation.repurposed),
    }


def split_budget(
    budget: Decimal, content_type: ContentType, allocation: AllocationInput
) -> Dict[ContentTrack, Decimal]:
    """Portion of the budget funding each track"""
    content_type = ContentType(content_type)
    if content_type is not ContentType.BOTH:
        funded = ContentTrack(content_type.value)
        return {
            track: (budget if track is funded else Decimal(0))
            for track in ContentTrack
        }

    percentages = _allocation_percentages(allocation)
    return {track: budget * percentages[track] / 100 for track in ContentTrack}


def _views(portion: Decimal, rate: Optional[Decimal]) -> Decimal:
    if rate is None or rate <= 0 or portion <= 0:
        return Decimal(0)
    return portion / rate * VIEWS_PER_RATE_UNIT


def estimate_views(
    budget: AmountInput,
    rate_original: AmountInput,
    rate_repurposed: AmountInput,
    content_type: ContentType,
    allocation: AllocationInput = None,
) -> ViewEstimates:
    """
    Estimate views for the live budget preview.

    Never raises on bad input: an unreadable or non-positive budget gives
    zeros, and an unreadable or non-positive rate contributes zero views for
    its track.
    """
    amount = parse_amount(budget)
    if amount is None or amount <= 0:
        return ViewEstimates()

    rates = {
        ContentTrack.ORIGINAL: parse_amount(rate_original),
        ContentTrack.REPURPOSED: parse_amount(rate_repurposed),
    }
    with localcontext() as ctx:
        ctx.prec = _VIEW_PRECISION
        portions = split_budget(amount, content_type, allocation)
        raw = {track: _views(portions[track], rates[track]) for track in ContentTrack}
        total = raw[ContentTrack.ORIGINAL] + raw[ContentTrack.REPURPOSED]

    return ViewEstimates(
        original_views=round_views(raw[ContentTrack.ORIGINAL]),
        repurposed_views=round_views(raw[ContentTrack.REPURPOSED]),
        total_views=round_views(total),
    )


def _rate_or_default(value: AmountInput, track: ContentTrack) -> Decimal:
    rate = parse_amount(value)
    if rate is None or rate <= 0:
        return DEFAULT_PAYOUT_RATES[track]
    return rate


def calculate_view_targets(
    budget: AmountInput,
    rate_original: AmountInput,
    rate_repurposed: AmountInput,
    content_type: ContentType,
    allocation: AllocationInput = None,
) -> ViewTargets:
    """
    Compute the view targets persisted with a campaign.

    Unreadable or non-positive rates use the platform minimums (500 for
    original, 250 for repurposed). Each track is rounded on its own and the
    total is their sum.
    """
    amount = parse_amount(budget)
    if amount is None or amount < 0:
        amount = Decimal(0)

    rates = {
        ContentTrack.ORIGINAL: _rate_or_default(rate_original, ContentTrack.ORIGINAL),
        ContentTrack.REPURPOSED: _rate_or_default(rate_repurposed, ContentTrack.REPURPOSED),
    }
    with localcontext() as ctx:
        ctx.prec = _VIEW_PRECISION
        portions = split_budget(amount, content_type, allocation)
        raw = {track: _views(portions[track], rates[track]) for track in ContentTrack}

    original = round_views(raw[ContentTrack.ORIGINAL])
    repurposed = round_views(raw[ContentTrack.REPURPOSED])
    return ViewTargets(total=original + repurposed, original=original, repurposed=repurposed)


__all__ = [
    "ViewEstimates",
    "ViewTargets",
    "parse_amount",
    "round_views",
    "split_budget",
    "estimate_views",
    "calculate_view_targets",
]
