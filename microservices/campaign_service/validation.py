"""
Campaign Validation Rules

Field-level business rules shared by the creation wizard and the lifecycle
manager. Each helper returns a dict of field name to message; an empty dict
means the value is acceptable.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Union

from .models import (
    MIN_CAMPAIGN_BUDGET,
    MIN_CAMPAIGN_DURATION_DAYS,
    MIN_PAYOUT_RATES,
    ContentTrack,
    ContentType,
)
from .view_estimation import parse_amount

FieldErrors = Dict[str, str]
DateInput = Union[str, date, None]

HASHTAG_REQUIRED_MESSAGE = "Hashtag is required"
HASHTAG_PREFIX_MESSAGE = "Hashtag must start with #"
HASHTAG_SPACES_MESSAGE = "Hashtag cannot contain spaces"
HASHTAG_DISCLOSURE_MESSAGE = "Hashtag must include 'ad' to disclose the sponsorship"

START_IN_PAST_MESSAGE = "Start date cannot be in the past"
END_BEFORE_START_MESSAGE = "End date must be after start date"


def duration_message(min_days: int = MIN_CAMPAIGN_DURATION_DAYS) -> str:
    return f"Campaign must run for at least {min_days} days"


def budget_message(min_budget: Decimal = MIN_CAMPAIGN_BUDGET) -> str:
    return f"Minimum budget is ${min_budget:,.0f}"


def rate_message(track: ContentTrack) -> str:
    return (
        f"Minimum rate for {track.value} content is "
        f"${MIN_PAYOUT_RATES[track]:,.0f} per 1M views"
    )


def parse_date(value: DateInput) -> Optional[date]:
    """Parse an ISO date; returns None when blank or unreadable"""
    if value is None:
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def validate_hashtag(value: Optional[str]) -> Optional[str]:
    """
    Check a disclosure hashtag.

    Returns the error message, or None when the hashtag is a single token
    starting with '#' that contains "ad" in any case. Surrounding whitespace
    is ignored.
    """
    tag = (value or "").strip()
    if not tag:
        return HASHTAG_REQUIRED_MESSAGE
    if any(ch.isspace() for ch in tag):
        return HASHTAG_SPACES_MESSAGE
    if not tag.startswith("#"):
        return HASHTAG_PREFIX_MESSAGE
    if "ad" not in tag.lower():
        return HASHTAG_DISCLOSURE_MESSAGE
    return None


def normalize_hashtag(value: Optional[str]) -> str:
    """Strip whitespace and make sure a non-empty hashtag starts with '#'"""
    cleaned = "".join((value or "").split())
    if cleaned and not cleaned.startswith("#"):
        cleaned = f"#{cleaned}"
    return cleaned


def validate_dates(
    start_date: DateInput,
    end_date: DateInput,
    today: Optional[date] = None,
    check_past: bool = True,
    min_days: int = MIN_CAMPAIGN_DURATION_DAYS,
) -> FieldErrors:
    """
    Check the campaign window.

    Blank or unreadable dates produce no errors here; presence is checked by
    the caller. When both the ordering and the duration rule fail, the
    duration message wins on ``endDate``.
    """
    errors: FieldErrors = {}
    start = parse_date(start_date)
    end = parse_date(end_date)
    today = today or date.today()

    if check_past and start is not None and start < today:
        errors["startDate"] = START_IN_PAST_MESSAGE

    if start is not None and end is not None:
        if end <= start:
            errors["endDate"] = END_BEFORE_START_MESSAGE
        if (end - start).days < min_days:
            errors["endDate"] = duration_message(min_days)

    return errors


def validate_budget_and_rates(
    budget: Any,
    payout_rates: Dict[ContentTrack, Any],
    content_type: ContentType,
    min_budget: Decimal = MIN_CAMPAIGN_BUDGET,
) -> FieldErrors:
    """Check the budget floor and the rate floor of every active track"""
    errors: FieldErrors = {}

    amount = parse_amount(budget)
    if amount is None or amount < min_budget:
        errors["budget"] = budget_message(min_budget)

    for track in ContentType(content_type).tracks:
        rate = parse_amount(payout_rates.get(track))
        if rate is None or rate < MIN_PAYOUT_RATES[track]:
            errors[f"payoutRate.{track.value}"] = rate_message(track)

    return errors


def non_blank(values: Iterable[Optional[str]]) -> list:
    """Drop blank entries, keeping order"""
    return [v for v in values if v and v.strip()]


__all__ = [
    "FieldErrors",
    "HASHTAG_REQUIRED_MESSAGE",
    "HASHTAG_PREFIX_MESSAGE",
    "HASHTAG_SPACES_MESSAGE",
    "HASHTAG_DISCLOSURE_MESSAGE",
    "START_IN_PAST_MESSAGE",
    "END_BEFORE_START_MESSAGE",
    "duration_message",
    "budget_message",
    "rate_message",
    "parse_date",
    "validate_hashtag",
    "normalize_hashtag",
    "validate_dates",
    "validate_budget_and_rates",
    "non_blank",
]
