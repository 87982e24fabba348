"""
Legacy Campaign Records

Older campaign rows predate the structured rejection reason and the budget
allocation block. These helpers bring such rows into the current shape on
read and are also used by the one-off normalization script.
"""

import copy
import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from .models import DEFAULT_BUDGET_ALLOCATION, RejectionReason

logger = logging.getLogger(__name__)

UNSPECIFIED_REASON = "Rejected without a recorded reason"


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    return [str(value)]


def normalize_rejection_reason(value: Any) -> Optional[RejectionReason]:
    """
    Convert any historical rejection reason into a RejectionReason.

    Accepts a RejectionReason, a dict with ``reasons``/``recommendations``
    (each a string or list), a JSON-encoded dict, or plain text. Returns
    None when there is nothing to normalize.
    """
    if value is None:
        return None
    if isinstance(value, RejectionReason):
        return value

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            decoded = json.loads(text)
        except ValueError:
            return RejectionReason(reasons=[text])
        if isinstance(decoded, Mapping):
            return normalize_rejection_reason(decoded)
        if isinstance(decoded, list):
            return normalize_rejection_reason({"reasons": decoded})
        return RejectionReason(reasons=[text])

    if isinstance(value, Mapping):
        reasons = _as_list(value.get("reasons") or value.get("reason"))
        recommendations = _as_list(value.get("recommendations"))
        reasons = [r.strip() for r in reasons if r.strip()]
        if not reasons and not recommendations:
            return None
        return RejectionReason(
            reasons=reasons or [UNSPECIFIED_REASON],
            recommendations=recommendations,
        )

    if isinstance(value, (list, tuple)):
        return normalize_rejection_reason({"reasons": list(value)})

    return RejectionReason(reasons=[str(value)])


def _is_structured(reason: Any) -> bool:
    if not isinstance(reason, Mapping) or not isinstance(reason.get("reasons"), list):
        return False
    return any(isinstance(r, str) and r.strip() for r in reason["reasons"])


def backfill_campaign_record(record: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of a stored campaign row in the current shape.

    - missing ``requirements.budget_allocation`` gets the 70/30 default
    - ``requirements.view_estimates`` is dropped
    - a rejection reason kept in ``metrics.rejection_reason`` or stored as
      text is normalized into ``rejection_reason``

    Each shim that fires is logged so remaining legacy rows stay visible.
    """
    row = copy.deepcopy(dict(record))
    shims = []

    requirements = dict(row.get("requirements") or {})
    if not requirements.get("budget_allocation"):
        requirements["budget_allocation"] = dict(DEFAULT_BUDGET_ALLOCATION)
        shims.append("budget_allocation")
    if "view_estimates" in requirements:
        requirements.pop("view_estimates")
        shims.append("view_estimates")
    row["requirements"] = requirements

    metrics = dict(row.get("metrics") or {})
    legacy_reason = metrics.pop("rejection_reason", None)
    if legacy_reason is not None:
        shims.append("metrics.rejection_reason")
        if not row.get("rejection_reason"):
            row["rejection_reason"] = legacy_reason
    row["metrics"] = metrics

    reason = row.get("rejection_reason")
    if reason is not None and not _is_structured(reason):
        normalized = normalize_rejection_reason(reason)
        row["rejection_reason"] = normalized.model_dump() if normalized else None
        shims.append("rejection_reason")

    if shims:
        logger.warning(
            f"Legacy campaign record {row.get('id')} normalized on read: {', '.join(shims)}"
        )
    return row


__all__ = [
    "UNSPECIFIED_REASON",
    "normalize_rejection_reason",
    "backfill_campaign_record",
]
