"""
Campaign Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple


# Table names shared by every store implementation
CAMPAIGNS_TABLE = "campaigns"
APPLICATIONS_TABLE = "campaign_creators"
SUBMISSIONS_TABLE = "campaign_posts"


# ====================
# Store Protocol
# ====================


class CampaignStoreProtocol(Protocol):
    """
    Protocol for the campaign store.

    Records are plain dicts in the persisted wire shape. Filters map a
    column to a value, or to a list of values for membership tests.
    """

    async def initialize(self) -> None:
        """Initialize store connection"""
        ...

    async def close(self) -> None:
        """Close store connection"""
        ...

    async def health_check(self) -> bool:
        """Check store health"""
        ...

    async def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a record and return it with its store-assigned id"""
        ...

    async def update(
        self, table: str, record_id: str, patch: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Apply a patch; returns None when the record does not exist"""
        ...

    async def select_by_id(
        self, table: str, record_id: str
    ) -> Optional[Dict[str, Any]]:
        """Fetch a single record"""
        ...

    async def select_where(
        self,
        table: str,
        filters: Dict[str, Any],
        order_by: str = "created_at",
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Fetch records matching every filter"""
        ...

    async def count_where(self, table: str, filters: Dict[str, Any]) -> int:
        """Count records matching every filter"""
        ...

    async def delete(self, table: str, record_id: str) -> bool:
        """Delete a record; returns False when it did not exist"""
        ...

    async def upsert_application(
        self, record: Dict[str, Any]
    ) -> Tuple[Dict[str, Any], bool]:
        """
        Insert a join record unless one exists for (campaign_id, creator_id).

        Returns the stored record and whether it was newly created.
        """
        ...


# ====================
# Event Bus Protocol
# ====================


class EventBusProtocol(Protocol):
    """Protocol for event bus operations"""

    async def publish_event(self, event: Any) -> bool:
        """Publish an event to the event bus"""
        ...

    async def close(self) -> None:
        """Close event bus connection"""
        ...


# ====================
# Custom Exceptions
# ====================


class CampaignServiceError(Exception):
    """Base exception for campaign service errors"""
    pass


class CampaignNotFoundError(CampaignServiceError):
    """Raised when campaign is not found"""
    pass


class InvalidCampaignStateError(CampaignServiceError):
    """Raised when a record is in an invalid state for the operation"""

    def __init__(
        self,
        message: str,
        current_status: Optional[Enum] = None,
        requested_status: Optional[Enum] = None,
    ):
        super().__init__(message)
        self.current_status = current_status
        self.requested_status = requested_status


class CampaignValidationError(CampaignServiceError):
    """Raised when campaign validation fails"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        field_errors: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.field_errors = dict(field_errors or {})
        if field and field not in self.field_errors:
            self.field_errors[field] = message
        self.field = field or next(iter(self.field_errors), None)


class PermissionDeniedError(CampaignServiceError):
    """Raised when the caller's role or ownership does not allow the operation"""
    pass


class StoreError(CampaignServiceError):
    """Raised when the store fails"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        category: str = "store",
    ):
        super().__init__(message)
        self.code = code
        self.category = category


class ConstraintViolationError(StoreError):
    """Raised when a unique, check or foreign-key constraint rejects a write"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        constraint: Optional[str] = None,
    ):
        super().__init__(message, code=code, category="constraint")
        self.constraint = constraint


__all__ = [
    "CAMPAIGNS_TABLE",
    "APPLICATIONS_TABLE",
    "SUBMISSIONS_TABLE",
    "CampaignStoreProtocol",
    "EventBusProtocol",
    "CampaignServiceError",
    "CampaignNotFoundError",
    "InvalidCampaignStateError",
    "CampaignValidationError",
    "PermissionDeniedError",
    "StoreError",
    "ConstraintViolationError",
]
