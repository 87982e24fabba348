"""
Component Test Fixtures for Campaign Service

Provides fixtures for component testing with mocked dependencies:
an in-memory campaign store and a recording event bus.
"""

import copy
import os
import sys
from typing import Any, Callable, Dict, List, Optional, Tuple
from uuid import uuid4

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.campaign_service.campaign_service import CampaignService
from microservices.campaign_service.events.models import CampaignEvent, CampaignEventType
from microservices.campaign_service.protocols import (
    APPLICATIONS_TABLE,
    CAMPAIGNS_TABLE,
    SUBMISSIONS_TABLE,
)
from tests.contracts.campaign.data_contract import (
    CallerContext,
    Campaign,
    CampaignTestDataFactory,
    ContentType,
)


# ====================
# Mock Store
# ====================


class MockCampaignStore:
    """In-memory store implementing CampaignStoreProtocol"""

    def __init__(self):
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {
            CAMPAIGNS_TABLE: {},
            APPLICATIONS_TABLE: {},
            SUBMISSIONS_TABLE: {},
        }
        self._error: Optional[Exception] = None

    async def initialize(self):
        pass

    async def close(self):
        pass

    async def health_check(self) -> bool:
        return self._error is None

    def _check(self):
        if self._error:
            raise self._error

    async def insert(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        self._check()
        row = copy.deepcopy(record)
        row.setdefault("id", str(uuid4()))
        self.tables[table][row["id"]] = row
        return copy.deepcopy(row)

    async def update(
        self, table: str, record_id: str, patch: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        self._check()
        row = self.tables[table].get(record_id)
        if row is None:
            return None
        row.update(copy.deepcopy(patch))
        return copy.deepcopy(row)

    async def select_by_id(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        self._check()
        row = self.tables[table].get(record_id)
        return copy.deepcopy(row) if row else None

    async def select_where(
        self,
        table: str,
        filters: Dict[str, Any],
        order_by: str = "created_at",
        descending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        self._check()
        rows = [r for r in self.tables[table].values() if self._matches(r, filters)]
        rows.sort(key=lambda r: str(r.get(order_by) or ""), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return [copy.deepcopy(r) for r in rows]

    async def count_where(self, table: str, filters: Dict[str, Any]) -> int:
        self._check()
        return sum(1 for r in self.tables[table].values() if self._matches(r, filters))

    async def delete(self, table: str, record_id: str) -> bool:
        self._check()
        return self.tables[table].pop(record_id, None) is not None

    async def upsert_application(
        self, record: Dict[str, Any]
    ) -> Tuple[Dict[str, Any], bool]:
        self._check()
        for row in self.tables[APPLICATIONS_TABLE].values():
            if row["campaign_id"] == record["campaign_id"] and row["creator_id"] == record["creator_id"]:
                return copy.deepcopy(row), False
        return await self.insert(APPLICATIONS_TABLE, record), True

    @staticmethod
    def _matches(row: Dict[str, Any], filters: Dict[str, Any]) -> bool:
        for column, value in filters.items():
            if isinstance(value, (list, tuple, set)):
                if row.get(column) not in value:
                    return False
            elif row.get(column) != value:
                return False
        return True

    # Test helper methods

    def set_error(self, error: Exception):
        """Set an error to be raised on every operation"""
        self._error = error

    def clear_error(self):
        self._error = None

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return list(self.tables[table].values())


# ====================
# Mock Event Bus
# ====================


class MockEventBus:
    """Mock for NATS event bus"""

    def __init__(self):
        self.published_events: List[CampaignEvent] = []
        self._should_raise: Optional[Exception] = None

    async def publish_event(self, event: CampaignEvent) -> bool:
        if self._should_raise:
            raise self._should_raise
        self.published_events.append(event)
        return True

    async def close(self):
        pass

    def get_events_by_type(self, event_type: CampaignEventType) -> List[CampaignEvent]:
        return [e for e in self.published_events if e.event_type == event_type]

    def set_error(self, error: Exception):
        """Set an error to be raised on publish"""
        self._should_raise = error


# ====================
# Fixtures
# ====================


@pytest.fixture
def mock_store() -> MockCampaignStore:
    return MockCampaignStore()


@pytest.fixture
def mock_event_bus() -> MockEventBus:
    return MockEventBus()


@pytest.fixture
def campaign_service(mock_store, mock_event_bus) -> CampaignService:
    return CampaignService(store=mock_store, event_bus=mock_event_bus)


@pytest.fixture
def brand_ctx(factory: CampaignTestDataFactory) -> CallerContext:
    return factory.make_brand_ctx()


@pytest.fixture
def other_brand_ctx(factory: CampaignTestDataFactory) -> CallerContext:
    return factory.make_brand_ctx()


@pytest.fixture
def admin_ctx(factory: CampaignTestDataFactory) -> CallerContext:
    return factory.make_admin_ctx()


@pytest.fixture
def creator_ctx(factory: CampaignTestDataFactory) -> CallerContext:
    return factory.make_creator_ctx()


@pytest.fixture
def launch_campaign(
    campaign_service, brand_ctx, admin_ctx, factory
) -> Callable[..., Any]:
    """Create a campaign and walk it through approval to active"""

    async def _launch(content_type: ContentType = ContentType.ORIGINAL, **overrides) -> Campaign:
        request = factory.make_create_request(content_type=content_type, **overrides)
        campaign = await campaign_service.create_campaign(brand_ctx, request)
        await campaign_service.submit_for_approval(brand_ctx, campaign.id)
        await campaign_service.approve_campaign(admin_ctx, campaign.id)
        return await campaign_service.activate_campaign(admin_ctx, campaign.id)

    return _launch
