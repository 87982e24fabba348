"""
Campaign Service Factory

Factory for creating campaign service instances with proper dependency injection.
"""

import logging
from typing import Optional

from core.config import MarketplaceConfig, get_settings
from core.nats_client import NATSEventBus

from .campaign_repository import CampaignRepository
from .campaign_service import CampaignService
from .events.models import CampaignStreamConfig
from .models import CampaignStatus

logger = logging.getLogger(__name__)


class CampaignServiceFactory:
    """Factory for creating campaign service components"""

    def __init__(self, config: Optional[MarketplaceConfig] = None):
        self.config = config or get_settings()
        self._repository: Optional[CampaignRepository] = None
        self._service: Optional[CampaignService] = None
        self._nats_client: Optional[NATSEventBus] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info("Initializing Campaign Service components...")

        # Initialize repository
        self._repository = CampaignRepository(self.config.infra)
        await self._repository.initialize()

        # Initialize NATS client; the service runs without events when it is down
        if self.config.infra.nats_enabled:
            try:
                self._nats_client = NATSEventBus(
                    service_name=self.config.campaign.service_name,
                    servers=self.config.infra.nats_servers,
                    stream_name=CampaignStreamConfig.STREAM_NAME,
                    stream_subjects=CampaignStreamConfig.SUBJECTS,
                )
                await self._nats_client.connect()
                logger.info("NATS client connected")
            except Exception as e:
                logger.warning(f"NATS client initialization failed: {e}")
                self._nats_client = None
        else:
            logger.info("NATS disabled, campaign events will not be published")

        # Initialize main service
        campaign_config = self.config.campaign
        self._service = CampaignService(
            store=self._repository,
            event_bus=self._nats_client,
            approved_status=CampaignStatus(campaign_config.approved_status),
            min_budget=campaign_config.min_budget,
            min_duration_days=campaign_config.min_duration_days,
        )

        logger.info("Campaign Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Campaign Service components...")

        if self._nats_client:
            await self._nats_client.close()

        if self._repository:
            await self._repository.close()

        logger.info("Campaign Service components closed")

    @property
    def repository(self) -> CampaignRepository:
        """Get campaign repository"""
        if not self._repository:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._repository

    @property
    def service(self) -> CampaignService:
        """Get campaign service"""
        if not self._service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._service

    @property
    def nats_client(self) -> Optional[NATSEventBus]:
        """Get NATS client"""
        return self._nats_client


__all__ = ["CampaignServiceFactory"]
