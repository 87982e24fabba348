#!/usr/bin/env python3
"""Campaign marketplace main configuration

Combines all sub-configs and the campaign business settings.
"""
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from .infra_config import InfraConfig
from .logging_config import LoggingConfig

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default

def _decimal(val: str, default: str) -> Decimal:
    try:
        return Decimal(val) if val else Decimal(default)
    except InvalidOperation:
        return Decimal(default)


@dataclass
class CampaignConfig:
    """Campaign service settings"""
    service_name: str = "campaign_service"
    service_host: str = "0.0.0.0"
    service_port: int = 8251
    service_url: str = "http://localhost:8251"

    # Status an approved campaign lands in: approved or active
    approved_status: str = "approved"
    min_budget: Decimal = Decimal("1000")
    min_duration_days: int = 30

    @classmethod
    def from_env(cls) -> 'CampaignConfig':
        port = _int(os.getenv("SERVICE_PORT", "8251"), 8251)
        return cls(
            service_name=os.getenv("SERVICE_NAME", "campaign_service"),
            service_host=os.getenv("SERVICE_HOST", "0.0.0.0"),
            service_port=port,
            service_url=os.getenv("CAMPAIGN_SERVICE_URL", f"http://localhost:{port}"),
            approved_status=os.getenv("CAMPAIGN_APPROVED_STATUS", "approved").lower(),
            min_budget=_decimal(os.getenv("CAMPAIGN_MIN_BUDGET", ""), "1000"),
            min_duration_days=_int(os.getenv("CAMPAIGN_MIN_DURATION_DAYS", "30"), 30),
        )


@dataclass
class MarketplaceConfig:
    """Combined marketplace configuration"""
    environment: str = "development"
    debug: bool = False

    campaign: CampaignConfig = field(default_factory=CampaignConfig)
    infra: InfraConfig = field(default_factory=InfraConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> 'MarketplaceConfig':
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            environment=env,
            debug=os.getenv("DEBUG", "false").lower() == "true",
            campaign=CampaignConfig.from_env(),
            infra=InfraConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )
