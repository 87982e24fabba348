#!/usr/bin/env python3
"""Modular configuration system for the campaign marketplace

Configuration hierarchy:
- infra_config: Infrastructure services (PostgreSQL, NATS)
- logging_config: Logging configuration
- marketplace_config: Campaign service settings and the combined config
"""
import os
from dotenv import load_dotenv
from .logging_config import LoggingConfig, setup_logging
from .infra_config import InfraConfig
from .marketplace_config import CampaignConfig, MarketplaceConfig

# Load environment file based on ENV
env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
env_files = {
    "development": "deployment/environments/dev.env",
    "dev": "deployment/environments/dev.env",
    "testing": "deployment/environments/test.env",
    "test": "deployment/environments/test.env",
    "staging": "deployment/environments/staging.env",
    "production": "deployment/environments/production.env",
}
env_file = env_files.get(env, "deployment/environments/dev.env")
load_dotenv(env_file, override=False)

# Create global settings instance
settings = MarketplaceConfig.from_env()

def get_settings() -> MarketplaceConfig:
    """Get global settings instance"""
    return settings

__all__ = [
    # Main config
    'MarketplaceConfig',
    'get_settings',
    'settings',
    # Sub-configs
    'CampaignConfig',
    'LoggingConfig',
    'InfraConfig',
    'setup_logging',
]
